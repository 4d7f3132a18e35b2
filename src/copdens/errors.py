"""
Errors raised when a density is evaluated outside of its domain.
"""

from __future__ import annotations

import logging
from typing import Any

import jax
import numpy as np

Array = Any

logger = logging.getLogger(__name__)


class DomainError(ValueError):
    """
    A parameter or argument lies outside of the mathematically valid domain.

    The host evaluating a log-likelihood can catch this error to reject a single
    parameter proposal instead of aborting the whole run.

    Parameters
    ----------
    rule
        Human-readable statement of the violated constraint, e.g.
        ``"sigma must be > 0"``.
    name
        Name of the offending parameter.
    value
        The offending value.
    """

    def __init__(self, rule: str, name: str, value: Any):
        self.rule = rule
        self.name = name
        self.value = value
        super().__init__(f"{rule}, found {name} = {value}")


class UnsupportedRegimeError(NotImplementedError):
    """A parameter limit that is explicitly not supported by a function."""


def is_traced(*values: Array) -> bool:
    """Whether any of the values is a JAX tracer, i.e. not concrete."""
    return any(isinstance(value, jax.core.Tracer) for value in values)


def check_domain(valid: Array, rule: str, name: str, value: Array) -> None:
    """
    Raises a :class:`.DomainError` if ``valid`` is not ``True`` everywhere.

    Inside of a JAX transformation (e.g. :func:`jax.jit` or :func:`jax.grad`),
    the check cannot be evaluated and is skipped.
    """
    if is_traced(valid, value):
        logger.debug(f"Skipped traced check '{rule}' for {name}")
        return

    mask = np.asarray(valid)
    if not np.all(mask):
        offending = np.asarray(value)
        if offending.ndim > 0 and offending.shape == mask.shape:
            offending = offending[~mask]
        raise DomainError(rule, name, offending.tolist())
