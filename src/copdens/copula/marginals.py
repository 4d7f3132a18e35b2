"""
# Probability integral transforms of the margins

Every function operates on whole blocks of margins at once, i.e. on arrays of any
shape whose last axis runs over the margins of one family.
"""

from __future__ import annotations

from typing import Any

import jax.numpy as jnp

from ..errors import check_domain
from ..special import Phi, Phi_approx, bernoulli_cdf, inv_Phi, poisson_cdf

Array = Any


def normal_marginal(
    y: Array,
    mu: Array,
    sigma: Array,
    approx: bool = False,
    validate_args: bool = True,
) -> Array:
    """
    Maps normal outcomes to the unit interval: ``Phi((y - mu) / sigma)``.

    Parameters
    ----------
    y
        Observed outcomes.
    mu
        Means of the margins.
    sigma
        Standard deviations of the margins, broadcast along the last axis.
    approx
        Whether to use :func:`~copdens.special.Phi_approx` instead of the exact
        normal CDF.
    validate_args
        If ``True``, concrete values of ``sigma`` are checked to be positive.
    """
    sigma = jnp.asarray(sigma)
    if validate_args:
        check_domain(sigma > 0.0, "sigma must be > 0", "sigma", sigma)

    cdf = Phi_approx if approx else Phi
    return cdf((jnp.asarray(y) - mu) / sigma)


def normal_latent(
    y: Array,
    mu: Array,
    sigma: Array,
    approx: bool = False,
    validate_args: bool = True,
) -> Array:
    """
    Maps normal outcomes to their latent standard normal values.

    The exact transform is the z-score ``(y - mu) / sigma``, which equals
    ``inv_Phi(Phi(z))`` without the loss of the upper tail to rounding. With
    ``approx=True``, the value is ``inv_Phi(Phi_approx(z))``.

    See :func:`.normal_marginal` for the arguments.
    """
    if approx:
        u = normal_marginal(y, mu, sigma, approx=True, validate_args=validate_args)
        return inv_Phi(u)

    sigma = jnp.asarray(sigma)
    if validate_args:
        check_domain(sigma > 0.0, "sigma must be > 0", "sigma", sigma)

    return (jnp.asarray(y) - mu) / sigma


def bernoulli_marginal(y: Array, p: Array) -> tuple[Array, Array]:
    """
    Truncation bounds of the latent normal variables of Bernoulli outcomes.

    With ``F = 1 - p``, an outcome of ``0`` is bounded to ``(-inf, inv_Phi(F)]`` and
    an outcome of ``1`` to ``[inv_Phi(F), inf)``.

    Returns
    -------
    A tuple ``(lb, ub)`` of the lower and upper bounds.
    """
    y = jnp.asarray(y)
    threshold = inv_Phi(bernoulli_cdf(0, p))

    lb = jnp.where(y == 1, threshold, -jnp.inf)
    ub = jnp.where(y == 0, threshold, jnp.inf)
    return lb, ub


def poisson_marginal(y: Array, rate: Array) -> tuple[Array, Array]:
    """
    Truncation bounds of the latent normal variables of Poisson outcomes.

    The upper bound is ``inv_Phi(F(y))``, the lower bound ``inv_Phi(F(y - 1))`` for
    positive outcomes and ``-inf`` otherwise, where ``F`` is the Poisson CDF.

    Returns
    -------
    A tuple ``(lb, ub)`` of the lower and upper bounds.
    """
    y = jnp.asarray(y)

    ub = inv_Phi(poisson_cdf(y, rate))
    lb = jnp.where(y > 0, inv_Phi(poisson_cdf(y - 1, rate)), -jnp.inf)
    return lb, ub
