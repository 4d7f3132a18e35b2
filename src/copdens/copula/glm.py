"""
# Generalized linear model means of the margins
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import jax
import jax.numpy as jnp

from .partition import Family, MarginPartition

Array = Any


def inverse_link(family: Family, eta: Array) -> Array:
    """
    Applies the inverse link function of a family to a linear predictor: identity
    for normal, logistic sigmoid for Bernoulli and exponential for Poisson margins.
    """
    if family is Family.NORMAL:
        return eta
    if family is Family.BERNOULLI:
        return jax.nn.sigmoid(eta)
    if family is Family.POISSON:
        return jnp.exp(eta)
    raise ValueError(f"Unknown margin family {family!r}")


def _offsets(partition: MarginPartition, n_covariates: Sequence[int]) -> list[int]:
    if len(n_covariates) != partition.n_margins:
        raise ValueError(
            f"Expected one covariate count per margin ({partition.n_margins}), "
            f"found {len(n_covariates)}."
        )

    offsets = [0]
    for k in n_covariates:
        offsets.append(offsets[-1] + int(k))
    return offsets


def linear_predictors(
    coefficients: Array,
    X: Array,
    partition: MarginPartition,
    n_covariates: Sequence[int],
) -> Array:
    """
    Computes the ``N x J`` matrix of linear predictors.

    Parameters
    ----------
    coefficients
        Flat vector of all regression coefficients, segmented by margin in the
        order of the latent coordinates.
    X
        Concatenated ``N x sum(n_covariates)`` design matrix with one column block
        per margin, in the same order as ``coefficients``.
    partition
        The margin partition.
    n_covariates
        The number of covariates of every margin.
    """
    offsets = _offsets(partition, n_covariates)
    X = jnp.asarray(X)
    coefficients = jnp.asarray(coefficients)

    columns = []
    for j in range(partition.n_margins):
        segment = slice(offsets[j], offsets[j + 1])
        columns.append(X[:, segment] @ coefficients[segment])

    if not columns:
        return jnp.zeros((X.shape[0], 0), dtype=X.dtype)

    return jnp.stack(columns, axis=-1)


def glm_means(
    coefficients: Array,
    X: Array,
    partition: MarginPartition,
    n_covariates: Sequence[int],
) -> Array:
    """
    Computes the ``N x J`` matrix of conditional means of the margins.

    The normal block holds the linear predictors, the Bernoulli block the success
    probabilities in ``(0, 1)`` and the Poisson block the positive rates. Families
    without margins are skipped. See :func:`.linear_predictors` for the arguments.
    """
    eta = linear_predictors(coefficients, X, partition, n_covariates)

    blocks = [
        inverse_link(block.family, eta[:, block.slice]) for block in partition.blocks
    ]

    if not blocks:
        return eta

    return jnp.concatenate(blocks, axis=-1)
