"""
Special functions shared by the densities.

All functions accept scalars or arrays and broadcast their arguments.
"""

from __future__ import annotations

from typing import Any

import jax
import jax.numpy as jnp
import jax.scipy.special as jss
import tensorflow_probability.substrates.jax.math as tfm

from .errors import check_domain

Array = Any


def Phi(z: Array) -> Array:
    """Standard normal cumulative distribution function."""
    return jss.ndtr(z)


def Phi_approx(z: Array) -> Array:
    """
    Logistic approximation to the standard normal CDF.

    Uses ``expit(0.07056 * z**3 + 1.5976 * z)``, which has an absolute error below
    ``2e-4`` on the real line.
    """
    z = jnp.asarray(z)
    return jax.nn.sigmoid(0.07056 * z**3 + 1.5976 * z)


def inv_Phi(p: Array) -> Array:
    """
    Standard normal quantile function. Maps ``0`` to ``-inf`` and ``1`` to ``inf``.
    """
    return jss.ndtri(p)


def log_Phi(z: Array) -> Array:
    """Logarithm of the standard normal CDF, accurate in the lower tail."""
    return jss.log_ndtr(z)


def log_diff_exp(a: Array, b: Array) -> Array:
    """
    Computes ``log(exp(a) - exp(b))`` for ``a >= b``.

    Returns ``-inf`` if ``a == b`` and ``a`` if ``b == -inf``.
    """
    a = jnp.asarray(a)
    b = jnp.asarray(b)
    # avoids inf - inf for a == b == -inf
    a_safe = jnp.where(jnp.isneginf(a), 0.0, a)
    out = a_safe + jnp.log(-jnp.expm1(b - a_safe))
    return jnp.where(jnp.isneginf(a), -jnp.inf, out)


def bernoulli_cdf(k: Array, p: Array) -> Array:
    """CDF of the Bernoulli distribution with success probability ``p``."""
    k = jnp.asarray(k)
    p = jnp.asarray(p)
    return jnp.where(k < 0, 0.0, jnp.where(k >= 1, 1.0, 1.0 - p))


def poisson_cdf(k: Array, rate: Array) -> Array:
    """
    CDF of the Poisson distribution, computed as the regularized upper incomplete
    gamma function ``Q(k + 1, rate)``. Returns ``0`` for ``k < 0``.
    """
    k = jnp.asarray(k, dtype=jnp.result_type(float))
    k_safe = jnp.maximum(jnp.floor(k), 0.0)
    cdf = jss.gammaincc(k_safe + 1.0, rate)
    return jnp.where(k < 0, 0.0, cdf)


def inc_beta_inverse(
    p: Array, a: Array, b: Array, validate_args: bool = True
) -> Array:
    """
    Inverse of the regularized incomplete beta function ``I_x(a, b)`` with respect
    to ``x``.

    Parameters
    ----------
    p
        Probabilities in ``[0, 1]``.
    a, b
        Positive shape parameters.
    validate_args
        If ``True``, concrete arguments are checked and a
        :class:`~copdens.errors.DomainError` is raised for invalid values.

    Returns
    -------
    The ``x`` in ``[0, 1]`` such that ``I_x(a, b) = p``.
    """
    p = jnp.asarray(p)
    a = jnp.asarray(a)
    b = jnp.asarray(b)

    if validate_args:
        check_domain((p >= 0.0) & (p <= 1.0), "p must be in [0, 1]", "p", p)
        check_domain(a > 0.0, "a must be > 0", "a", a)
        check_domain(b > 0.0, "b must be > 0", "b", b)

    return tfm.betaincinv(a, b, p)
