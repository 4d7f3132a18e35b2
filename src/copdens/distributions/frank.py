"""
The bivariate Frank copula.
"""

from __future__ import annotations

from typing import Any

import jax
import jax.numpy as jnp
import tensorflow_probability.substrates.jax.distributions as tfd
from tensorflow_probability.python.internal import reparameterization
from tensorflow_probability.substrates.jax import tf2jax as tf

from ..errors import check_domain

Array = Any


def _check_args(u: Array, v: Array, theta: Array) -> None:
    check_domain(
        jnp.isfinite(theta) & (theta != 0.0),
        "theta must be finite and non-zero",
        "theta",
        theta,
    )
    check_domain((u >= 0.0) & (u <= 1.0), "u must be in [0, 1]", "u", u)
    check_domain((v >= 0.0) & (v <= 1.0), "v must be in [0, 1]", "v", v)


def frank_copula_lpdf(
    u: Array, v: Array, theta: Array, validate_args: bool = True
) -> Array:
    """
    Log-density of the bivariate Frank copula.

    .. math::
        c(u, v) = \\frac{\\theta (1 - e^{-\\theta}) e^{-\\theta (u + v)}}
        {\\left[(1 - e^{-\\theta}) - (1 - e^{-\\theta u})(1 - e^{-\\theta v})
        \\right]^2}

    Parameters
    ----------
    u, v
        Arguments on the unit interval.
    theta
        The dependence parameter. Must be finite and non-zero; negative values
        give negative dependence.
    validate_args
        If ``True``, concrete arguments are checked and a
        :class:`~copdens.errors.DomainError` is raised for invalid values.
    """
    u = jnp.asarray(u)
    v = jnp.asarray(v)
    theta = jnp.asarray(theta)

    if validate_args:
        _check_args(u, v, theta)

    # 1 - exp(-theta), negative for theta < 0
    one_m_exp = -jnp.expm1(-theta)
    denom = one_m_exp - jnp.expm1(-theta * u) * jnp.expm1(-theta * v)

    log_num = jnp.log(theta * one_m_exp) - theta * (u + v)
    return log_num - 2.0 * jnp.log(jnp.abs(denom))


def frank_copula_lcdf(
    u: Array, v: Array, theta: Array, validate_args: bool = True
) -> Array:
    """
    Log-CDF of the bivariate Frank copula,
    ``C(u, v) = -log(1 + (e^(-theta u) - 1)(e^(-theta v) - 1) / (e^(-theta) - 1)) / theta``.
    """
    u = jnp.asarray(u)
    v = jnp.asarray(v)
    theta = jnp.asarray(theta)

    if validate_args:
        _check_args(u, v, theta)

    ratio = jnp.expm1(-theta * u) * jnp.expm1(-theta * v) / jnp.expm1(-theta)
    return jnp.log(-jnp.log1p(ratio) / theta)


def frank_copula_conditional_quantile(w: Array, u: Array, theta: Array) -> Array:
    """
    Inverts the conditional distribution ``C(v | u)`` of the Frank copula at the
    probability ``w``.
    """
    exp_u = jnp.exp(-theta * u)
    ratio = w * -jnp.expm1(-theta) / (w * jnp.expm1(-theta * u) - exp_u)
    return -jnp.log1p(ratio) / theta


class FrankCopula(tfd.Distribution):
    """
    The bivariate Frank copula.

    Parameters
    ----------
    theta
        The dependence parameter. Finite and non-zero.
    validate_args
        Python ``bool``, default ``False``. When ``True``, distribution parameters \
        are checked for validity despite possibly degrading runtime performance. \
        When ``False``, invalid inputs may silently render incorrect outputs.
    allow_nan_stats
        Python ``bool``, default ``True``. When ``True``, statistics (e.g., mean, \
        mode, variance) use the value ``NaN`` to indicate the result is undefined. \
        When ``False``, an exception is raised if one or more of the statistic's \
        batch members are undefined.
    name
        Python ``str``, name prefixed to ``Ops`` created by this class.

    Notes
    -----
    Samples are drawn by conditional inversion: ``u`` and ``w`` are independent
    uniforms, and ``v`` is the quantile of ``C(v | u)`` at ``w``.

    Examples
    --------
    >>> from copdens.distributions import FrankCopula
    >>> dist = FrankCopula(2.0)
    >>> dist.event_shape.as_list()
    [2]
    """

    def __init__(
        self,
        theta: Array,
        validate_args: bool = False,
        allow_nan_stats: bool = True,
        name: str = "FrankCopula",
    ):
        parameters = dict(locals())

        self._theta = jnp.asarray(theta, dtype=jnp.result_type(float))

        if validate_args:
            check_domain(
                jnp.isfinite(self._theta) & (self._theta != 0.0),
                "theta must be finite and non-zero",
                "theta",
                self._theta,
            )

        super().__init__(
            dtype=self._theta.dtype,
            reparameterization_type=reparameterization.FULLY_REPARAMETERIZED,
            validate_args=validate_args,
            allow_nan_stats=allow_nan_stats,
            parameters=parameters,
            name=name,
        )

    @property
    def theta(self) -> Array:
        """The dependence parameter."""
        return self._theta

    def _log_prob(self, x: Array) -> Array:
        return frank_copula_lpdf(
            x[..., 0], x[..., 1], self._theta, validate_args=self.validate_args
        )

    def _log_cdf(self, x: Array) -> Array:
        return frank_copula_lcdf(
            x[..., 0], x[..., 1], self._theta, validate_args=self.validate_args
        )

    def _sample_n(self, n, seed=None) -> Array:
        shape = [n] + self.batch_shape.as_list()
        key_u, key_w = jax.random.split(seed)

        u = jax.random.uniform(key_u, shape=shape, dtype=self.dtype)
        w = jax.random.uniform(key_w, shape=shape, dtype=self.dtype)
        v = frank_copula_conditional_quantile(w, u, self._theta)

        return jnp.stack([u, v], axis=-1)

    def _event_shape(self):
        return tf.TensorShape((2,))

    def _event_shape_tensor(self):
        return jnp.array((2,), dtype=jnp.int32)

    def _batch_shape(self):
        return tf.TensorShape(jnp.shape(self._theta))

    def _batch_shape_tensor(self):
        return jnp.array(jnp.shape(self._theta), dtype=jnp.int32)
