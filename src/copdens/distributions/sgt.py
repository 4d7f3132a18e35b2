"""
The Skew Generalized T distribution.

The density is

.. math::
    f(x) = \\frac{p}{2 \\sigma q^{1/p} B(1/p, q)
    \\left(1 + \\frac{|x - \\mu|^p}{q \\sigma^p (1 + \\lambda
    \\operatorname{sign}(x - \\mu))^p}\\right)^{1/p + q}},

with scale ``sigma > 0``, skewness ``lambda`` in ``(-1, 1)`` and the shape
parameters ``p > 0`` and ``q > 0``. The limit ``q = inf`` is the skewed generalized
error distribution, and the limit ``p = inf`` is a uniform distribution on
``[mu - sigma (1 - lambda), mu + sigma (1 + lambda)]``.

Infinite shape parameters are recognized for concrete values only. Inside of a JAX
transformation, ``p`` and ``q`` are taken to be finite. Arrays that mix finite and
infinite elements are not supported.
"""

from __future__ import annotations

from typing import Any

import jax
import jax.numpy as jnp
import jax.scipy.special as jss
import numpy as np
import tensorflow_probability.substrates.jax.distributions as tfd
from tensorflow_probability.python.internal import reparameterization
from tensorflow_probability.substrates.jax import tf2jax as tf

from ..errors import UnsupportedRegimeError, check_domain, is_traced
from ..special import inc_beta_inverse

Array = Any


def _as_float(*args: Array) -> list[Array]:
    dtype = jnp.result_type(float)
    return [jnp.asarray(arg, dtype=dtype) for arg in args]


def _is_inf(x: Array, name: str) -> bool:
    if is_traced(x):
        return False

    inf = np.isinf(np.asarray(x))
    if inf.all():
        return True
    if inf.any():
        raise UnsupportedRegimeError(
            f"{name} must be either finite or infinite in all elements, found {name} = "
            f"{np.asarray(x).tolist()}"
        )
    return False


def _check_params(sigma: Array, lam: Array, p: Array, q: Array) -> None:
    check_domain(sigma > 0.0, "sigma must be > 0", "sigma", sigma)
    check_domain(
        (lam > -1.0) & (lam < 1.0), "lambda must be in (-1, 1)", "lambda", lam
    )
    check_domain(p > 0.0, "p must be > 0", "p", p)
    check_domain(q > 0.0, "q must be > 0", "q", q)


def _uniform_support(mu: Array, sigma: Array, lam: Array) -> tuple[Array, Array]:
    return mu - sigma * (1.0 - lam), mu + sigma * (1.0 + lam)


def _standardized(x, mu, sigma, lam, p) -> tuple[Array, Array]:
    """Returns ``sign(x - mu)`` and ``(|x - mu| / (sigma (1 + lambda sign)))^p``."""
    r = x - mu
    sign = jnp.where(r < 0.0, -1.0, 1.0)
    t = (jnp.abs(r) / (sigma * (1.0 + lam * sign))) ** p
    return sign, t


def sgt_lpdf(
    x: Array,
    mu: Array,
    sigma: Array,
    lam: Array,
    p: Array,
    q: Array,
    validate_args: bool = True,
) -> Array:
    """
    Log-density of the Skew Generalized T distribution.

    Parameters
    ----------
    x
        Where to evaluate the log-density.
    mu
        Location (the mode).
    sigma
        Scale, must be positive.
    lam
        Skewness, must be in ``(-1, 1)``. With ``lam = 0`` the density is
        symmetric around ``mu``.
    p, q
        Positive shape parameters. Either can be ``inf``.
    validate_args
        If ``True``, concrete parameters are checked and a
        :class:`~copdens.errors.DomainError` is raised for invalid values.
    """
    x, mu, sigma, lam, p, q = _as_float(x, mu, sigma, lam, p, q)

    if validate_args:
        _check_params(sigma, lam, p, q)

    if _is_inf(p, "p"):
        lower, upper = _uniform_support(mu, sigma, lam)
        inside = (x >= lower) & (x <= upper)
        return jnp.where(inside, -jnp.log(2.0 * sigma), -jnp.inf)

    _, t = _standardized(x, mu, sigma, lam, p)
    log_const = jnp.log(p) - jnp.log(2.0) - jnp.log(sigma)

    if _is_inf(q, "q"):
        return log_const - jss.gammaln(1.0 / p) - t

    log_const = log_const - jnp.log(q) / p - jss.betaln(1.0 / p, q)
    return log_const - (1.0 / p + q) * jnp.log1p(t / q)


def _sgt_tails(x, mu, sigma, lam, p, q) -> tuple[Array, Array]:
    """Returns the CDF and the survival function, each computed without ``1 - F``."""
    if _is_inf(p, "p"):
        lower, _ = _uniform_support(mu, sigma, lam)
        cdf = jnp.clip((x - lower) / (2.0 * sigma), 0.0, 1.0)
        return cdf, jnp.clip(1.0 - cdf, 0.0, 1.0)

    sign, t = _standardized(x, mu, sigma, lam, p)

    if _is_inf(q, "q"):
        near = jss.gammainc(1.0 / p, t)
        far = jss.gammaincc(1.0 / p, t)
    else:
        # I_k(1/p, q) and its complement I_{1-k}(q, 1/p), with k = t / (t + q)
        near = jss.betainc(1.0 / p, q, 1.0 / (1.0 + q / t))
        far = jss.betainc(q, 1.0 / p, 1.0 / (1.0 + t / q))

    left = 0.5 * (1.0 - lam)
    right = 0.5 * (1.0 + lam)

    cdf = jnp.where(sign < 0.0, left * far, left + right * near)
    sf = jnp.where(sign < 0.0, right + left * near, right * far)
    return cdf, sf


def sgt_lcdf(
    x: Array,
    mu: Array,
    sigma: Array,
    lam: Array,
    p: Array,
    q: Array,
    validate_args: bool = True,
) -> Array:
    """Log-CDF of the Skew Generalized T distribution. See :func:`.sgt_lpdf`."""
    x, mu, sigma, lam, p, q = _as_float(x, mu, sigma, lam, p, q)

    if validate_args:
        _check_params(sigma, lam, p, q)

    cdf, _ = _sgt_tails(x, mu, sigma, lam, p, q)
    return jnp.log(cdf)


def sgt_lccdf(
    x: Array,
    mu: Array,
    sigma: Array,
    lam: Array,
    p: Array,
    q: Array,
    validate_args: bool = True,
) -> Array:
    """
    Log of the complementary CDF of the Skew Generalized T distribution. See
    :func:`.sgt_lpdf`.
    """
    x, mu, sigma, lam, p, q = _as_float(x, mu, sigma, lam, p, q)

    if validate_args:
        _check_params(sigma, lam, p, q)

    _, sf = _sgt_tails(x, mu, sigma, lam, p, q)
    return jnp.log(sf)


def sgt_qf(
    prob: Array,
    mu: Array,
    sigma: Array,
    lam: Array,
    p: Array,
    q: Array,
    validate_args: bool = True,
) -> Array:
    """
    Quantile function of the Skew Generalized T distribution.

    Inverts the CDF through the inverse regularized incomplete beta function.

    Raises
    ------
    UnsupportedRegimeError
        If ``p`` or ``q`` is infinite.
    """
    prob, mu, sigma, lam, p, q = _as_float(prob, mu, sigma, lam, p, q)

    if validate_args:
        check_domain(
            (prob >= 0.0) & (prob <= 1.0), "prob must be in [0, 1]", "prob", prob
        )
        _check_params(sigma, lam, p, q)

    if _is_inf(p, "p") or _is_inf(q, "q"):
        raise UnsupportedRegimeError(
            "The quantile function is not implemented for infinite p or q."
        )

    left = 0.5 * (1.0 - lam)
    right = 0.5 * (1.0 + lam)

    # prob = left * I_{1-k}(q, 1/p) below the mode
    w_lower = jnp.clip(prob / left, 0.0, 1.0)
    one_m_k = inc_beta_inverse(w_lower, q, 1.0 / p, validate_args=False)
    t_lower = q * (1.0 - one_m_k) / one_m_k
    x_lower = mu - sigma * (1.0 - lam) * t_lower ** (1.0 / p)

    # prob = left + right * I_k(1/p, q) above the mode
    w_upper = jnp.clip((prob - left) / right, 0.0, 1.0)
    k = inc_beta_inverse(w_upper, 1.0 / p, q, validate_args=False)
    t_upper = q * k / (1.0 - k)
    x_upper = mu + sigma * (1.0 + lam) * t_upper ** (1.0 / p)

    return jnp.where(prob < left, x_lower, x_upper)


def variance_adjusted_sgt(
    sigma: Array, lam: Array, p: Array, q: Array, validate_args: bool = True
) -> Array:
    """
    Returns the scale parameter under which the Skew Generalized T distribution has
    the variance ``sigma**2``.

    Requires ``p * q > 2``, otherwise the variance does not exist.
    """
    sigma, lam, p, q = _as_float(sigma, lam, p, q)

    if validate_args:
        _check_params(sigma, lam, p, q)
    check_domain(p * q > 2.0, "p * q must be > 2", "p * q", p * q)

    if _is_inf(p, "p"):
        return sigma * jnp.sqrt(3.0)

    lam2 = lam**2

    if _is_inf(q, "q"):
        g1 = jss.gammaln(1.0 / p)
        a = jnp.pi * (1.0 + 3.0 * lam2) * jnp.exp(jss.gammaln(3.0 / p) - g1)
        b = 16.0 ** (1.0 / p) * lam2 * jnp.exp(2.0 * jss.gammaln(0.5 + 1.0 / p))
        return sigma * jnp.sqrt(jnp.pi / (a - b))

    b1 = jss.betaln(1.0 / p, q)
    ratio2 = jnp.exp(jss.betaln(2.0 / p, q - 1.0 / p) - b1)
    ratio3 = jnp.exp(jss.betaln(3.0 / p, q - 2.0 / p) - b1)
    moment = (3.0 * lam2 + 1.0) * ratio3 - 4.0 * lam2 * ratio2**2
    return sigma / (q ** (1.0 / p) * jnp.sqrt(moment))


def mean_centered_sgt(
    x: Array,
    sigma: Array,
    lam: Array,
    p: Array,
    q: Array,
    validate_args: bool = True,
) -> Array:
    """
    Shifts ``x`` by the distance between the mean and the mode of the Skew
    Generalized T distribution.

    Evaluating :func:`.sgt_lpdf` at the returned value instead of ``x`` gives a
    distribution whose mean, rather than mode, is ``mu``. Requires ``p * q > 1``,
    otherwise the mean does not exist.
    """
    x, sigma, lam, p, q = _as_float(x, sigma, lam, p, q)

    if validate_args:
        _check_params(sigma, lam, p, q)
    check_domain(p * q > 1.0, "p * q must be > 1", "p * q", p * q)

    if _is_inf(p, "p"):
        return x + sigma * lam

    if _is_inf(q, "q"):
        log_ratio = jss.gammaln(0.5 + 1.0 / p) - 0.5 * jnp.log(jnp.pi)
        return x + 2.0 ** (2.0 / p) * sigma * lam * jnp.exp(log_ratio)

    log_ratio = jss.betaln(2.0 / p, q - 1.0 / p) - jss.betaln(1.0 / p, q)
    return x + 2.0 * sigma * lam * q ** (1.0 / p) * jnp.exp(log_ratio)


class SkewGeneralizedT(tfd.Distribution):
    """
    The Skew Generalized T distribution.

    Parameters
    ----------
    loc
        Location. The mode, or the mean if ``mean_cent=True``.
    scale
        Scale. The standard deviation if ``var_adj=True``.
    skewness
        Skewness in ``(-1, 1)``.
    p, q
        Positive shape parameters.
    mean_cent
        Whether ``loc`` is the mean of the distribution. Requires ``p * q > 1``.
    var_adj
        Whether ``scale`` is the standard deviation of the distribution. Requires
        ``p * q > 2``.
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
    Samples are drawn by inverting the CDF at standard uniform draws, which is
    not supported for infinite shape parameters.
    """

    def __init__(
        self,
        loc: Array,
        scale: Array,
        skewness: Array,
        p: Array,
        q: Array,
        mean_cent: bool = False,
        var_adj: bool = False,
        validate_args: bool = False,
        allow_nan_stats: bool = True,
        name: str = "SkewGeneralizedT",
    ):
        parameters = dict(locals())

        loc, scale, skewness, p, q = _as_float(loc, scale, skewness, p, q)
        self._loc = loc
        self._scale = scale
        self._skewness = skewness
        self._p = p
        self._q = q
        self._mean_cent = mean_cent
        self._var_adj = var_adj

        if validate_args:
            _check_params(scale, skewness, p, q)

        self._broadcast_batch_shape = jnp.broadcast_shapes(
            *(jnp.shape(par) for par in (loc, scale, skewness, p, q))
        )

        if var_adj:
            self._sgt_scale = variance_adjusted_sgt(
                scale, skewness, p, q, validate_args=validate_args
            )
        else:
            self._sgt_scale = scale

        if mean_cent:
            self._shift = mean_centered_sgt(
                0.0, self._sgt_scale, skewness, p, q, validate_args=validate_args
            )
        else:
            self._shift = jnp.zeros((), dtype=loc.dtype)

        super().__init__(
            dtype=loc.dtype,
            reparameterization_type=reparameterization.FULLY_REPARAMETERIZED,
            validate_args=validate_args,
            allow_nan_stats=allow_nan_stats,
            parameters=parameters,
            name=name,
        )

    @property
    def loc(self) -> Array:
        """Locations."""
        return self._loc

    @property
    def scale(self) -> Array:
        """Scales, as passed to the constructor."""
        return self._scale

    @property
    def skewness(self) -> Array:
        """Skewness parameters."""
        return self._skewness

    @property
    def p(self) -> Array:
        """First shape parameters, controlling the peakedness."""
        return self._p

    @property
    def q(self) -> Array:
        """Second shape parameters, controlling the tail thickness."""
        return self._q

    def _args(self) -> tuple[Array, Array, Array, Array, Array]:
        return self._loc, self._sgt_scale, self._skewness, self._p, self._q

    def _log_prob(self, x: Array) -> Array:
        return sgt_lpdf(x + self._shift, *self._args(), validate_args=False)

    def _log_cdf(self, x: Array) -> Array:
        return sgt_lcdf(x + self._shift, *self._args(), validate_args=False)

    def _log_survival_function(self, x: Array) -> Array:
        return sgt_lccdf(x + self._shift, *self._args(), validate_args=False)

    def _quantile(self, value: Array) -> Array:
        x = sgt_qf(value, *self._args(), validate_args=self.validate_args)
        return x - self._shift

    def _sample_n(self, n, seed=None) -> Array:
        shape = [n] + list(self._broadcast_batch_shape)
        u = jax.random.uniform(seed, shape=shape, dtype=self.dtype)
        return self._quantile(u)

    def _event_shape(self):
        return tf.TensorShape(())

    def _event_shape_tensor(self):
        return jnp.array((), dtype=jnp.int32)

    def _batch_shape(self):
        return tf.TensorShape(self._broadcast_batch_shape)

    def _batch_shape_tensor(self):
        return jnp.array(self._broadcast_batch_shape, dtype=jnp.int32)
