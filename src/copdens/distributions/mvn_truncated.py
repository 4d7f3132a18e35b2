"""
The truncated multivariate normal log-density in a Cholesky parametrization.
"""

from __future__ import annotations

from functools import partial
from typing import Any, Literal

import jax
import jax.numpy as jnp
from jax.scipy.stats import norm

from ..errors import check_domain
from ..special import inv_Phi, log_diff_exp, log_Phi

Array = Any
LatentScale = Literal["uniform", "normal"]


def _check_cholesky(L: Array) -> None:
    diag = jnp.diagonal(L, axis1=-2, axis2=-1)
    check_domain(
        diag > 0.0,
        "the Cholesky factor must have a positive diagonal",
        "diag(L)",
        diag,
    )


@partial(jnp.vectorize, signature="(k),(k),(k),(k,k),(k),(k),(k),(k)->()")
def _truncated_log_prob(u, y, mu, L, lb, ub, lb_ind, ub_ind):
    K = u.shape[-1]

    def step(k, carry):
        z, lp = carry
        # z is zero from position k onwards, so the full row gives L[k, :k] @ z[:k]
        constrain = mu[k] + L[k] @ z
        scale = L[k, k]

        # observed coordinate: the latent value is y
        z_free = (y[k] - constrain) / scale
        lp_free = norm.logpdf(z_free) - jnp.log(scale)

        # bounded coordinate: u locates the latent value within the bounds
        has_lb = lb_ind[k] == 1
        has_ub = ub_ind[k] == 1
        lb_safe = jnp.where(has_lb, lb[k], 0.0)
        ub_safe = jnp.where(has_ub, ub[k], 0.0)
        log_lower = jnp.where(has_lb, log_Phi((lb_safe - constrain) / scale), -jnp.inf)
        log_upper = jnp.where(has_ub, log_Phi((ub_safe - constrain) / scale), 0.0)
        log_mass = log_diff_exp(log_upper, log_lower)

        bounded = has_lb | has_ub
        u_safe = jnp.where(bounded, u[k], 0.5)
        v = jnp.exp(jnp.logaddexp(log_lower, jnp.log(u_safe) + log_mass))
        z_bounded = inv_Phi(v)

        z = z.at[k].set(jnp.where(bounded, z_bounded, z_free))
        lp = lp + jnp.where(bounded, log_mass, lp_free)
        return z, lp

    init = (jnp.zeros(K, dtype=L.dtype), jnp.zeros((), dtype=L.dtype))
    _, lp = jax.lax.fori_loop(0, K, step, init)
    return lp


def multi_normal_cholesky_truncated_lpdf(
    u: Array,
    mu: Array,
    L: Array,
    lb: Array,
    ub: Array,
    lb_ind: Array,
    ub_ind: Array,
    latent_scale: LatentScale = "uniform",
    validate_args: bool = True,
) -> Array:
    """
    Log-density of a truncated multivariate normal latent vector.

    The latent vector is constructed coordinate by coordinate from innovations
    ``z``. With ``c_k = mu[k] + L[k, :k] @ z[:k]`` and ``d_k = L[k, k]``:

    * If coordinate ``k`` has no active bound, the latent value is
      ``inv_Phi(u[k])``, or ``u[k]`` itself with ``latent_scale="normal"``, and
      contributes its conditional normal log-density.
    * Otherwise, ``u[k]`` in ``(0, 1)`` places the latent value within the
      conditional truncation interval and the coordinate contributes the log of
      the conditional probability mass of that interval.

    The Cholesky factor is used directly, so the correlation matrix is never
    materialized.

    Parameters
    ----------
    u
        Latent vector. Bounded coordinates are on the uniform scale, unbounded
        coordinates on the scale given by ``latent_scale``.
    mu
        Mean vector of the untruncated normal.
    L
        Lower-triangular Cholesky factor of the (correlation) matrix.
    lb, ub
        Lower and upper truncation bounds on the normal scale.
    lb_ind, ub_ind
        Integer indicators, ``1`` where the corresponding bound is active.
    latent_scale
        ``"uniform"`` or ``"normal"``, the scale of the unbounded coordinates of
        ``u``. Values on the normal scale avoid the rounding of ``Phi`` to one in the
        upper tail.
    validate_args
        If ``True`` and ``L`` is concrete, raises a
        :class:`~copdens.errors.DomainError` if the diagonal of ``L`` is not
        positive.

    Returns
    -------
    The log-density, batched over the leading dimensions of the arguments.
    """
    if latent_scale not in ("uniform", "normal"):
        raise ValueError(f"Unrecognized argument value {latent_scale=}")

    L = jnp.asarray(L)
    if validate_args:
        _check_cholesky(L)

    dtype = L.dtype
    u = jnp.asarray(u, dtype=dtype)
    y = inv_Phi(u) if latent_scale == "uniform" else u

    return _truncated_log_prob(
        u,
        y,
        jnp.broadcast_to(jnp.asarray(mu, dtype=dtype), jnp.shape(u)),
        L,
        jnp.asarray(lb, dtype=dtype),
        jnp.asarray(ub, dtype=dtype),
        jnp.asarray(lb_ind, dtype=jnp.int32),
        jnp.asarray(ub_ind, dtype=jnp.int32),
    )
