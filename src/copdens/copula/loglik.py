"""
# Log-likelihood of the mixed discrete-continuous Gaussian copula

The outcomes of every observation are mapped to one latent normal vector, ordered as
``[normal margins][Bernoulli margins][Poisson margins]``. The latent values of the
normal margins are observed as the z-scores of the outcomes, i.e. through the
probability integral transform followed by the normal quantile function. The latent
values of the discrete margins are auxiliary uniforms that are only constrained to
lie within bounds derived from the outcomes (data augmentation, see Smith & Khaled,
2012, JASA 107(497)). The log-likelihood is the sum of the truncated multivariate
normal log-densities of the latent vectors over the observations. It does not include
the Jacobian ``-log sigma`` of the normal margins, which
:class:`.MixedCopulaLogLik` adds by default.

Two strategies assemble the latent vectors and bounds:

* ``"loop"`` walks the coordinates of an observation with a running cursor,
* ``"segment"`` transforms every family block of all observations at once.

Both give the same result.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Literal

import jax
import jax.numpy as jnp

from ..distributions.mvn_truncated import (
    LatentScale,
    _check_cholesky,
    multi_normal_cholesky_truncated_lpdf,
)
from ..errors import check_domain
from ..special import bernoulli_cdf, inv_Phi, poisson_cdf
from .bounds import bound_indicators
from .glm import glm_means
from .marginals import bernoulli_marginal, normal_latent, poisson_marginal
from .partition import Family, MarginPartition

Array = Any
Strategy = Literal["segment", "loop"]

logger = logging.getLogger(__name__)


def _as_partition(partition: MarginPartition | Sequence[int]) -> MarginPartition:
    if isinstance(partition, MarginPartition):
        return partition
    return MarginPartition.from_counts(partition)


def _as_block(Y: Array | None, n: int, size: int, dtype: Any, name: str) -> Array:
    if Y is None:
        if size > 0:
            raise ValueError(f"{name} is required for {size} margins.")
        return jnp.zeros((n, 0), dtype=dtype)
    return jnp.asarray(Y, dtype=dtype)


def assemble_loop(
    Yn: Array,
    Yb: Array,
    Yp: Array,
    u_aux: Array,
    mu_glm: Array,
    sigma: Array,
    partition: MarginPartition,
    approx: bool = False,
) -> tuple[Array, Array, Array]:
    """
    Assembles the latent vectors and their bounds coordinate by coordinate.

    See :func:`.mixed_cop` for the arguments.

    Returns
    -------
    A tuple ``(u, lb, ub)`` of ``N x J`` arrays. The normal coordinates of ``u`` are
    latent standard normal values, the discrete coordinates auxiliary uniforms.
    """
    J = partition.n_margins
    families = partition.families()

    def observation(yn, yb, yp, aux, mu):
        u = jnp.zeros(J, dtype=mu.dtype)
        lb = jnp.full(J, -jnp.inf, dtype=mu.dtype)
        ub = jnp.full(J, jnp.inf, dtype=mu.dtype)

        # position of the cursor within the block of the current family
        cursor = {family: 0 for family in Family}
        n_aux = 0

        for pos, family in enumerate(families):
            j = cursor[family]
            cursor[family] += 1

            if not family.is_discrete:
                z = normal_latent(
                    yn[j], mu[pos], sigma[j], approx=approx, validate_args=False
                )
                u = u.at[pos].set(z)
                continue

            u = u.at[pos].set(aux[n_aux])
            n_aux += 1

            if family is Family.BERNOULLI:
                threshold = inv_Phi(bernoulli_cdf(0, mu[pos]))
                lb = lb.at[pos].set(jnp.where(yb[j] == 1, threshold, -jnp.inf))
                ub = ub.at[pos].set(jnp.where(yb[j] == 0, threshold, jnp.inf))
            else:
                below = inv_Phi(poisson_cdf(yp[j] - 1, mu[pos]))
                lb = lb.at[pos].set(jnp.where(yp[j] > 0, below, -jnp.inf))
                ub = ub.at[pos].set(inv_Phi(poisson_cdf(yp[j], mu[pos])))

        return u, lb, ub

    return jax.vmap(observation)(Yn, Yb, Yp, u_aux, mu_glm)


def assemble_segment(
    Yn: Array,
    Yb: Array,
    Yp: Array,
    u_aux: Array,
    mu_glm: Array,
    sigma: Array,
    partition: MarginPartition,
    approx: bool = False,
) -> tuple[Array, Array, Array]:
    """
    Assembles the latent vectors and their bounds one family block at a time.

    See :func:`.mixed_cop` for the arguments.

    Returns
    -------
    A tuple ``(u, lb, ub)`` of ``N x J`` arrays, as returned by
    :func:`.assemble_loop`.
    """
    u_blocks = []
    lb_blocks = []
    ub_blocks = []
    aux_start = 0

    for block in partition.blocks:
        mu = mu_glm[:, block.slice]

        if not block.family.is_discrete:
            u = normal_latent(Yn, mu, sigma, approx=approx, validate_args=False)
            lb = jnp.full_like(u, -jnp.inf)
            ub = jnp.full_like(u, jnp.inf)
        else:
            u = u_aux[:, aux_start : aux_start + block.size]
            aux_start += block.size

            if block.family is Family.BERNOULLI:
                lb, ub = bernoulli_marginal(Yb, mu)
            else:
                lb, ub = poisson_marginal(Yp, mu)

        u_blocks.append(jnp.asarray(u, dtype=mu_glm.dtype))
        lb_blocks.append(lb)
        ub_blocks.append(ub)

    return (
        jnp.concatenate(u_blocks, axis=-1),
        jnp.concatenate(lb_blocks, axis=-1),
        jnp.concatenate(ub_blocks, axis=-1),
    )


_ASSEMBLERS = {"loop": assemble_loop, "segment": assemble_segment}


def accumulate(
    u: Array,
    lb: Array,
    ub: Array,
    lb_ind: Array,
    ub_ind: Array,
    L: Array,
    tmvn_mu: Array | None = None,
    validate_args: bool = True,
    latent_scale: LatentScale = "uniform",
) -> Array:
    """
    Sums the truncated multivariate normal log-densities of the ``N x J`` latent
    vectors over the observations.

    The observations are evaluated in parallel, so the sum is subject to
    reduction-order rounding. ``latent_scale`` is the scale of the unbounded
    coordinates of ``u``, see
    :func:`~copdens.distributions.multi_normal_cholesky_truncated_lpdf`.
    """
    if tmvn_mu is None:
        tmvn_mu = jnp.zeros(jnp.shape(u)[-1], dtype=jnp.result_type(L))

    log_prob = multi_normal_cholesky_truncated_lpdf(
        u,
        tmvn_mu,
        L,
        lb,
        ub,
        lb_ind,
        ub_ind,
        latent_scale=latent_scale,
        validate_args=validate_args,
    )
    return jnp.sum(log_prob)


def mixed_cop(
    Yn: Array | None,
    Yb: Array | None,
    Yp: Array | None,
    u_aux: Array | None,
    mu_glm: Array,
    sigma: Array,
    L: Array,
    lb_ind: Array,
    ub_ind: Array,
    partition: MarginPartition | Sequence[int],
    tmvn_mu: Array | None = None,
    strategy: Strategy = "segment",
    approx: bool = False,
    validate_args: bool = True,
) -> Array:
    """
    Log-likelihood of the mixed discrete-continuous Gaussian copula.

    Parameters
    ----------
    Yn
        ``N x Jn`` normal outcomes.
    Yb
        ``N x Jb`` Bernoulli outcomes in ``{0, 1}``.
    Yp
        ``N x Jp`` non-negative Poisson outcomes.
    u_aux
        ``N x (Jb + Jp)`` auxiliary uniforms in ``(0, 1)``, one per discrete
        outcome, first the Bernoulli, then the Poisson margins. They place the
        latent normal values of the discrete outcomes within their bounds.
    mu_glm
        ``N x J`` means of the margins, see :func:`~copdens.copula.glm.glm_means`.
    sigma
        ``Jn`` standard deviations of the normal margins.
    L
        ``J x J`` Cholesky factor of the copula correlation matrix.
    lb_ind, ub_ind
        ``N x J`` bound indicators, see
        :func:`~copdens.copula.bounds.bound_indicators`.
    partition
        The margin partition, or the counts ``[Jn, Jb, Jp]``.
    tmvn_mu
        Mean of the latent normal vector. Defaults to zeros.
    strategy
        ``"segment"`` or ``"loop"``, the way the latent vectors are assembled.
    approx
        Whether to map the normal margins through
        :func:`~copdens.special.Phi_approx` and back. Otherwise their z-scores enter
        the density directly.
    validate_args
        If ``True``, concrete values of ``sigma`` and ``L`` are checked and a
        :class:`~copdens.errors.DomainError` is raised for invalid values.

    Returns
    -------
    The log-likelihood summed over the observations.
    """
    partition = _as_partition(partition)

    try:
        assemble = _ASSEMBLERS[strategy]
    except KeyError:
        raise ValueError(f"Unrecognized argument value {strategy=}") from None

    if partition.n_margins == 0:
        logger.warning("No margins in the partition, the log-likelihood is zero")
        return jnp.zeros((), dtype=jnp.result_type(float))

    mu_glm = jnp.asarray(mu_glm, dtype=jnp.result_type(mu_glm, float))
    sigma = jnp.broadcast_to(
        jnp.asarray(sigma, dtype=mu_glm.dtype), (partition.n_normal,)
    )
    L = jnp.asarray(L, dtype=mu_glm.dtype)

    if validate_args:
        check_domain(sigma > 0.0, "sigma must be > 0", "sigma", sigma)

    n = mu_glm.shape[0]
    Yn = _as_block(Yn, n, partition.n_normal, mu_glm.dtype, "Yn")
    Yb = _as_block(Yb, n, partition.n_bernoulli, jnp.int32, "Yb")
    Yp = _as_block(Yp, n, partition.n_poisson, jnp.int32, "Yp")
    u_aux = _as_block(u_aux, n, partition.n_discrete, mu_glm.dtype, "u_aux")

    u, lb, ub = assemble(Yn, Yb, Yp, u_aux, mu_glm, sigma, partition, approx=approx)
    return accumulate(
        u, lb, ub, lb_ind, ub_ind, L, tmvn_mu, validate_args, latent_scale="normal"
    )


def mixed_cop_lp(*args, **kwargs) -> Array:
    """
    Log-likelihood of the mixed Gaussian copula with the ``"loop"`` strategy.
    See :func:`.mixed_cop`.
    """
    return mixed_cop(*args, strategy="loop", **kwargs)


def mixed_cop_sp_lp(*args, **kwargs) -> Array:
    """
    Log-likelihood of the mixed Gaussian copula with the ``"segment"`` strategy,
    which batches the work of every family. See :func:`.mixed_cop`.
    """
    return mixed_cop(*args, strategy="segment", **kwargs)


class MixedCopulaLogLik:
    """
    Log-likelihood of the mixed Gaussian copula for a fixed dataset.

    Holds the outcomes, the design matrix and the bound indicators, which are
    computed once, and evaluates the log-likelihood and its gradient for varying
    parameters.

    Parameters
    ----------
    Yn, Yb, Yp
        The normal, Bernoulli and Poisson outcomes. See :func:`.mixed_cop`.
    X
        Concatenated design matrix. See :func:`~copdens.copula.glm.glm_means`.
    n_covariates
        The number of covariates of every margin.
    partition
        The margin partition, or the counts ``[Jn, Jb, Jp]``.
    strategy
        ``"segment"`` or ``"loop"``.
    approx
        Whether to map the normal margins through
        :func:`~copdens.special.Phi_approx` and back.
    normal_jacobian
        Whether to add the log-Jacobian ``-N * sum(log(sigma))`` of the normal
        margins, which makes the value the joint log-density of the normal outcomes
        and the augmented discrete data. Without it, the value increases in
        ``sigma`` without bound.
    jit
        Whether to compile the log-likelihood and its gradient with :func:`jax.jit`.
    validate_args
        If ``True``, concrete parameters are checked before every evaluation.

    Examples
    --------
    Two normal margins and one Poisson margin with an intercept each:

    >>> import jax.numpy as jnp
    >>> from copdens.copula import MixedCopulaLogLik
    >>> Yn = jnp.array([[0.1, -0.3], [1.2, 0.4]])
    >>> Yp = jnp.array([[0], [3]])
    >>> X = jnp.ones((2, 3))
    >>> loglik = MixedCopulaLogLik(Yn, None, Yp, X, [1, 1, 1], [2, 0, 1])
    >>> value = loglik(
    ...     coefficients=jnp.zeros(3),
    ...     sigma=jnp.ones(2),
    ...     L=jnp.eye(3),
    ...     u_aux=jnp.full((2, 1), 0.5),
    ... )
    """

    def __init__(
        self,
        Yn: Array | None,
        Yb: Array | None,
        Yp: Array | None,
        X: Array,
        n_covariates: Sequence[int],
        partition: MarginPartition | Sequence[int],
        strategy: Strategy = "segment",
        approx: bool = False,
        normal_jacobian: bool = True,
        jit: bool = True,
        validate_args: bool = True,
    ):
        if strategy not in _ASSEMBLERS:
            raise ValueError(f"Unrecognized argument value {strategy=}")

        self.partition = _as_partition(partition)
        self.X = jnp.asarray(X, dtype=jnp.result_type(X, float))
        self.n_covariates = tuple(int(k) for k in n_covariates)
        self.strategy = strategy
        self.approx = approx
        self.normal_jacobian = normal_jacobian
        self.validate_args = validate_args

        n = self.X.shape[0]
        self.Yn = _as_block(Yn, n, self.partition.n_normal, self.X.dtype, "Yn")
        self.Yb = _as_block(Yb, n, self.partition.n_bernoulli, jnp.int32, "Yb")
        self.Yp = _as_block(Yp, n, self.partition.n_poisson, jnp.int32, "Yp")

        self.lb_ind, self.ub_ind = bound_indicators(
            self.Yb, self.Yp, self.partition, n_obs=n
        )

        grad_fn = jax.grad(self._log_lik, argnums=(0, 1, 2, 3))
        value_and_grad_fn = jax.value_and_grad(self._log_lik, argnums=(0, 1, 2, 3))

        if jit:
            self._log_lik_fn = jax.jit(self._log_lik)
            self._grad_fn = jax.jit(grad_fn)
            self._value_and_grad_fn = jax.jit(value_and_grad_fn)
        else:
            self._log_lik_fn = self._log_lik
            self._grad_fn = grad_fn
            self._value_and_grad_fn = value_and_grad_fn

        logger.info(
            f"Set up copula log-likelihood for {n} observations and "
            f"{self.partition}, using the {strategy} strategy"
        )

    @property
    def n_obs(self) -> int:
        return self.X.shape[0]

    def _log_lik(self, coefficients, sigma, L, u_aux, tmvn_mu=None):
        mu_glm = glm_means(coefficients, self.X, self.partition, self.n_covariates)
        value = mixed_cop(
            self.Yn,
            self.Yb,
            self.Yp,
            u_aux,
            mu_glm,
            sigma,
            L,
            self.lb_ind,
            self.ub_ind,
            self.partition,
            tmvn_mu=tmvn_mu,
            strategy=self.strategy,
            approx=self.approx,
            validate_args=False,
        )

        if not self.normal_jacobian:
            return value

        sigma = jnp.broadcast_to(sigma, (self.partition.n_normal,))
        return value - self.n_obs * jnp.sum(jnp.log(sigma))

    def _validate(self, sigma: Array, L: Array) -> None:
        if not self.validate_args:
            return
        sigma = jnp.asarray(sigma)
        check_domain(sigma > 0.0, "sigma must be > 0", "sigma", sigma)
        _check_cholesky(jnp.asarray(L))

    def _prepare(self, u_aux: Array | None) -> Array:
        if u_aux is None:
            return _as_block(
                None, self.n_obs, self.partition.n_discrete, self.X.dtype, "u_aux"
            )
        return jnp.asarray(u_aux, dtype=self.X.dtype)

    def log_lik(
        self,
        coefficients: Array,
        sigma: Array,
        L: Array,
        u_aux: Array | None = None,
        tmvn_mu: Array | None = None,
    ) -> Array:
        """
        Evaluates the log-likelihood.

        Parameters
        ----------
        coefficients
            Flat vector of regression coefficients.
        sigma
            Standard deviations of the normal margins.
        L
            Cholesky factor of the copula correlation matrix.
        u_aux
            Auxiliary uniforms of the discrete outcomes. Only optional without
            discrete margins.
        tmvn_mu
            Mean of the latent normal vector. Defaults to zeros.
        """
        self._validate(sigma, L)
        return self._log_lik_fn(coefficients, sigma, L, self._prepare(u_aux), tmvn_mu)

    __call__ = log_lik

    def grad(
        self,
        coefficients: Array,
        sigma: Array,
        L: Array,
        u_aux: Array | None = None,
        tmvn_mu: Array | None = None,
    ) -> dict[str, Array]:
        """
        Evaluates the gradient of the log-likelihood with respect to
        ``coefficients``, ``sigma``, ``L`` and ``u_aux``. See :meth:`.log_lik`.
        """
        self._validate(sigma, L)
        grads = self._grad_fn(coefficients, sigma, L, self._prepare(u_aux), tmvn_mu)
        return dict(zip(("coefficients", "sigma", "L", "u_aux"), grads))

    def value_and_grad(
        self,
        coefficients: Array,
        sigma: Array,
        L: Array,
        u_aux: Array | None = None,
        tmvn_mu: Array | None = None,
    ) -> tuple[Array, dict[str, Array]]:
        """
        Evaluates the log-likelihood and its gradient. See :meth:`.grad`.
        """
        self._validate(sigma, L)
        value, grads = self._value_and_grad_fn(
            coefficients, sigma, L, self._prepare(u_aux), tmvn_mu
        )
        return value, dict(zip(("coefficients", "sigma", "L", "u_aux"), grads))
