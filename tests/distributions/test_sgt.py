"""
Tests for the Skew Generalized T distribution.
"""
import jax
import jax.numpy as jnp
import jax.random as jrd
import numpy as np
import pytest
import scipy.stats as st
from pytest import approx
from scipy.integrate import trapezoid

from copdens.distributions import (
    SkewGeneralizedT,
    mean_centered_sgt,
    sgt_lccdf,
    sgt_lcdf,
    sgt_lpdf,
    sgt_qf,
    variance_adjusted_sgt,
)
from copdens.errors import DomainError, UnsupportedRegimeError

key = jrd.PRNGKey(42)


def moments(log_prob, lower: float = -60.0, upper: float = 60.0, n: int = 600_001):
    """Mean and variance by the trapezoidal rule."""
    x = np.linspace(lower, upper, n)
    density = np.exp(np.asarray(log_prob(jnp.asarray(x))))
    total = trapezoid(density, x)
    mean = trapezoid(x * density, x)
    var = trapezoid((x - mean) ** 2 * density, x)
    return total, mean, var


class TestLogDensity:
    @pytest.mark.parametrize("delta", [0.1, 0.7, 2.0, 15.0])
    def test_symmetric_without_skew(self, delta):
        mu = 1.5
        left = sgt_lpdf(mu - delta, mu, 2.0, 0.0, 1.7, 3.0)
        right = sgt_lpdf(mu + delta, mu, 2.0, 0.0, 1.7, 3.0)
        assert left == approx(right, rel=1e-12)

    def test_student_t(self):
        # p = 2, q = df / 2 and sigma = sqrt(2) give a Student t distribution
        df = 5.0
        x = jnp.linspace(-6.0, 6.0, 13)
        lp = sgt_lpdf(x, 0.0, jnp.sqrt(2.0), 0.0, 2.0, df / 2)
        assert np.asarray(lp) == approx(st.t.logpdf(np.asarray(x), df), rel=1e-10)

    def test_normal_limit(self):
        x = jnp.linspace(-4.0, 4.0, 9)
        lp = sgt_lpdf(x, 0.0, jnp.sqrt(2.0), 0.0, 2.0, jnp.inf)
        assert np.asarray(lp) == approx(st.norm.logpdf(np.asarray(x)), rel=1e-10)

    def test_laplace_limit(self):
        x = jnp.linspace(-4.0, 4.0, 9)
        lp = sgt_lpdf(x, 0.5, 1.5, 0.0, 1.0, jnp.inf)
        expected = st.laplace.logpdf(np.asarray(x), loc=0.5, scale=1.5)
        assert np.asarray(lp) == approx(expected, rel=1e-10)

    def test_uniform_limit(self):
        lp = sgt_lpdf(jnp.array([-2.0, 0.0, 2.0, 4.0]), 1.0, 1.0, 0.5, jnp.inf, 2.0)
        # the support is [mu - sigma * (1 - lambda), mu + sigma * (1 + lambda)]
        assert np.asarray(lp) == approx(
            [-np.inf, -np.inf, -np.log(2.0), -np.inf]
        )

    @pytest.mark.parametrize("lam", [-0.6, 0.0, 0.4])
    def test_integrates_to_one(self, lam):
        total, _, _ = moments(lambda x: sgt_lpdf(x, 0.3, 1.5, lam, 2.0, 5.0))
        assert total == approx(1.0, abs=1e-6)

    def test_grad_finite(self):
        grad_fn = jax.grad(sgt_lpdf, argnums=(1, 2, 3, 4, 5))
        grad = grad_fn(0.8, 0.2, 1.1, 0.3, 2.0, 4.0)
        assert all(jnp.isfinite(g) for g in grad)


class TestLogCdf:
    def test_student_t(self):
        df = 7.0
        x = jnp.linspace(-5.0, 5.0, 11)
        lcdf = sgt_lcdf(x, 0.0, jnp.sqrt(2.0), 0.0, 2.0, df / 2)
        assert np.asarray(lcdf) == approx(st.t.logcdf(np.asarray(x), df), rel=1e-8)

    def test_normal_limit(self):
        x = jnp.linspace(-3.0, 3.0, 7)
        lcdf = sgt_lcdf(x, 0.0, jnp.sqrt(2.0), 0.0, 2.0, jnp.inf)
        assert np.asarray(lcdf) == approx(st.norm.logcdf(np.asarray(x)), rel=1e-8)

    @pytest.mark.parametrize("lam", [-0.5, 0.25])
    def test_mode_quantile(self, lam):
        # the probability below the mode is (1 - lambda) / 2
        assert jnp.exp(sgt_lcdf(2.0, 2.0, 0.7, lam, 1.5, 2.5)) == approx((1 - lam) / 2)

    def test_complement(self):
        x = jnp.linspace(-4.0, 4.0, 17)
        args = (0.2, 1.3, -0.35, 1.4, 3.0)
        total = jnp.exp(sgt_lcdf(x, *args)) + jnp.exp(sgt_lccdf(x, *args))
        assert np.asarray(total) == approx(1.0, rel=1e-9)

    def test_uniform_limit(self):
        lcdf = sgt_lcdf(jnp.array([-1.0, 0.0, 1.0, 3.0]), 0.0, 1.0, 0.0, jnp.inf, 3.0)
        assert np.asarray(jnp.exp(lcdf)) == approx([0.0, 0.5, 1.0, 1.0])

    def test_matches_density(self):
        args = (0.0, 1.2, 0.45, 2.5, 2.0)
        total, _, _ = moments(lambda x: sgt_lpdf(x, *args), lower=-60.0, upper=0.8)
        assert jnp.exp(sgt_lcdf(0.8, *args)) == approx(total, rel=1e-6)


class TestQuantile:
    @pytest.mark.parametrize("lam", [-0.7, 0.0, 0.5])
    def test_inverts_cdf(self, lam):
        args = (1.0, 0.8, lam, 1.8, 4.0)
        x = jnp.linspace(-2.0, 4.0, 7)
        prob = jnp.exp(sgt_lcdf(x, *args))
        assert np.asarray(sgt_qf(prob, *args)) == approx(np.asarray(x), abs=1e-6)

    def test_student_t(self):
        prob = np.array([0.05, 0.3, 0.5, 0.9])
        x = sgt_qf(prob, 0.0, jnp.sqrt(2.0), 0.0, 2.0, 2.5)
        assert np.asarray(x) == approx(st.t.ppf(prob, 5.0), rel=1e-6, abs=1e-9)

    def test_limits(self):
        x = sgt_qf(jnp.array([0.0, 1.0]), 0.0, 1.0, 0.2, 2.0, 3.0)
        assert x[0] == -jnp.inf
        assert x[1] == jnp.inf

    def test_infinite_shape_unsupported(self):
        with pytest.raises(UnsupportedRegimeError):
            sgt_qf(0.5, 0.0, 1.0, 0.0, jnp.inf, 2.0)

        with pytest.raises(UnsupportedRegimeError):
            sgt_qf(0.5, 0.0, 1.0, 0.0, 2.0, jnp.inf)

    def test_domain(self):
        with pytest.raises(DomainError, match="prob must be in"):
            sgt_qf(1.2, 0.0, 1.0, 0.0, 2.0, 2.0)


class TestMomentAdjustment:
    def test_variance_requires_pq_above_two(self):
        with pytest.raises(DomainError, match="p \\* q must be > 2"):
            variance_adjusted_sgt(1.0, 0.0, 2.0, 1.0)

        with pytest.raises(DomainError, match="p \\* q must be > 2"):
            variance_adjusted_sgt(1.0, 0.0, 0.5, 3.0)

    def test_mean_requires_pq_above_one(self):
        match = "p \\* q must be > 1, found p \\* q = 1.0"
        with pytest.raises(DomainError, match=match):
            mean_centered_sgt(0.0, 1.0, 0.0, 2.0, 0.5)

    def test_student_t_variance(self):
        # a Student t with df = 5 has variance 5 / 3
        df = 5.0
        scale = variance_adjusted_sgt(1.0, 0.0, 2.0, df / 2)
        assert scale == approx(jnp.sqrt(2.0) / jnp.sqrt(df / (df - 2)), rel=1e-10)

    def test_mean_without_skew(self):
        assert mean_centered_sgt(0.7, 1.0, 0.0, 2.0, 3.0) == approx(0.7)

    @pytest.mark.parametrize("q", [4.0, jnp.inf])
    def test_moments(self, q):
        dist = SkewGeneralizedT(
            loc=0.5, scale=1.3, skewness=0.4, p=2.0, q=q, mean_cent=True, var_adj=True
        )
        total, mean, var = moments(dist.log_prob)
        assert total == approx(1.0, abs=1e-6)
        assert mean == approx(0.5, abs=1e-5)
        assert var == approx(1.3**2, rel=1e-4)

    def test_uniform_limit(self):
        assert variance_adjusted_sgt(2.0, 0.3, jnp.inf, 3.0) == approx(
            2.0 * np.sqrt(3.0)
        )
        assert mean_centered_sgt(0.0, 2.0, 0.3, jnp.inf, 3.0) == approx(0.6)


class TestDomain:
    def test_sigma(self):
        with pytest.raises(DomainError, match="sigma must be > 0, found sigma = -1.0"):
            sgt_lpdf(0.0, 0.0, -1.0, 0.0, 2.0, 2.0)

    def test_lambda(self):
        with pytest.raises(DomainError, match="lambda must be in"):
            sgt_lcdf(0.0, 0.0, 1.0, 1.0, 2.0, 2.0)

    @pytest.mark.parametrize("p,q", [(0.0, 2.0), (2.0, -1.0)])
    def test_shapes(self, p, q):
        with pytest.raises(DomainError):
            sgt_lpdf(0.0, 0.0, 1.0, 0.0, p, q)

    def test_mixed_infinite_shapes(self):
        with pytest.raises(UnsupportedRegimeError, match="p must be either finite"):
            sgt_lpdf(0.5, 0.0, 1.0, 0.0, jnp.array([2.0, jnp.inf]), 5.0)

        with pytest.raises(UnsupportedRegimeError, match="q must be either finite"):
            sgt_lcdf(0.5, 0.0, 1.0, 0.0, 2.0, jnp.array([jnp.inf, 5.0]))

    def test_all_infinite_shapes(self):
        lp = sgt_lpdf(0.5, 0.0, 1.0, 0.0, 2.0, jnp.array([jnp.inf, jnp.inf]))
        assert lp.shape == (2,)
        assert jnp.all(jnp.isfinite(lp))


class TestSkewGeneralizedT:
    def test_shapes(self):
        dist = SkewGeneralizedT(jnp.zeros(3), 1.0, 0.2, 2.0, 3.0)
        assert dist.batch_shape.as_list() == [3]
        assert dist.event_shape.as_list() == []

    def test_parameters(self):
        dist = SkewGeneralizedT(0.5, 1.2, -0.1, 2.0, jnp.inf)
        assert dist.loc == approx(0.5)
        assert dist.scale == approx(1.2)
        assert dist.skewness == approx(-0.1)
        assert dist.p == approx(2.0)
        assert jnp.isposinf(dist.q)

    def test_log_prob(self):
        dist = SkewGeneralizedT(0.1, 1.4, -0.3, 1.6, 2.2)
        x = jnp.array([-1.0, 0.1, 2.5])
        expected = sgt_lpdf(x, 0.1, 1.4, -0.3, 1.6, 2.2)
        assert np.asarray(dist.log_prob(x)) == approx(np.asarray(expected))

    def test_cdf_and_quantile(self):
        dist = SkewGeneralizedT(0.1, 1.4, -0.3, 1.6, 2.2, mean_cent=True)
        x = jnp.array([-1.0, 0.1, 2.5])
        prob = dist.cdf(x)
        assert np.asarray(dist.quantile(prob)) == approx(np.asarray(x), abs=1e-6)
        assert np.asarray(prob + dist.survival_function(x)) == approx(1.0)

    def test_sample(self):
        dist = SkewGeneralizedT(2.0, 1.0, 0.5, 2.0, 5.0, mean_cent=True)
        samples = dist.sample(5000, seed=key)
        assert samples.shape == (5000,)
        assert float(jnp.mean(samples)) == approx(2.0, abs=0.1)

    def test_validate_args(self):
        with pytest.raises(DomainError):
            SkewGeneralizedT(0.0, 1.0, 1.5, 2.0, 2.0, validate_args=True)
