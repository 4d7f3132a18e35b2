"""
Tests for the Frank copula.
"""
import math

import jax
import jax.numpy as jnp
import jax.random as jrd
import numpy as np
import pytest
from pytest import approx

from copdens.distributions import FrankCopula, frank_copula_lcdf, frank_copula_lpdf
from copdens.errors import DomainError

key = jrd.PRNGKey(1307)


def frank_density(u: float, v: float, theta: float) -> float:
    """The Frank copula density, written out with the math module."""
    num = theta * (1 - math.exp(-theta)) * math.exp(-theta * (u + v))
    denom = (1 - math.exp(-theta)) - (1 - math.exp(-theta * u)) * (
        1 - math.exp(-theta * v)
    )
    return num / denom**2


class TestLogDensity:
    def test_closed_form(self):
        expected = math.log(frank_density(0.5, 0.5, 2.0))
        assert frank_copula_lpdf(0.5, 0.5, 2.0) == approx(expected, abs=1e-10)

    @pytest.mark.parametrize("theta", [-4.0, -0.5, 0.3, 7.0])
    @pytest.mark.parametrize("u,v", [(0.1, 0.9), (0.35, 0.6), (0.8, 0.75)])
    def test_against_formula(self, u, v, theta):
        expected = math.log(frank_density(u, v, theta))
        assert frank_copula_lpdf(u, v, theta) == approx(expected, rel=1e-10)

    def test_symmetric(self):
        assert frank_copula_lpdf(0.2, 0.7, 3.0) == approx(
            frank_copula_lpdf(0.7, 0.2, 3.0)
        )

    def test_integrates_to_one(self):
        n = 400
        grid = (jnp.arange(n) + 0.5) / n
        u, v = jnp.meshgrid(grid, grid)
        density = jnp.exp(frank_copula_lpdf(u, v, 2.5))
        assert float(jnp.mean(density)) == approx(1.0, abs=1e-4)

    def test_grad_finite(self):
        grad = jax.grad(frank_copula_lpdf, argnums=2)(0.3, 0.6, 2.0)
        assert jnp.isfinite(grad)


class TestLogCdf:
    def test_uniform_margins(self):
        assert jnp.exp(frank_copula_lcdf(0.3, 1.0, 4.0)) == approx(0.3)
        assert jnp.exp(frank_copula_lcdf(1.0, 0.65, -2.0)) == approx(0.65)

    def test_positive_dependence(self):
        # exceeds the independence copula u * v for theta > 0
        assert jnp.exp(frank_copula_lcdf(0.4, 0.4, 3.0)) > 0.16


class TestDomain:
    def test_theta_zero(self):
        with pytest.raises(DomainError, match="theta must be finite and non-zero"):
            frank_copula_lpdf(0.5, 0.5, 0.0)

    def test_outside_unit_interval(self):
        with pytest.raises(DomainError, match="found u = 1.5"):
            frank_copula_lpdf(1.5, 0.5, 2.0)

        with pytest.raises(DomainError, match="v must be in"):
            frank_copula_lcdf(0.5, -0.1, 2.0)

    def test_skipped_under_jit(self):
        lpdf = jax.jit(frank_copula_lpdf)
        assert jnp.isnan(lpdf(0.5, 0.5, 0.0))


class TestFrankCopula:
    def test_shapes(self):
        dist = FrankCopula(2.0)
        assert dist.event_shape.as_list() == [2]
        assert dist.batch_shape.as_list() == []

        batched = FrankCopula(jnp.array([1.0, 2.0, 3.0]))
        assert batched.batch_shape.as_list() == [3]

    def test_log_prob(self):
        dist = FrankCopula(2.0)
        x = jnp.array([[0.5, 0.5], [0.1, 0.8]])
        expected = frank_copula_lpdf(x[:, 0], x[:, 1], 2.0)
        assert np.asarray(dist.log_prob(x)) == approx(np.asarray(expected))

    def test_log_cdf(self):
        dist = FrankCopula(-3.0)
        x = jnp.array([0.25, 0.5])
        assert dist.log_cdf(x) == approx(frank_copula_lcdf(0.25, 0.5, -3.0))

    def test_sample(self):
        dist = FrankCopula(5.0)
        samples = dist.sample(4000, seed=key)

        assert samples.shape == (4000, 2)
        assert jnp.all((samples >= 0.0) & (samples <= 1.0))

        corr = np.corrcoef(np.asarray(samples).T)[0, 1]
        assert corr == approx(0.64, abs=0.05)

    def test_validate_args(self):
        with pytest.raises(DomainError):
            FrankCopula(0.0, validate_args=True)
