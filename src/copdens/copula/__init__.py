"""
The mixed discrete-continuous Gaussian copula.
"""

from .bounds import bound_indicators
from .glm import glm_means, inverse_link, linear_predictors
from .loglik import (
    MixedCopulaLogLik,
    accumulate,
    assemble_loop,
    assemble_segment,
    mixed_cop,
    mixed_cop_lp,
    mixed_cop_sp_lp,
)
from .marginals import (
    bernoulli_marginal,
    normal_latent,
    normal_marginal,
    poisson_marginal,
)
from .partition import Family, MarginBlock, MarginPartition

__all__ = [
    "Family",
    "MarginBlock",
    "MarginPartition",
    "MixedCopulaLogLik",
    "accumulate",
    "assemble_loop",
    "assemble_segment",
    "bernoulli_marginal",
    "bound_indicators",
    "glm_means",
    "inverse_link",
    "linear_predictors",
    "mixed_cop",
    "mixed_cop_lp",
    "mixed_cop_sp_lp",
    "normal_latent",
    "normal_marginal",
    "poisson_marginal",
]
