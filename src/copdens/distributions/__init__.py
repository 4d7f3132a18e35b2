"""
Closed-form densities for JAX-TFP.
"""

from .frank import FrankCopula, frank_copula_lcdf, frank_copula_lpdf
from .mvn_truncated import multi_normal_cholesky_truncated_lpdf
from .sgt import (
    SkewGeneralizedT,
    mean_centered_sgt,
    sgt_lccdf,
    sgt_lcdf,
    sgt_lpdf,
    sgt_qf,
    variance_adjusted_sgt,
)

__all__ = [
    "FrankCopula",
    "SkewGeneralizedT",
    "frank_copula_lcdf",
    "frank_copula_lpdf",
    "mean_centered_sgt",
    "multi_normal_cholesky_truncated_lpdf",
    "sgt_lccdf",
    "sgt_lcdf",
    "sgt_lpdf",
    "sgt_qf",
    "variance_adjusted_sgt",
]
