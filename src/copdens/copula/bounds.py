"""
# Bound indicators of the latent coordinates

The indicators depend on the observed discrete outcomes only. They can be computed
once per dataset and reused for every evaluation of the log-likelihood.
"""

from __future__ import annotations

from typing import Any

import numpy as np

from .partition import Family, MarginPartition

Array = Any


def _n_obs(Yb: Array | None, Yp: Array | None, n_obs: int | None) -> int:
    if n_obs is not None:
        return int(n_obs)

    for Y in (Yb, Yp):
        if Y is not None and np.ndim(Y) == 2:
            return int(np.shape(Y)[0])

    raise ValueError(
        "Cannot infer the number of observations without discrete outcomes, "
        "please specify n_obs."
    )


def bound_indicators(
    Yb: Array | None,
    Yp: Array | None,
    partition: MarginPartition,
    n_obs: int | None = None,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Marks which truncation bounds of the latent coordinates are active.

    Parameters
    ----------
    Yb
        ``N x Jb`` array of Bernoulli outcomes in ``{0, 1}``. May be ``None`` if
        there are no Bernoulli margins.
    Yp
        ``N x Jp`` array of non-negative Poisson outcomes. May be ``None`` if there
        are no Poisson margins.
    partition
        The margin partition.
    n_obs
        The number of observations. Only required if there are no discrete
        outcomes to infer it from.

    Returns
    -------
    A tuple ``(lb_ind, ub_ind)`` of integer ``N x J`` arrays with ``1`` where the
    lower and upper bounds are active:

    * normal coordinates are never bounded,
    * a Bernoulli outcome of ``0`` has an upper bound, an outcome of ``1`` a lower
      bound,
    * a Poisson outcome always has an upper bound, and a lower bound if it is
      positive.
    """
    n = _n_obs(Yb, Yp, n_obs)
    lb_ind = np.zeros((n, partition.n_margins), dtype=np.int32)
    ub_ind = np.zeros((n, partition.n_margins), dtype=np.int32)

    if partition.n_bernoulli > 0:
        bernoulli = partition.slice(Family.BERNOULLI)
        yb = np.asarray(Yb)
        ub_ind[:, bernoulli] = yb == 0
        lb_ind[:, bernoulli] = yb == 1

    if partition.n_poisson > 0:
        poisson = partition.slice(Family.POISSON)
        yp = np.asarray(Yp)
        ub_ind[:, poisson] = 1
        lb_ind[:, poisson] = yp > 0

    return lb_ind, ub_ind
