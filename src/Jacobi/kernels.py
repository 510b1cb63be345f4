"""Computational kernels for the Jacobi solvers.

This module contains the per-rank compute steps used by the solver
implementations. They are pure functions on numpy arrays with no class
dependencies, so each one has a numba-compiled twin.

A round of Jacobi on the owned rows is split in two kernels:

1. ``local_residual``: r_i = b_i - sum_j a_ij x_j for every owned row i
2. ``jacobi_update``: x_i_new = x_i + r_i / a_ii

which together give the classic update
x_i_new = (b_i - sum_{j != i} a_ij x_j) / a_ii, reading only the previous
full iterate. The residual of the new iterate, computed at the start of the
next round, doubles as the convergence measure.
"""

from __future__ import annotations

import numpy as np
from numba import njit, prange


def local_residual_numpy(
    A_local: np.ndarray,
    b_local: np.ndarray,
    x: np.ndarray,
    r_local: np.ndarray,
) -> float:
    """Compute the residual of the owned rows using pure numpy.

    Parameters
    ----------
    A_local : np.ndarray
        Owned rows of A, shape (m, n)
    b_local : np.ndarray
        Owned entries of b, shape (m,)
    x : np.ndarray
        Full current iterate, shape (n,)
    r_local : np.ndarray
        Output residual, shape (m,)

    Returns
    -------
    float
        max_i |r_i| over the owned rows, 0.0 for an empty slice
    """
    if b_local.size == 0:
        return 0.0
    np.subtract(b_local, A_local @ x, out=r_local)
    return float(np.max(np.abs(r_local)))


def jacobi_update_numpy(
    x_local: np.ndarray,
    r_local: np.ndarray,
    diag_local: np.ndarray,
    x_new_local: np.ndarray,
) -> float:
    """Apply the Jacobi correction to the owned rows using pure numpy.

    Parameters
    ----------
    x_local : np.ndarray
        Owned entries of the previous iterate, shape (m,)
    r_local : np.ndarray
        Residual of the previous iterate on the owned rows, shape (m,)
    diag_local : np.ndarray
        a_ii for the owned rows, shape (m,)
    x_new_local : np.ndarray
        Output, owned entries of the new iterate, shape (m,)

    Returns
    -------
    float
        max_i |x_i_new - x_i| over the owned rows, 0.0 for an empty slice
    """
    if x_local.size == 0:
        return 0.0
    np.add(x_local, r_local / diag_local, out=x_new_local)
    return float(np.max(np.abs(x_new_local - x_local)))


@njit(parallel=True, cache=True)
def local_residual_numba(A_local, b_local, x, r_local):
    """Numba version of ``local_residual_numpy`` with rows split over threads."""
    m, n = A_local.shape
    for i in prange(m):
        s = 0.0
        for j in range(n):
            s += A_local[i, j] * x[j]
        r_local[i] = b_local[i] - s

    rmax = 0.0
    for i in range(m):
        a = abs(r_local[i])
        if np.isnan(a):
            return a
        rmax = max(rmax, a)
    return rmax


@njit(parallel=True, cache=True)
def jacobi_update_numba(x_local, r_local, diag_local, x_new_local):
    """Numba version of ``jacobi_update_numpy``."""
    m = x_local.shape[0]
    for i in prange(m):
        x_new_local[i] = x_local[i] + r_local[i] / diag_local[i]

    dmax = 0.0
    for i in range(m):
        a = abs(x_new_local[i] - x_local[i])
        if np.isnan(a):
            return a
        dmax = max(dmax, a)
    return dmax
