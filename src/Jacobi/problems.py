"""Test problems for the Jacobi solvers."""

from __future__ import annotations

import numpy as np

from .datastructures import TaskData


def generate_diagonally_dominant(
    n: int, seed: int | None = None, min_val: float = -10.0, max_val: float = 10.0
) -> tuple[np.ndarray, np.ndarray]:
    """Random strictly diagonally dominant system.

    Off-diagonal entries are uniform in [min_val, max_val]; each diagonal entry
    is the row's off-diagonal absolute sum plus |u| + 1.
    """
    rng = np.random.default_rng(seed)
    A = rng.uniform(min_val, max_val, size=(n, n))
    np.fill_diagonal(A, 0.0)
    A[np.diag_indices(n)] = np.abs(A).sum(axis=1) + np.abs(rng.uniform(min_val, max_val, size=n)) + 1.0
    b = rng.uniform(min_val, max_val, size=n)
    return A, b


def example_2x2() -> tuple[np.ndarray, np.ndarray]:
    """4x + y = 1, 2x + 3y = 2, solution (1/11, 7/11)."""
    return np.array([[4.0, 1.0], [2.0, 3.0]]), np.array([1.0, 2.0])


def identity_system(v: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    v = np.asarray(v, dtype=np.float64)
    return np.eye(v.size), v.copy()


def slow_dominant_system(n: int, margin: float = 1e-2) -> tuple[np.ndarray, np.ndarray]:
    """Barely dominant tridiagonal system, Jacobi contracts by about 1/(1+margin/2) per round."""
    A = 2.0 * (1.0 + margin) * np.eye(n) - np.eye(n, k=1) - np.eye(n, k=-1)
    b = np.ones(n)
    return A, b


def residual_inf(A: np.ndarray, x: np.ndarray, b: np.ndarray) -> float:
    """||A x - b||_inf"""
    return float(np.max(np.abs(A @ x - b)))


def make_task(A: np.ndarray | None, b: np.ndarray | None, is_root: bool = True) -> TaskData:
    """TaskData for the root (with buffers and a zeroed output) or an empty one for workers."""
    if not is_root:
        return TaskData()
    n = b.size
    return TaskData(n=n, matrix=A, rhs=b, out=np.zeros(n))
