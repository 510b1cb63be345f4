"""Global stopping criterion for the distributed Jacobi iteration."""

from __future__ import annotations

import numpy as np

from .communication import CommContext
from .datastructures import SolverState

CRITERIA = ("residual", "delta")


class ConvergenceChecker:
    """Combines per-rank measures into one global verdict per round.

    Each rank reports the max residual and the max change over its own rows;
    a single max-reduction turns them into global values that are identical
    on every rank, so every rank stops on the same round.

    Parameters
    ----------
    context : CommContext
        Communication context shared by all ranks
    tolerance : float
        Converged when the chosen measure is strictly below this
    max_iter : int
        Forced stop after this many rounds
    criterion : {"residual", "delta"}
        "residual": max_i |b_i - (A x_new)_i|;
        "delta": max_i |x_i_new - x_i_old|
    """

    def __init__(self, context: CommContext, tolerance: float, max_iter: int, criterion: str = "residual"):
        if criterion not in CRITERIA:
            raise ValueError(f"Unknown convergence criterion '{criterion}'. Available criteria: {list(CRITERIA)}")
        if not tolerance > 0:
            raise ValueError(f"tolerance must be positive, got {tolerance}")
        if max_iter < 1:
            raise ValueError(f"max_iter must be at least 1, got {max_iter}")
        self.context = context
        self.tolerance = tolerance
        self.max_iter = max_iter
        self.criterion = criterion
        self.residual_history: list[float] = []
        self.delta_history: list[float] = []

    def reset(self) -> None:
        self.residual_history.clear()
        self.delta_history.clear()

    def reduce(self, local_residual: float, local_delta: float) -> tuple[float, float]:
        """Global (residual, delta). Blocking on every rank."""
        local = np.array([local_residual, local_delta])
        # NaN does not survive MPI.MAX reliably, inf does
        local[np.isnan(local)] = np.inf
        residual, delta = self.context.allreduce_max(local)
        self.residual_history.append(float(residual))
        self.delta_history.append(float(delta))
        return float(residual), float(delta)

    def measure(self, residual: float, delta: float) -> float:
        return residual if self.criterion == "residual" else delta

    def status(self, iteration: int, residual: float, delta: float) -> SolverState:
        """State after ``iteration`` completed rounds (1-based).

        A non-finite measure never counts as converged.
        """
        measure = self.measure(residual, delta)
        if np.isfinite(measure) and measure < self.tolerance:
            return SolverState.CONVERGED
        if iteration >= self.max_iter:
            return SolverState.MAX_ITERATIONS_REACHED
        return SolverState.ITERATING
