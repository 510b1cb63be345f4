"""Exceptions and warnings raised by the Jacobi solvers.

Shape and diagonal errors must stop every rank of a distributed solve, not
only the rank that detected them. ``raise_collective`` turns a locally
detected error into one that is raised identically on all ranks.
"""

from __future__ import annotations


class ShapeError(ValueError):
    """Matrix/vector sizes do not match n, or the output buffer is too small."""


class SingularDiagonalError(ArithmeticError):
    """A diagonal entry is zero (or not above ``diag_epsilon`` in magnitude)."""

    def __init__(self, row: int, value: float):
        super().__init__(row, value)
        self.row = row
        self.value = value

    def __str__(self) -> str:
        return f"Diagonal entry a[{self.row},{self.row}] = {self.value!r} cannot be used as a divisor"


class NonConvergenceWarning(RuntimeWarning):
    """The iteration cap was reached before the tolerance was met."""


class SolverStateError(RuntimeError):
    """A lifecycle method was called out of order."""


def raise_collective(context, error: Exception | None) -> None:
    """Raise the same error on every rank if any rank reports one.

    Blocks until every rank of ``context`` has called it. Each rank passes its
    local error (or None); the error from the lowest rank wins.
    """
    errors = context.allgather(error)
    for err in errors:
        if err is not None:
            raise err
