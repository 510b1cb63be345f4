"""Input validation for the Jacobi solvers."""

from __future__ import annotations

import numpy as np

from .communication import CommContext
from .datastructures import TaskData
from .errors import ShapeError, SingularDiagonalError, raise_collective


def check_shapes(n: int, matrix_size: int, rhs_size: int, out_size: int) -> None:
    """Raise ShapeError unless A has n*n values, b has n and out holds at least n."""
    if n < 1:
        raise ShapeError(f"System size must be positive, got n={n}")
    if matrix_size != n * n:
        raise ShapeError(f"Matrix has {matrix_size} elements, expected n*n = {n * n}")
    if rhs_size != n:
        raise ShapeError(f"Right-hand side has {rhs_size} elements, expected n = {n}")
    if out_size < n:
        raise ShapeError(f"Output buffer holds {out_size} elements, need at least n = {n}")


def check_output(out) -> None:
    """Raise ShapeError unless ``out`` is a writable float64 array."""
    if not isinstance(out, np.ndarray):
        raise ShapeError(
            f"Output buffer must be a writable float64 array or bytes-like buffer, got {type(out).__name__}"
        )
    if out.dtype != np.float64:
        raise ShapeError(f"Output buffer has dtype {out.dtype}, expected float64")
    if not out.flags.writeable:
        raise ShapeError("Output buffer is read-only")


def check_diagonal(diag: np.ndarray, epsilon: float = 0.0, offset: int = 0) -> None:
    """Raise SingularDiagonalError for the first entry with ``|a_ii| <= epsilon``.

    ``offset`` is the global index of ``diag[0]``, so errors name global rows.
    """
    bad = np.flatnonzero(~(np.abs(diag) > epsilon))
    if bad.size:
        i = int(bad[0])
        raise SingularDiagonalError(offset + i, float(diag[i]))


def is_diagonally_dominant(A: np.ndarray) -> bool:
    """Check |a_ii| >= sum_{j != i} |a_ij| for every row."""
    absA = np.abs(A)
    diag = np.diagonal(absA)
    return bool(np.all(diag >= absA.sum(axis=1) - diag))


class Validator:
    """Checks the root's buffers before any computation.

    Only the root holds buffers to check. Its verdict is shared with every
    rank, so a failure raises the same exception everywhere.

    Parameters
    ----------
    context : CommContext
        Communication context shared by all ranks
    diag_epsilon : float
        Diagonal entries with magnitude at or below this are rejected
    """

    def __init__(self, context: CommContext, diag_epsilon: float = 0.0):
        self.context = context
        self.diag_epsilon = diag_epsilon
        self.dominant = True

    def validate(self, task: TaskData) -> bool:
        error = None
        dominant = True
        if self.context.is_root:
            try:
                self._validate_root(task)
                dominant = is_diagonally_dominant(task.matrix.reshape(task.n, task.n))
            except (ShapeError, SingularDiagonalError) as exc:
                error = exc
        raise_collective(self.context, error)
        self.dominant = self.context.bcast(dominant)
        return True

    def _validate_root(self, task: TaskData) -> None:
        def size(buf):
            return 0 if buf is None else buf.size

        if task.out is not None:
            check_output(task.out)
        check_shapes(task.n, size(task.matrix), size(task.rhs), size(task.out))
        A = task.matrix.reshape(task.n, task.n)
        check_diagonal(np.diagonal(A), self.diag_epsilon)
