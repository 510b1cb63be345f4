"""Data structures for solver input, configuration and results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import numpy as np


class SolverState(Enum):
    """Lifecycle of a single solve call."""
    UNINITIALIZED = "uninitialized"
    VALIDATED = "validated"
    PARTITIONED = "partitioned"
    ITERATING = "iterating"
    CONVERGED = "converged"
    MAX_ITERATIONS_REACHED = "max_iterations"
    ASSEMBLED = "assembled"


def as_float_view(buf: Any) -> np.ndarray | None:
    """Wrap a raw input buffer as a flat float64 array (no copy where possible)."""
    if buf is None:
        return None
    if isinstance(buf, (bytes, bytearray, memoryview)):
        return np.frombuffer(buf, dtype=np.float64)
    return np.asarray(buf, dtype=np.float64).ravel()


def as_output_view(buf: Any) -> Any:
    """Flat float64 view onto caller memory, or ``buf`` unchanged if it has none."""
    if isinstance(buf, np.ndarray):
        return buf.reshape(-1)
    try:
        view = memoryview(buf)
    except TypeError:
        return buf
    if view.nbytes % np.dtype(np.float64).itemsize:
        return buf
    return np.frombuffer(buf, dtype=np.float64)


@dataclass
class TaskData:
    """Boundary input of a solve.

    Only the coordinating rank fills in the buffers. ``matrix`` holds n*n
    row-major doubles and ``rhs`` n doubles; both may be arrays, sequences or
    bytes-like objects. ``out`` receives the solution in place, so it must be
    a writable float64 array or a writable bytes-like buffer (e.g. a
    bytearray); anything else is rejected by validation. Workers pass
    ``TaskData()``.
    """
    n: int = 0
    matrix: Any = None
    rhs: Any = None
    out: Any = None

    def __post_init__(self):
        self.matrix = as_float_view(self.matrix)
        self.rhs = as_float_view(self.rhs)
        self.out = as_output_view(self.out)


@dataclass(frozen=True)
class Partition:
    """Half-open row range [start, end) owned by one rank."""
    rank: int
    start: int
    end: int

    @property
    def size(self) -> int:
        return self.end - self.start


@dataclass
class LocalSystem:
    """A rank's slice of the system: its rows of A and b, and their diagonal."""
    n: int
    partition: Partition
    A_local: np.ndarray
    b_local: np.ndarray
    diag_local: np.ndarray


@dataclass
class RuntimeConfig:
    """Global runtime configuration (same for all ranks)."""
    # Problem
    n: int = 0

    # Parallel setup
    mpi_size: int = 1
    method: str = ""

    # Jacobi Solver
    tolerance: float = 1e-6
    max_iter: int = 1000
    criterion: str = "residual"
    diag_epsilon: float = 0.0
    use_numba: bool = False
    num_threads: int = 1


@dataclass
class GlobalResults:
    """Global solver results (same for all ranks)."""
    # Convergence info
    iterations: int = 0
    converged: bool = False
    termination: str = ""
    final_residual: float = 0.0
    final_delta: float = 0.0
    residual_history: list[float] = field(default_factory=list)
    delta_history: list[float] = field(default_factory=list)
    # Global timings
    wall_time: float = 0.0
    compute_time: float = 0.0
    mpi_comm_time: float = 0.0


@dataclass
class PerRankResults:
    """Per-rank performance results."""
    mpi_rank: int = 0
    hostname: str = ""
    rows: int = 0
    wall_time: float = 0.0
    compute_time: float = 0.0
    mpi_comm_time: float = 0.0
