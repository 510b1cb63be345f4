"""Distributed Jacobi solver for dense diagonally dominant linear systems."""

from .base import JacobiSolver
from .communication import CommContext, SerialContext, create_context
from .datastructures import (
    GlobalResults,
    LocalSystem,
    Partition,
    PerRankResults,
    RuntimeConfig,
    SolverState,
    TaskData,
)
from .errors import NonConvergenceWarning, ShapeError, SingularDiagonalError, SolverStateError
from .kernels import jacobi_update_numba, jacobi_update_numpy, local_residual_numba, local_residual_numpy
from .mpi_sliced import MPIJacobiSliced
from .partition import Partitioner, counts_displs, decompose_rows
from .problems import (
    example_2x2,
    generate_diagonally_dominant,
    identity_system,
    make_task,
    residual_inf,
    slow_dominant_system,
)
from .sequential import SequentialJacobi

__all__ = [
    "JacobiSolver",
    "CommContext",
    "SerialContext",
    "create_context",
    "GlobalResults",
    "LocalSystem",
    "Partition",
    "PerRankResults",
    "RuntimeConfig",
    "SolverState",
    "TaskData",
    "NonConvergenceWarning",
    "ShapeError",
    "SingularDiagonalError",
    "SolverStateError",
    "jacobi_update_numba",
    "jacobi_update_numpy",
    "local_residual_numba",
    "local_residual_numpy",
    "MPIJacobiSliced",
    "Partitioner",
    "counts_displs",
    "decompose_rows",
    "example_2x2",
    "generate_diagonally_dominant",
    "identity_system",
    "make_task",
    "residual_inf",
    "slow_dominant_system",
    "SequentialJacobi",
]
