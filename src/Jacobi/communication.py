"""Communication contexts for the distributed Jacobi solver.

Every solver component receives a context object explicitly; none of them
reaches for a global communicator. A context provides the collective
operations the solver needs:

- **bcast / allgather**: small Python objects (sizes, flags, errors, results)
- **scatter_rows**: one-time distribution of matrix rows from the root
- **allgather_slices**: the per-round exchange of updated solution slices
- **allreduce_max**: the per-round convergence reduction
- **gather_slices**: final assembly of the solution on the root

All collectives are blocking: a call returns only after every rank of the
group has entered the same call, so each one acts as a synchronization
point. Ranks must issue the collectives in the same order.

Available contexts:

- **SerialContext**: a single-rank group, used for single-process runs and tests
- **MPIContext** (``Jacobi.mpi_context``): wraps an mpi4py communicator

Runtime Selection:
```python
context = create_context("mpi")      # MPI.COMM_WORLD
context = create_context("serial")
```
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Any

import numpy as np


class CommContext(ABC):
    """Abstract base class for communication contexts.

    Attributes
    ----------
    rank : int
        Rank of the calling process within the group
    size : int
        Number of ranks in the group
    root : int
        Coordinating rank (always 0)
    """

    root = 0

    def __init__(self, rank: int, size: int):
        self.rank = rank
        self.size = size

    @property
    def is_root(self) -> bool:
        return self.rank == self.root

    @abstractmethod
    def bcast(self, obj: Any) -> Any:
        """Return the root's ``obj`` on every rank."""
        pass

    @abstractmethod
    def allgather(self, obj: Any) -> list[Any]:
        """Return every rank's ``obj`` on every rank, in rank order."""
        pass

    @abstractmethod
    def scatter_rows(
        self,
        sendbuf: np.ndarray | None,
        counts: np.ndarray,
        displs: np.ndarray,
        recvbuf: np.ndarray,
    ) -> None:
        """Scatter a flat root buffer by element counts and displacements.

        Parameters
        ----------
        sendbuf : np.ndarray or None
            Flat buffer on the root, ignored elsewhere
        counts : np.ndarray
            Number of elements sent to each rank
        displs : np.ndarray
            Offset of each rank's block in ``sendbuf``
        recvbuf : np.ndarray
            Receives ``counts[rank]`` elements
        """
        pass

    @abstractmethod
    def allgather_slices(
        self,
        local: np.ndarray,
        counts: np.ndarray,
        displs: np.ndarray,
        out: np.ndarray,
    ) -> None:
        """Write the concatenation of all ranks' slices into ``out`` on every rank."""
        pass

    @abstractmethod
    def gather_slices(
        self,
        local: np.ndarray,
        counts: np.ndarray,
        displs: np.ndarray,
        out: np.ndarray | None,
    ) -> None:
        """Write the concatenation of all ranks' slices into ``out`` on the root only."""
        pass

    @abstractmethod
    def allreduce_max(self, values: np.ndarray) -> np.ndarray:
        """Element-wise maximum of ``values`` over all ranks."""
        pass

    @abstractmethod
    def barrier(self) -> None:
        pass

    def wtime(self) -> float:
        return time.perf_counter()

    @abstractmethod
    def get_name(self) -> str:
        """Get context name for logging/reporting."""
        pass


class SerialContext(CommContext):
    """Single-rank context: every collective is a local copy."""

    def __init__(self):
        super().__init__(rank=0, size=1)

    def bcast(self, obj):
        return obj

    def allgather(self, obj):
        return [obj]

    def scatter_rows(self, sendbuf, counts, displs, recvbuf):
        recvbuf[:] = sendbuf[displs[0] : displs[0] + counts[0]]

    def allgather_slices(self, local, counts, displs, out):
        out[displs[0] : displs[0] + counts[0]] = local

    def gather_slices(self, local, counts, displs, out):
        out[displs[0] : displs[0] + counts[0]] = local

    def allreduce_max(self, values):
        return np.array(values, dtype=np.float64, copy=True)

    def barrier(self):
        pass

    def get_name(self) -> str:
        return "serial"


def create_context(name: str = "mpi", comm=None) -> CommContext:
    """Create a communication context by name.

    Parameters
    ----------
    name : str
        Context name: "mpi" or "serial"
    comm : mpi4py.MPI.Comm, optional
        Communicator for the "mpi" context (defaults to MPI.COMM_WORLD)

    Returns
    -------
    CommContext
        Initialized context object

    Raises
    ------
    ValueError
        If name is not recognized
    """
    if name == "serial":
        return SerialContext()
    if name == "mpi":
        from mpi4py import MPI
        from .mpi_context import MPIContext

        return MPIContext(comm if comm is not None else MPI.COMM_WORLD)

    raise ValueError(
        f"Unknown communication context '{name}'. "
        f"Available contexts: ['mpi', 'serial']"
    )
