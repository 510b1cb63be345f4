"""Row-block decomposition of a dense linear system."""

from __future__ import annotations

import numpy as np

from .communication import CommContext
from .datastructures import LocalSystem, Partition, TaskData


def decompose_rows(n: int, size: int) -> list[Partition]:
    """Split rows [0, n) into ``size`` contiguous, load-balanced ranges.

    The first ``n % size`` ranks get one extra row. When ``size > n`` the
    trailing ranks get empty ranges.
    """
    if size < 1:
        raise ValueError(f"Need at least one rank, got {size}")
    base_size, remainder = divmod(n, size)
    partitions = []
    start = 0
    for rank in range(size):
        local_n = base_size + (1 if rank < remainder else 0)
        partitions.append(Partition(rank=rank, start=start, end=start + local_n))
        start += local_n
    return partitions


MAX_COUNT = np.iinfo(np.int32).max


def counts_displs(partitions: list[Partition], width: int = 1) -> tuple[np.ndarray, np.ndarray]:
    """Element counts and displacements for ``width`` values per row.

    MPI takes both as C ints, so every offset must stay below 2**31.
    Every rank computes the same arrays, so the error below is raised on
    all of them alike.

    Raises
    ------
    ValueError
        If the last element any rank addresses lies beyond ``MAX_COUNT``
    """
    last = max((p.end * width for p in partitions), default=0)
    if last > MAX_COUNT:
        raise ValueError(
            f"{last} elements exceed the 32-bit MPI count limit of {MAX_COUNT}; "
            "the system is too large for a single scatter"
        )
    counts = np.array([p.size * width for p in partitions], dtype=np.int32)
    displs = np.array([p.start * width for p in partitions], dtype=np.int32)
    return counts, displs


class Partitioner:
    """Distributes the rows of A and entries of b from the root to all ranks.

    Parameters
    ----------
    context : CommContext
        Communication context shared by all ranks
    """

    def __init__(self, context: CommContext):
        self.context = context
        self.partitions: list[Partition] = []

    def partition(self, n: int) -> list[Partition]:
        self.partitions = decompose_rows(n, self.context.size)
        return self.partitions

    def distribute(self, task: TaskData) -> LocalSystem:
        """Scatter the root's A and b. Blocking on every rank.

        Workers learn n by broadcast and receive a copy of their rows.
        """
        ctx = self.context
        n = ctx.bcast(task.n if ctx.is_root else None)
        partitions = self.partition(n)
        own = partitions[ctx.rank]

        A_local = np.empty((own.size, n), dtype=np.float64)
        b_local = np.empty(own.size, dtype=np.float64)

        counts, displs = counts_displs(partitions, width=n)
        ctx.scatter_rows(task.matrix if ctx.is_root else None, counts, displs, A_local.reshape(-1))

        counts, displs = counts_displs(partitions)
        ctx.scatter_rows(task.rhs if ctx.is_root else None, counts, displs, b_local)

        rows = np.arange(own.size)
        diag_local = A_local[rows, own.start + rows].copy()

        return LocalSystem(n=n, partition=own, A_local=A_local, b_local=b_local, diag_local=diag_local)
