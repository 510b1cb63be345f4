"""Assembly of the distributed solution on the root."""

from __future__ import annotations

import numpy as np

from .communication import CommContext
from .datastructures import Partition
from .partition import counts_displs


class ResultAssembler:
    """Gathers each rank's authoritative slice into the root's output buffer.

    Parameters
    ----------
    context : CommContext
        Communication context shared by all ranks
    partitions : list[Partition]
        Row ranges of every rank, as used during the iteration
    """

    def __init__(self, context: CommContext, partitions: list[Partition]):
        self.context = context
        self.partitions = partitions

    def assemble(self, x_local: np.ndarray, out: np.ndarray | None) -> np.ndarray | None:
        """Gather slices in index order into ``out[:n]`` on the root.

        Blocking on every rank. Returns the filled view on the root and None
        elsewhere.
        """
        n = self.partitions[-1].end
        counts, displs = counts_displs(self.partitions)
        if self.context.is_root:
            x_global = np.empty(n, dtype=np.float64)
        else:
            x_global = None
        self.context.gather_slices(x_local, counts, displs, x_global)

        if not self.context.is_root:
            return None
        if out is not None:
            out[:n] = x_global
            return out[:n]
        return x_global
