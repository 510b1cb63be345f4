"""MPI communication context built on mpi4py.

Array collectives use the buffer-based (upper-case) mpi4py calls on
contiguous float64 numpy arrays, so slices travel without pickling.
Object collectives (``bcast``, ``allgather``) use the pickle-based calls.
"""

from __future__ import annotations

import numpy as np
from mpi4py import MPI

from .communication import CommContext


class MPIContext(CommContext):
    """Communication context over an mpi4py communicator.

    Parameters
    ----------
    comm : MPI.Comm
        Communicator shared by all participating ranks
    """

    def __init__(self, comm: MPI.Comm):
        super().__init__(rank=comm.Get_rank(), size=comm.Get_size())
        self.comm = comm

    def bcast(self, obj):
        return self.comm.bcast(obj, root=self.root)

    def allgather(self, obj):
        return self.comm.allgather(obj)

    def scatter_rows(self, sendbuf, counts, displs, recvbuf):
        # Blocks until the root has sent and this rank has received its block
        if self.is_root:
            send = [np.ascontiguousarray(sendbuf), counts, displs, MPI.DOUBLE]
        else:
            send = None
        self.comm.Scatterv(send, [recvbuf, MPI.DOUBLE], root=self.root)

    def allgather_slices(self, local, counts, displs, out):
        # Round barrier: returns only once every rank's slice has arrived
        self.comm.Allgatherv(
            [np.ascontiguousarray(local), MPI.DOUBLE],
            [out, counts, displs, MPI.DOUBLE],
        )

    def gather_slices(self, local, counts, displs, out):
        recv = [out, counts, displs, MPI.DOUBLE] if self.is_root else None
        self.comm.Gatherv([np.ascontiguousarray(local), MPI.DOUBLE], recv, root=self.root)

    def allreduce_max(self, values):
        send = np.ascontiguousarray(values, dtype=np.float64)
        recv = np.empty_like(send)
        self.comm.Allreduce(send, recv, op=MPI.MAX)
        return recv

    def barrier(self):
        self.comm.Barrier()

    def wtime(self) -> float:
        return MPI.Wtime()

    def get_name(self) -> str:
        return "mpi"
