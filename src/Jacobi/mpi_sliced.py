"""MPI Jacobi solver with 1D sliced (row-block) decomposition."""

import numpy as np

from .assembly import ResultAssembler
from .base import JacobiSolver
from .datastructures import SolverState
from .errors import SingularDiagonalError, raise_collective
from .partition import Partitioner, counts_displs
from .validation import check_diagonal


class MPIJacobiSliced(JacobiSolver):
    """MPI sliced decomposition: each rank owns a contiguous block of rows.

    Every rank keeps a full copy of the iterate x. A round updates the owned
    entries from the previous iterate, then all ranks exchange their slices
    (allgather) before anyone starts the next round.
    """

    method = "mpi_sliced_jacobi"

    def __init__(self, task=None, context=None, **kwargs):
        super().__init__(task, context, **kwargs)
        if self.verbose and self.context.is_root:
            print(f"Using {'numba' if self.config.use_numba else 'numpy'} kernels with {self.context.size} MPI ranks")

    def _method_initialize(self):
        self.partitioner = Partitioner(self.context)
        self.local = self.partitioner.distribute(self.task)
        partition = self.local.partition

        # Workers never saw the full matrix, check the diagonal they will divide by
        error = None
        try:
            check_diagonal(self.local.diag_local, self.config.diag_epsilon, offset=partition.start)
        except SingularDiagonalError as exc:
            error = exc
        raise_collective(self.context, error)

        self.n = self.local.n
        self.rows = partition.size
        self.counts, self.displs = counts_displs(self.partitioner.partitions)

    def _method_execute(self):
        ctx = self.context
        A_local, b_local, diag_local = self.local.A_local, self.local.b_local, self.local.diag_local
        own = slice(self.local.partition.start, self.local.partition.end)

        x_old = np.zeros(self.n)
        x_new = np.zeros(self.n)
        x_new_local = np.empty(self.rows)
        r_local = np.empty(self.rows)

        # Residual of the starting guess feeds the first update
        t_comp_start = ctx.wtime()
        self._residual(A_local, b_local, x_old, r_local)
        self.compute_times.append(ctx.wtime() - t_comp_start)

        state = SolverState.ITERATING
        while state is SolverState.ITERATING:
            # Local Jacobi update of the owned rows
            t_comp_start = ctx.wtime()
            local_delta = self._update(x_old[own], r_local, diag_local, x_new_local)
            self.compute_times.append(ctx.wtime() - t_comp_start)

            # Exchange slices; blocks until every rank's update has arrived
            t_comm_start = ctx.wtime()
            ctx.allgather_slices(x_new_local, self.counts, self.displs, x_new)
            self.comm_times.append(ctx.wtime() - t_comm_start)

            # Residual of the new iterate, reused by the next update
            t_comp_start = ctx.wtime()
            local_residual = self._residual(A_local, b_local, x_new, r_local)
            self.compute_times.append(ctx.wtime() - t_comp_start)

            # Global convergence measure
            t_comm_start = ctx.wtime()
            residual, delta = self.checker.reduce(local_residual, local_delta)
            self.comm_times.append(ctx.wtime() - t_comm_start)

            x_old, x_new = x_new, x_old
            self.iterations += 1
            state = self.checker.status(self.iterations, residual, delta)

        self.x_local = x_old[own].copy()
        return state

    def _method_assemble(self):
        assembler = ResultAssembler(self.context, self.partitioner.partitions)
        return assembler.assemble(self.x_local, self.task.out if self.context.is_root else None)
