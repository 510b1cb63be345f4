"""Sequential Jacobi solver."""

import numpy as np

from .assembly import ResultAssembler
from .base import JacobiSolver
from .communication import SerialContext
from .datastructures import Partition, SolverState


class SequentialJacobi(JacobiSolver):
    """Sequential Jacobi solver (single process, no row decomposition).

    Works directly on views of the task buffers instead of scattered copies.
    """

    method = "sequential_jacobi"

    def __init__(self, task=None, **kwargs):
        super().__init__(task, SerialContext(), **kwargs)

    def _method_initialize(self):
        self.n = self.task.n
        self.rows = self.n
        self.A = self.task.matrix.reshape(self.n, self.n)
        self.b = self.task.rhs
        self.diag = np.diagonal(self.A).copy()

    def _method_execute(self):
        x1 = np.zeros(self.n)
        x2 = np.zeros(self.n)
        r = np.empty(self.n)
        x = x1

        t_comp_start = self.context.wtime()
        self._residual(self.A, self.b, x1, r)
        self.compute_times.append(self.context.wtime() - t_comp_start)

        state = SolverState.ITERATING
        for i in range(self.config.max_iter):
            if i % 2 == 0:
                xold, x = x1, x2
            else:
                x, xold = x1, x2

            # Jacobi step, then the residual of the new iterate
            t_comp_start = self.context.wtime()
            delta = self._update(xold, r, self.diag, x)
            residual = self._residual(self.A, self.b, x, r)
            self.compute_times.append(self.context.wtime() - t_comp_start)

            residual, delta = self.checker.reduce(residual, delta)
            self.iterations = i + 1
            state = self.checker.status(self.iterations, residual, delta)
            if state is not SolverState.ITERATING:
                break

        self.x_final = x.copy()
        return state

    def _method_assemble(self):
        assembler = ResultAssembler(self.context, [Partition(rank=0, start=0, end=self.n)])
        return assembler.assemble(self.x_final, self.task.out)
