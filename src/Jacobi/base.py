"""Base class for Jacobi linear-system solvers."""

from __future__ import annotations

import os
import socket
import warnings
from dataclasses import asdict

import numpy as np
import pandas as pd

from .communication import CommContext, SerialContext
from .convergence import ConvergenceChecker
from .datastructures import GlobalResults, PerRankResults, RuntimeConfig, SolverState, TaskData
from .errors import NonConvergenceWarning, SolverStateError
from .validation import Validator

TIMING_MODES = ("pipeline", "task")


class JacobiSolver:
    """Base class for all Jacobi solvers.

    Drives the lifecycle of one solve call and keeps the shared bookkeeping.
    Subclasses implement ``_method_initialize``, ``_method_execute`` and
    ``_method_assemble``.

    Lifecycle: ``validate() -> initialize() -> execute() -> finalize()``, or
    ``solve()`` for all four. Every rank of the context must make the same
    calls in the same order.

    Parameters
    ----------
    task : TaskData, optional
        System to solve. Only the root's buffers are read.
    context : CommContext, optional
        Communication context, defaults to a single-rank SerialContext
    tolerance : float, default 1e-6
        Convergence threshold (strict: converged when measure < tolerance)
    max_iter : int, default 1000
        Maximum number of rounds
    criterion : {"residual", "delta"}, default "residual"
        Convergence measure, see ConvergenceChecker
    diag_epsilon : float, default 0.0
        Diagonal entries with |a_ii| <= diag_epsilon are rejected
    use_numba : bool, default False
        Use numba JIT compiled kernels
    verbose : bool, default False
        Print convergence info (rank 0 only)
    """

    method = ""

    def __init__(self, task: TaskData | None = None, context: CommContext | None = None, **kwargs):
        # Extract verbose before passing to RuntimeConfig
        self.verbose = kwargs.pop("verbose", False)
        self.context = context if context is not None else SerialContext()
        self.task = task if task is not None else TaskData()

        self.config = RuntimeConfig(**kwargs)
        self.config.method = self.method
        self.config.mpi_size = self.context.size
        self.config.num_threads = self.get_num_threads(self.config.use_numba)

        self.checker = ConvergenceChecker(
            self.context, self.config.tolerance, self.config.max_iter, self.config.criterion
        )
        self.validator = Validator(self.context, self.config.diag_epsilon)
        self._residual, self._update = self._select_kernels(self.config.use_numba)

        self.state = SolverState.UNINITIALIZED
        self.n = 0
        self.rows = 0
        self.iterations = 0
        self.compute_times: list[float] = []
        self.comm_times: list[float] = []
        self.wall_time = 0.0

        self.x: np.ndarray | None = None
        self.global_results = GlobalResults()
        self.per_rank_results = PerRankResults()
        self.all_per_rank_results: list[PerRankResults] = []

    # ============================================================================
    # Lifecycle
    # ============================================================================

    def validate(self) -> bool:
        """Check the input on the root. Raises ShapeError or SingularDiagonalError on every rank."""
        self._require(SolverState.UNINITIALIZED, SolverState.ASSEMBLED)
        self.state = SolverState.UNINITIALIZED
        self.validator.validate(self.task)
        if self.verbose and self.context.is_root and not self.validator.dominant:
            print("Matrix is not diagonally dominant; convergence is not guaranteed")
        self.state = SolverState.VALIDATED
        return True

    def initialize(self) -> None:
        """Partition and distribute the system."""
        self._require(SolverState.VALIDATED)
        self.compute_times.clear()
        self.comm_times.clear()
        self.checker.reset()
        self.iterations = 0
        self._method_initialize()
        self.config.n = self.n
        self.state = SolverState.PARTITIONED

    def execute(self) -> None:
        """Iterate until convergence or until max_iter rounds have run."""
        self._require(SolverState.PARTITIONED)
        self.state = SolverState.ITERATING
        t_start = self.context.wtime()
        self.state = self._method_execute()
        self.wall_time = self.context.wtime() - t_start

    def finalize(self) -> GlobalResults:
        """Assemble the solution on the root and report how the iteration ended."""
        self._require(SolverState.CONVERGED, SolverState.MAX_ITERATIONS_REACHED)
        converged = self.state is SolverState.CONVERGED
        self.x = self._method_assemble()

        self.per_rank_results = PerRankResults(
            mpi_rank=self.context.rank,
            hostname=socket.gethostname(),
            rows=self.rows,
            wall_time=self.wall_time,
            compute_time=sum(self.compute_times),
            mpi_comm_time=sum(self.comm_times),
        )
        all_perrank = self.context.allgather(self.per_rank_results)

        if self.context.is_root:
            self.all_per_rank_results = all_perrank
            global_results = GlobalResults(
                iterations=self.iterations,
                converged=converged,
                termination=self.state.value,
                final_residual=self.checker.residual_history[-1],
                final_delta=self.checker.delta_history[-1],
                residual_history=list(self.checker.residual_history),
                delta_history=list(self.checker.delta_history),
                wall_time=max(pr.wall_time for pr in all_perrank),
                compute_time=sum(pr.compute_time for pr in all_perrank),
                mpi_comm_time=sum(pr.mpi_comm_time for pr in all_perrank),
            )
        else:
            global_results = None
        self.global_results = self.context.bcast(global_results)

        if self.context.is_root:
            self._report()
        self.state = SolverState.ASSEMBLED
        return self.global_results

    def solve(self) -> GlobalResults:
        """Run validate, initialize, execute and finalize in order."""
        self.validate()
        self.initialize()
        self.execute()
        return self.finalize()

    def timed_solve(self, mode: str = "pipeline") -> float:
        """Solve once and return the local wall time of the timed section.

        Parameters
        ----------
        mode : {"pipeline", "task"}
            "pipeline" times validate through finalize, "task" times only
            ``execute()``. Either way the clock starts after a barrier.
        """
        if mode not in TIMING_MODES:
            raise ValueError(f"Unknown timing mode '{mode}'. Available modes: {list(TIMING_MODES)}")
        if mode == "task":
            self.validate()
            self.initialize()

        self.context.barrier()
        t0 = self.context.wtime()
        if mode == "pipeline":
            self.validate()
            self.initialize()
            self.execute()
            self.finalize()
            return self.context.wtime() - t0

        self.execute()
        elapsed = self.context.wtime() - t0
        self.finalize()
        return elapsed

    # ============================================================================
    # Subclass hooks
    # ============================================================================

    def _method_initialize(self) -> None:
        raise NotImplementedError("Subclass must implement _method_initialize()")

    def _method_execute(self) -> SolverState:
        raise NotImplementedError("Subclass must implement _method_execute()")

    def _method_assemble(self) -> np.ndarray | None:
        raise NotImplementedError("Subclass must implement _method_assemble()")

    # ============================================================================
    # Utilities
    # ============================================================================

    def warmup(self, n=10):
        """Warmup the kernels (trigger JIT compilation)."""
        A = np.random.randn(n, n)
        A[np.diag_indices(n)] = np.abs(A).sum(axis=1) + 1.0
        b = np.random.randn(n)
        x_old = np.zeros(n)
        x_new = np.zeros(n)
        r = np.empty(n)

        for _ in range(5):
            self._residual(A, b, x_old, r)
            self._update(x_old, r, np.diagonal(A).copy(), x_new)
            x_old, x_new = x_new, x_old

    def get_num_threads(self, use_numba=False):
        """Get number of threads available for parallel execution."""
        if use_numba:
            import numba
            return numba.get_num_threads()
        return os.cpu_count() or 1

    def _select_kernels(self, use_numba):
        from .kernels import (
            jacobi_update_numba,
            jacobi_update_numpy,
            local_residual_numba,
            local_residual_numpy,
        )

        if use_numba:
            return local_residual_numba, jacobi_update_numba
        else:
            return local_residual_numpy, jacobi_update_numpy

    def _require(self, *states: SolverState) -> None:
        if self.state not in states:
            expected = " or ".join(s.name for s in states)
            raise SolverStateError(f"Solver is {self.state.name}, expected {expected}")

    def _report(self):
        res = self.global_results
        measure = self.checker.measure(res.final_residual, res.final_delta)
        if res.converged:
            if self.verbose:
                print(f"Converged at iteration {res.iterations} ({self.config.criterion}: {measure:.2e})")
        else:
            if self.verbose:
                print(f"Did not converge after {res.iterations} iterations ({self.config.criterion}: {measure:.2e})")
            warnings.warn(
                f"Jacobi iteration stopped after {res.iterations} rounds with "
                f"{self.config.criterion} {measure:.2e} >= tolerance {self.config.tolerance:.2e}",
                NonConvergenceWarning,
                stacklevel=3,
            )

    def print_summary(self):
        """Print a summary of the solver results."""
        print(f"Wall time = {self.global_results.wall_time:.6f} s")
        print(f"Compute time = {self.global_results.compute_time:.6f} s")
        print(f"MPI comm time = {self.global_results.mpi_comm_time:.6f} s")
        print(f"Iterations = {self.global_results.iterations}")
        if self.global_results.converged:
            print(f"Converged within tolerance {self.config.tolerance}")
        else:
            print(f"Stopped at max_iter = {self.config.max_iter} without converging")
        print(f"Final residual = {self.global_results.final_residual:.6e}")

    def save_results(self, data_dir, method, output_name=None):
        """Save all results to parquet files and the solution to npy (root only).

        Parameters
        ----------
        data_dir : Path
            Directory to save results
        method : str
            Method name for file naming
        output_name : str, optional
            Custom base name for output files
        """
        df_runtime_config = pd.DataFrame([asdict(self.config)])
        df_global_results = pd.DataFrame([asdict(self.global_results)])
        df_per_rank_results = pd.DataFrame([asdict(pr) for pr in self.all_per_rank_results])

        # Generate file names
        if output_name:
            base_name = output_name.replace(".npy", "").replace(".parquet", "")
        else:
            base_name = f"run_n{self.config.n}_iter{self.global_results.iterations}_{method}"
        config_file = data_dir / f"{base_name}_config.parquet"
        global_file = data_dir / f"{base_name}_global.parquet"
        perrank_file = data_dir / f"{base_name}_perrank.parquet"
        solution_file = data_dir / f"{base_name}_solution.npy"

        # Save files
        df_runtime_config.to_parquet(config_file, index=False)
        print(f"Config saved to: {config_file}")

        df_global_results.to_parquet(global_file, index=False)
        print(f"Global results saved to: {global_file}")

        df_per_rank_results.to_parquet(perrank_file, index=False)
        print(f"Per-rank results saved to: {perrank_file}")

        np.save(solution_file, self.x)
        print(f"Solution saved to: {solution_file}")

    def mlflow_start_log(self, experiment_name, tracking_uri=None):
        """Open an MLflow run for this solve (root only).

        Requires the ``tracking`` extra. Returns the active run.
        """
        import mlflow

        if tracking_uri is not None:
            mlflow.set_tracking_uri(tracking_uri)
        mlflow.set_experiment(experiment_name)
        return mlflow.start_run()

    def mlflow_end_log(self):
        """Log config, results and per-round history, then close the run."""
        import mlflow

        # n is only known after initialize
        mlflow.log_params(asdict(self.config))

        # Log global results (excluding lists which can't be logged as metrics)
        global_dict = asdict(self.global_results)
        residual_history = global_dict.pop("residual_history", [])
        delta_history = global_dict.pop("delta_history", [])
        global_dict.pop("termination", None)
        global_dict["converged"] = float(global_dict["converged"])

        mlflow.log_metrics(global_dict)

        # Log histories as step-by-step metrics for convergence graph
        for step, (residual, delta) in enumerate(zip(residual_history, delta_history)):
            mlflow.log_metric("residual", residual, step=step)
            mlflow.log_metric("delta", delta, step=step)

        # Log per-rank results as a table
        per_rank_dicts = [asdict(pr) for pr in self.all_per_rank_results]
        mlflow.log_table(pd.DataFrame(per_rank_dicts), "per_rank_results.json")
        mlflow.end_run()
