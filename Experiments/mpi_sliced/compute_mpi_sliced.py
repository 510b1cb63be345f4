import numpy as np
import pandas as pd

from utils import cli, get_data_dir
from Jacobi import (
    MPIJacobiSliced,
    create_context,
    generate_diagonally_dominant,
    make_task,
    residual_inf,
)

# Available solvers for this experiment:
# - MPIJacobiSliced: MPI with 1D row-block decomposition

# Create the argument parser using shared utility
parser = cli.create_parser(
    methods=["sliced"],
    default_method="sliced",
    description="MPI sliced Jacobi linear system solver",
)

# Grab options!
options = parser.parse_args()
n: int = options.n
method: str = options.method
N_iter: int = options.iter
tolerance: float = options.tolerance

# MPI.COMM_WORLD is only touched here; the solver receives the context
context = create_context("mpi")
rank = context.rank

"""
Only rank 0 holds the system. The other ranks pass an empty TaskData and
receive their rows from the solver.
"""
if context.is_root:
    A, b = generate_diagonally_dominant(n, seed=options.seed)
else:
    A, b = None, None

timings = []
for run in range(options.repeats):
    task = make_task(A, b, is_root=context.is_root)
    solver = MPIJacobiSliced(
        task,
        context,
        tolerance=tolerance,
        max_iter=N_iter,
        criterion=options.criterion,
        use_numba=options.numba,
        verbose=(rank == 0 and run == 0),
    )
    if options.numba and run == 0:
        solver.warmup()

    # Tracking happens on rank 0 only
    track = options.mlflow and run == 0 and context.is_root
    if track:
        solver.mlflow_start_log(options.mlflow, options.tracking_uri)

    wall_time = solver.timed_solve(options.mode)
    timings.append({"run": run, "method": method, "mode": options.mode, "wall_time": wall_time,
                    "iterations": solver.global_results.iterations})

    if track:
        solver.mlflow_end_log()

# Only rank 0 prints summary
if rank == 0:
    wall = np.array([t["wall_time"] for t in timings])
    solver.print_summary()
    print(f"||Ax - b||_inf = {residual_inf(A, solver.x, b):.6e}")
    print(f"Runs = {len(wall)}: min = {wall.min():.6f} s, mean = {wall.mean():.6f} s, max = {wall.max():.6f} s")

    data_dir = get_data_dir()
    solver.save_results(data_dir, method, output_name=options.output)
    timings_file = data_dir / f"timings_n{n}_np{context.size}_{method}_{options.mode}.parquet"
    pd.DataFrame(timings).to_parquet(timings_file, index=False)
    print(f"Timings saved to: {timings_file}")
