import numpy as np
import pandas as pd

from utils import cli, get_data_dir
from Jacobi import SequentialJacobi, generate_diagonally_dominant, make_task, residual_inf


# Create the argument parser using shared utility
parser = cli.create_parser(
    methods=["sequential"],
    default_method="sequential",
    description="Sequential Jacobi linear system solver",
)

# Grab options!
options = parser.parse_args()
n: int = options.n
method: str = options.method
N_iter: int = options.iter
tolerance: float = options.tolerance

A, b = generate_diagonally_dominant(n, seed=options.seed)

timings = []
for run in range(options.repeats):
    # Create solver instance with all configuration
    solver = SequentialJacobi(
        make_task(A, b),
        tolerance=tolerance,
        max_iter=N_iter,
        criterion=options.criterion,
        use_numba=options.numba,
        verbose=(run == 0),
    )
    if options.numba and run == 0:
        solver.warmup()

    track = options.mlflow and run == 0
    if track:
        solver.mlflow_start_log(options.mlflow, options.tracking_uri)

    wall_time = solver.timed_solve(options.mode)
    timings.append({"run": run, "method": method, "mode": options.mode, "wall_time": wall_time,
                    "iterations": solver.global_results.iterations})

    if track:
        solver.mlflow_end_log()

# Print summary
wall = np.array([t["wall_time"] for t in timings])
solver.print_summary()
print(f"||Ax - b||_inf = {residual_inf(A, solver.x, b):.6e}")
print(f"Runs = {len(wall)}: min = {wall.min():.6f} s, mean = {wall.mean():.6f} s, max = {wall.max():.6f} s")

# Save results
data_dir = get_data_dir()
solver.save_results(data_dir, method, output_name=options.output)
timings_file = data_dir / f"timings_n{n}_{method}_{options.mode}.parquet"
pd.DataFrame(timings).to_parquet(timings_file, index=False)
print(f"Timings saved to: {timings_file}")
