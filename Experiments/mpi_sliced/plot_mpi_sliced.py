#!/usr/bin/env python3
"""
Plot results from the MPI sliced Jacobi solver.

This script automatically finds and plots the most recent data from compute_mpi_sliced.py.
"""

import pandas as pd

from utils import get_data_dir, get_figures_dir
from utils.plotting import plot_convergence, plot_per_rank_performance, plot_timings

# Get directories (automatically mirrors Experiments/ structure)
data_dir = get_data_dir()
figures_dir = get_figures_dir()


def print_summary(df_config: pd.DataFrame, df_global: pd.DataFrame, df_perrank: pd.DataFrame):
    """Print summary of results."""
    print("\n" + "=" * 60)
    print("SUMMARY")
    print("=" * 60)

    config = df_config.iloc[0]
    print(f"\nConfiguration:")
    print(f"  System size: n = {config['n']}")
    print(f"  Method: {config['method']}")
    print(f"  MPI size: {config['mpi_size']} ranks")
    print(f"  Criterion: {config['criterion']}")
    print(f"  Tolerance: {config['tolerance']:.2e}")

    results = df_global.iloc[0]
    print(f"\nGlobal Results:")
    print(f"  Iterations: {results['iterations']}")
    print(f"  Termination: {results['termination']}")
    print(f"  Final residual: {results['final_residual']:.6e}")
    print(f"  Final delta: {results['final_delta']:.6e}")

    print(f"\nGlobal Timing (aggregated across ranks):")
    print(f"  Wall time (max): {results['wall_time']:.6f} s")
    print(f"  Compute time (sum): {results['compute_time']:.6f} s")
    print(f"  MPI comm time (sum): {results['mpi_comm_time']:.6f} s")

    print(f"\nPer-Rank Statistics:")
    for column in ["rows", "compute_time", "mpi_comm_time"]:
        print(f"  {column}: min={df_perrank[column].min():.6g}, "
              f"max={df_perrank[column].max():.6g}, "
              f"mean={df_perrank[column].mean():.6g}")

    print("\n" + "=" * 60)


def main():
    """Main function to load data and create plots."""

    # Find most recent config file
    config_files = sorted(
        data_dir.glob("*_config.parquet"), key=lambda p: p.stat().st_mtime, reverse=True
    )

    if not config_files:
        print(f"Error: No config files found in {data_dir}")
        print("Run compute_mpi_sliced.py first to generate data")
        return

    base_name = config_files[0].name.replace("_config.parquet", "")
    print(f"Loading most recent data: {base_name}")

    df_config = pd.read_parquet(data_dir / f"{base_name}_config.parquet")
    df_global = pd.read_parquet(data_dir / f"{base_name}_global.parquet")
    df_perrank = pd.read_parquet(data_dir / f"{base_name}_perrank.parquet")

    print_summary(df_config, df_global, df_perrank)

    # Create plots
    plot_convergence(df_global, df_config["tolerance"].iloc[0], figures_dir / f"{base_name}_convergence.pdf")
    plot_per_rank_performance(df_perrank, figures_dir / f"{base_name}_per_rank.pdf")

    timing_files = sorted(data_dir.glob("timings_*.parquet"))
    if timing_files:
        df_timings = pd.concat([pd.read_parquet(f) for f in timing_files], ignore_index=True)
        plot_timings(df_timings, figures_dir / "timings.pdf")

    print(f"\nAll plots saved to: {figures_dir}")


if __name__ == "__main__":
    main()
