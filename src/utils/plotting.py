"""Plotting utilities for Jacobi solver experiments.

Automatically applies the seaborn style on import.
"""

from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns


# Auto-apply plotting styles on import
def _apply_styles():
    """Apply seaborn style and custom utils.mplstyle if present."""
    sns.set_theme(style="whitegrid")

    style_path = Path(__file__).parent / "utils.mplstyle"
    if style_path.exists():
        plt.style.use(str(style_path))


_apply_styles()


def plot_convergence(df_global: pd.DataFrame, tolerance: float, output_file: Path) -> None:
    """Residual and change per round, log scale, with the tolerance line."""
    residual = df_global["residual_history"].iloc[0]
    delta = df_global["delta_history"].iloc[0]
    rounds = range(1, len(residual) + 1)

    fig, ax = plt.subplots(figsize=(8, 5))
    ax.semilogy(rounds, residual, label=r"$\|b - Ax\|_\infty$")
    ax.semilogy(rounds, delta, label=r"$\|x_{k} - x_{k-1}\|_\infty$", linestyle="--")
    ax.axhline(tolerance, color="black", linewidth=0.8, label="tolerance")
    ax.set_xlabel("Iteration")
    ax.set_ylabel("Measure")
    ax.set_title("Jacobi convergence")
    ax.legend()
    plt.tight_layout()
    plt.savefig(output_file)
    plt.close()
    print(f"Convergence plot saved to: {output_file}")


def plot_per_rank_performance(df_perrank: pd.DataFrame, output_file: Path) -> None:
    """Stacked compute / communication time per rank."""
    df_plot = df_perrank[["mpi_rank", "compute_time", "mpi_comm_time"]].set_index("mpi_rank")

    fig, ax = plt.subplots(figsize=(8, 5))
    df_plot.plot(kind="bar", stacked=True, ax=ax, color=["coral", "forestgreen"])
    ax.set_title("Per-Rank Timing Breakdown")
    ax.set_xlabel("MPI Rank")
    ax.set_ylabel("Time (s)")
    ax.legend(["Compute", "MPI Comm"])
    plt.tight_layout()
    plt.savefig(output_file)
    plt.close()
    print(f"Per-rank performance plot saved to: {output_file}")


def plot_timings(df_timings: pd.DataFrame, output_file: Path) -> None:
    """Distribution of wall time over the repeated runs, split by timing mode."""
    hue = "mode" if "mode" in df_timings.columns else None
    fig, ax = plt.subplots(figsize=(8, 5))
    sns.boxplot(data=df_timings, x="method", y="wall_time", hue=hue, ax=ax)
    sns.stripplot(data=df_timings, x="method", y="wall_time", ax=ax, color="black", size=3)
    ax.set_xlabel("Method")
    ax.set_ylabel("Wall Time (s)")
    ax.set_title("Repeated solve timings")
    plt.tight_layout()
    plt.savefig(output_file)
    plt.close()
    print(f"Timing plot saved to: {output_file}")
