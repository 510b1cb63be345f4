"""Utility modules for CLI parsing, I/O and plotting."""

from .io import (
    ensure_output_dir,
    load_simulation_data,
    save_simulation_data,
    get_repo_root,
    get_experiment_name,
    get_data_dir,
    get_figures_dir,
)

__all__ = [
    # I/O
    "ensure_output_dir",
    "load_simulation_data",
    "save_simulation_data",
    "get_repo_root",
    "get_experiment_name",
    "get_data_dir",
    "get_figures_dir",
]
