"""I/O utilities for locating experiment directories and storing benchmark tables."""

from __future__ import annotations

import inspect
from pathlib import Path
from typing import Literal

import pandas as pd


def load_simulation_data(
    data_dir: Path | str,
    filename_base: str,
    prefer: Literal["parquet", "pickle"] = "parquet",
) -> pd.DataFrame:
    """Load a benchmark table, falling back to the other format if needed.

    Parameters
    ----------
    data_dir : Path or str
        Directory containing the data files
    filename_base : str
        Base filename without extension (e.g., 'timings_n1000_sliced')
    prefer : {'parquet', 'pickle'}
        Format to try first

    Raises
    ------
    FileNotFoundError
        If neither parquet nor pickle file exists

    """
    data_dir = Path(data_dir)
    loaders = {
        "parquet": (data_dir / f"{filename_base}.parquet", pd.read_parquet),
        "pickle": (data_dir / f"{filename_base}.pkl", pd.read_pickle),
    }
    order = ["parquet", "pickle"] if prefer == "parquet" else ["pickle", "parquet"]

    for fmt in order:
        path, loader = loaders[fmt]
        if path.exists():
            print(f"Loading {fmt} data: {path}")
            return loader(path)

    raise FileNotFoundError(
        f"No dataset found at {data_dir / filename_base}.{{parquet,pkl}}. "
        f"Run the corresponding compute script first."
    )


def save_simulation_data(
    df: pd.DataFrame,
    output_path: Path | str,
    format: Literal["parquet", "pickle"] = "parquet",
) -> None:
    """Save a benchmark table to disk (``output_path`` includes the extension)."""
    output_path = Path(output_path)

    if format == "parquet":
        df.to_parquet(output_path, index=False)
    elif format == "pickle":
        df.to_pickle(output_path)
    else:
        raise ValueError(f"Unsupported format: {format}")

    print(f"Saved {format} data → {output_path} ({df.shape})")


def ensure_output_dir(path: Path | str) -> Path:
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_repo_root() -> Path:
    """Repository root: the first parent directory holding pyproject.toml."""
    current = Path(__file__).resolve().parent
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent

    # src/utils -> repo root
    return current.parent.parent


def get_experiment_name(caller_file: Path | str | None = None) -> str:
    """Experiment name from a script's path below Experiments/.

    Experiments/mpi_sliced/compute_mpi_sliced.py → "mpi_sliced"

    Raises
    ------
    ValueError
        If the calling file is not in an Experiments/ subdirectory

    """
    if caller_file is None:
        caller_file = inspect.stack()[1].filename

    parts = Path(caller_file).resolve().parts
    if "Experiments" not in parts:
        raise ValueError(
            f"File {caller_file} is not in an Experiments/ subdirectory. "
            "This utility is designed for scripts in Experiments/*/"
        )

    experiment_parts = parts[parts.index("Experiments") + 1 : -1]
    if not experiment_parts:
        raise ValueError(
            f"File {caller_file} is directly in Experiments/. "
            "Scripts should be in a subdirectory (e.g., Experiments/sequential/)"
        )

    return "/".join(experiment_parts)


def get_data_dir(caller_file: Path | str | None = None, create: bool = True) -> Path:
    """Data directory mirroring the calling experiment: repo_root/data/<experiment>/."""
    if caller_file is None:
        caller_file = inspect.stack()[1].filename
    data_dir = get_repo_root() / "data" / get_experiment_name(caller_file)
    if create:
        ensure_output_dir(data_dir)
    return data_dir


def get_figures_dir(caller_file: Path | str | None = None, create: bool = True) -> Path:
    """Figures directory mirroring the calling experiment: repo_root/figures/<experiment>/."""
    if caller_file is None:
        caller_file = inspect.stack()[1].filename
    figures_dir = get_repo_root() / "figures" / get_experiment_name(caller_file)
    if create:
        ensure_output_dir(figures_dir)
    return figures_dir
