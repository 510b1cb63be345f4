#!/usr/bin/env python3
"""Plot convergence and repeated-run timings of the sequential Jacobi solver."""

import pandas as pd

from utils import get_data_dir, get_figures_dir, load_simulation_data
from utils.plotting import plot_convergence, plot_timings

data_dir = get_data_dir()
figures_dir = get_figures_dir()

config_files = sorted(data_dir.glob("*_config.parquet"), key=lambda p: p.stat().st_mtime)
if not config_files:
    raise SystemExit(f"No results in {data_dir}; run compute_sequential.py first")

base_name = config_files[-1].name.replace("_config.parquet", "")
df_config = load_simulation_data(data_dir, f"{base_name}_config")
df_global = load_simulation_data(data_dir, f"{base_name}_global")

print(f"n = {df_config['n'].iloc[0]}, iterations = {df_global['iterations'].iloc[0]}, "
      f"termination = {df_global['termination'].iloc[0]}")

plot_convergence(df_global, df_config["tolerance"].iloc[0], figures_dir / f"{base_name}_convergence.pdf")

df_timings = pd.concat(
    [pd.read_parquet(f) for f in sorted(data_dir.glob("timings_*.parquet"))], ignore_index=True
)
plot_timings(df_timings, figures_dir / "timings.pdf")
