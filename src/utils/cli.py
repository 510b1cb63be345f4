"""Command-line interface utilities for Jacobi solver experiments.

This module provides shared argument parsing functionality for all solver implementations.
"""

from argparse import ArgumentParser
from typing import List


def create_parser(
    methods: List[str],
    default_method: str | None = None,
    description: str = "Jacobi linear system solver",
) -> ArgumentParser:
    """Create argument parser for Jacobi solver experiments.

    Parameters
    ----------
    methods : List[str]
        List of available solver methods
    default_method : str, optional
        Default method to use (defaults to first method in list)
    description : str
        Parser description

    Returns
    -------
    ArgumentParser
        Configured argument parser

    Examples
    --------
    >>> # For sequential solver
    >>> parser = create_parser(["sequential"], description="Sequential Jacobi solver")
    >>> options = parser.parse_args()

    >>> # For MPI sliced solver
    >>> parser = create_parser(["sliced"], description="MPI sliced Jacobi solver")
    >>> options = parser.parse_args()
    """
    if default_method is None:
        default_method = methods[0]

    parser = ArgumentParser(description=description)

    # System size
    parser.add_argument(
        "-n",
        type=int,
        default=1000,
        help="Number of equations (the matrix is n x n)",
    )

    # Iteration control
    parser.add_argument(
        "--iter",
        type=int,
        default=1000,
        help="Number of (max) iterations.",
    )

    # Convergence tolerance
    parser.add_argument(
        "--tolerance",
        type=float,
        default=1e-6,
        help="Convergence tolerance on the chosen measure (strict inequality).",
    )

    parser.add_argument(
        "--criterion",
        choices=["residual", "delta"],
        default="residual",
        help="Convergence measure: max |b - Ax| or max change between iterates.",
    )

    # Problem generation and benchmarking
    parser.add_argument("--seed", type=int, default=None, help="Seed for the random system.")
    parser.add_argument(
        "--repeats",
        type=int,
        default=10,
        help="Number of timed solver runs.",
    )
    parser.add_argument("--numba", action="store_true", help="Use the numba kernels.")
    parser.add_argument(
        "--mode",
        choices=["pipeline", "task"],
        default="pipeline",
        help="What each timed run covers: validate through finalize (pipeline) or execute() alone (task).",
    )

    # Experiment tracking
    parser.add_argument(
        "--mlflow",
        metavar="EXPERIMENT",
        default=None,
        help="Log the first run to this MLflow experiment (needs the tracking extra).",
    )
    parser.add_argument(
        "--tracking-uri",
        default=None,
        help="MLflow tracking URI (default: MLflow's own, e.g. MLFLOW_TRACKING_URI).",
    )

    # Output file
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output filename for saving results (default: auto-generated based on n, iterations, and method)",
    )

    # Solver method
    parser.add_argument(
        "--method",
        choices=methods,
        default=default_method,
        help=f"The chosen method to solve the linear system (default: {default_method}).",
    )

    return parser
