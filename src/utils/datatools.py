"""Data utilities for locating, loading, and saving benchmark data.

This module provides utilities for:
- Path management (data/ and figures/ mirroring the Experiments/ structure)
- Data I/O (Parquet or CSV dataframes)
"""

from __future__ import annotations

import inspect
from pathlib import Path
from typing import Literal

import pandas as pd

from .config import get_repo_root


# ==============================================================================
# Path Management
# ==============================================================================


def get_experiment_name(caller_file: Path | str) -> str:
    """Get experiment name from a script's location.

    Extracts the experiment name from the path relative to Experiments/.
    For example:
    - Experiments/01-strategies/compute_strategies.py → "01-strategies"

    Parameters
    ----------
    caller_file : Path or str
        Path to the experiment script.

    Returns
    -------
    str
        Experiment name (relative path from Experiments/)

    Raises
    ------
    ValueError
        If the file is not in an Experiments/ subdirectory

    """
    caller_file = Path(caller_file)
    parts = caller_file.resolve().parts
    if "Experiments" not in parts:
        raise ValueError(
            f"File {caller_file} is not in an Experiments/ subdirectory. "
            "This utility is designed for scripts in Experiments/*/"
        )

    experiments_idx = parts.index("Experiments")
    experiment_parts = parts[experiments_idx + 1 : -1]

    if not experiment_parts:
        raise ValueError(
            f"File {caller_file} is directly in Experiments/. "
            "Scripts should be in a subdirectory (e.g., Experiments/01-strategies/)"
        )

    return "/".join(experiment_parts)


def _output_dir(kind: str, caller_file, create: bool) -> Path:
    path = get_repo_root() / kind / get_experiment_name(caller_file)
    if create:
        path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir(caller_file: Path | str | None = None, create: bool = True) -> Path:
    """Get data directory for the calling experiment.

    Examples
    --------
    From Experiments/01-strategies/compute_strategies.py:
    >>> data_dir = get_data_dir()  # Returns repo_root/data/01-strategies/

    """
    if caller_file is None:
        caller_file = inspect.stack()[1].filename
    return _output_dir("data", caller_file, create)


def get_figures_dir(caller_file: Path | str | None = None, create: bool = True) -> Path:
    """Get figures directory for the calling experiment.

    Examples
    --------
    From Experiments/01-strategies/plot_strategies.py:
    >>> figures_dir = get_figures_dir()  # Returns repo_root/figures/01-strategies/

    """
    if caller_file is None:
        caller_file = inspect.stack()[1].filename
    return _output_dir("figures", caller_file, create)


# ==============================================================================
# Data I/O
# ==============================================================================


def save_simulation_data(
    df: pd.DataFrame,
    output_path: Path | str,
    format: Literal["parquet", "csv"] | None = None,
) -> Path:
    """Save a results dataframe.

    Parameters
    ----------
    df : pd.DataFrame
        Data to save
    output_path : Path or str
        Destination file; parent directories are created
    format : {"parquet", "csv"}, optional
        Inferred from the file suffix if not given

    Returns
    -------
    Path
        The written file

    """
    output_path = Path(output_path)
    fmt = format or output_path.suffix.lstrip(".") or "parquet"
    output_path.parent.mkdir(parents=True, exist_ok=True)

    if fmt == "parquet":
        df.to_parquet(output_path, index=False)
    elif fmt == "csv":
        df.to_csv(output_path, index=False)
    else:
        raise ValueError(f"Unsupported format: {fmt}")
    return output_path


def load_simulation_data(path: Path | str) -> pd.DataFrame:
    """Load a dataframe written by save_simulation_data."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(
            f"No data at {path}. Run the matching compute_*.py script first."
        )
    if path.suffix == ".csv":
        return pd.read_csv(path)
    return pd.read_parquet(path)
