"""MLflow utilities for experiment tracking.

Provides:
- Context manager for MLflow run orchestration
- Granular logging functions for parameters, metrics and time-series
- Run fetching
"""

from .io import (
    setup_mlflow_tracking,
    start_mlflow_run_context,
    log_parameters,
    log_metrics_dict,
    log_timeseries_metrics,
    load_runs,
)

__all__ = [
    "setup_mlflow_tracking",
    "start_mlflow_run_context",
    "log_parameters",
    "log_metrics_dict",
    "log_timeseries_metrics",
    "load_runs",
]
