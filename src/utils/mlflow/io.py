"""MLflow helpers for benchmark runs.

Run layout: one parent run per workload (kernel and batch size), one child
run per strategy/worker-count combination. Re-running a workload appends
children to the existing parent instead of creating a new one.

- setup_mlflow_tracking: local ./mlruns store, Databricks, or off
- start_mlflow_run_context: open parent + child run
- log_parameters / log_metrics_dict / log_timeseries_metrics
- load_runs: child runs of an experiment as a DataFrame
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Optional

import mlflow
import pandas as pd
from mlflow.entities import Metric

from BatchMap.datastructures import detect_environment

log = logging.getLogger(__name__)

PROJECT_PREFIX = "/Shared/BatchMap"

PARENT_TAG = "is_parent"

# MlflowClient.log_batch accepts at most 1000 metrics per call
_BATCH_LIMIT = 1000


def setup_mlflow_tracking(mode: str = "local") -> bool:
    """
    Point MLflow at a tracking backend.

    Parameters
    ----------
    mode : str
        "local" (./mlruns in the working directory), "databricks" or "off".

    Returns
    -------
    bool
        Whether the caller should log runs.
    """
    if mode == "off":
        log.info("MLflow tracking disabled")
        return False

    if mode == "local":
        uri = (Path.cwd() / "mlruns").as_uri()
        mlflow.set_tracking_uri(uri)
        log.info(f"MLflow tracking to local store {uri}")
    elif mode == "databricks":
        try:
            mlflow.login(backend="databricks", interactive=False)
        except Exception as e:
            raise RuntimeError(
                "Databricks login failed; configure DATABRICKS_HOST/DATABRICKS_TOKEN"
            ) from e
        mlflow.set_tracking_uri("databricks")
        log.info("MLflow tracking to Databricks")
    else:
        log.warning(f"Unknown MLflow mode '{mode}', keeping {mlflow.get_tracking_uri()}")
    return True


def get_mlflow_client() -> mlflow.tracking.MlflowClient:
    """Get an MLflow tracking client."""
    return mlflow.tracking.MlflowClient()


def _resolve_experiment(name: str, project_prefix: str) -> str:
    # Databricks experiments live in the workspace tree
    if mlflow.get_tracking_uri() == "databricks" and not name.startswith("/"):
        return f"{project_prefix}/{name}"
    return name


def _find_parent_run_id(experiment_id: str, parent_run_name: str) -> Optional[str]:
    runs = get_mlflow_client().search_runs(
        experiment_ids=[experiment_id],
        filter_string=(
            f"tags.mlflow.runName = '{parent_run_name}' AND tags.{PARENT_TAG} = 'true'"
        ),
        max_results=1,
    )
    return runs[0].info.run_id if runs else None


@contextmanager
def start_mlflow_run_context(
    experiment_name: str,
    parent_run_name: str,
    child_run_name: str,
    project_prefix: str = PROJECT_PREFIX,
):
    """Open a child run under the named parent run; yields the child run."""
    experiment = mlflow.set_experiment(_resolve_experiment(experiment_name, project_prefix))
    parent_id = _find_parent_run_id(experiment.experiment_id, parent_run_name)

    with mlflow.start_run(
        run_id=parent_id, run_name=parent_run_name, tags={PARENT_TAG: "true"}
    ):
        with mlflow.start_run(run_name=child_run_name, nested=True) as child:
            env = detect_environment()
            mlflow.set_tag("environment", env)
            log.info(
                f"MLflow run '{child.info.run_name}' ({child.info.run_id}) in "
                f"'{experiment.name}' [{env}]"
            )
            yield child


def log_parameters(params: dict):
    """Log a dictionary of parameters to the active MLflow run."""
    mlflow.log_params(params)


def log_metrics_dict(metrics: dict):
    """Log a dictionary of metrics to the active run, skipping None values."""
    mlflow.log_metrics({k: v for k, v in metrics.items() if v is not None})


def log_timeseries_metrics(timeseries_data) -> int:
    """Log each list of values as a step metric (step = position in the list).

    Parameters
    ----------
    timeseries_data : dataclass or dict
        Metric name -> sequence of numbers, e.g. {"wall_times": [...]}.

    Returns
    -------
    int
        Number of points logged (0 without an active run).
    """
    run = mlflow.active_run()
    if run is None:
        return 0

    series = asdict(timeseries_data) if is_dataclass(timeseries_data) else dict(timeseries_data)
    timestamp = int(time.time() * 1000)
    points = [
        Metric(name, float(value), timestamp, step)
        for name, values in series.items()
        for step, value in enumerate(values or [])
        if value is not None
    ]

    client = get_mlflow_client()
    for start in range(0, len(points), _BATCH_LIMIT):
        client.log_batch(run_id=run.info.run_id, metrics=points[start : start + _BATCH_LIMIT])
    if points:
        log.info(f"Logged {len(points)} time-series points")
    return len(points)


def load_runs(
    experiment: str,
    exclude_parent_runs: bool = True,
    project_prefix: str = PROJECT_PREFIX,
) -> pd.DataFrame:
    """Runs of an experiment as a DataFrame (newest first).

    Parameters
    ----------
    experiment : str
        Experiment name (prefixed for Databricks)
    exclude_parent_runs : bool
        Keep only the per-strategy child runs
    project_prefix : str
        Databricks workspace prefix for experiment names
    """
    exp = mlflow.get_experiment_by_name(_resolve_experiment(experiment, project_prefix))
    if exp is None:
        return pd.DataFrame()

    df = mlflow.search_runs(experiment_ids=[exp.experiment_id], order_by=["start_time DESC"])

    parent_col = f"tags.{PARENT_TAG}"
    if exclude_parent_runs and parent_col in df.columns:
        # Child runs have no parent tag (NaN), so filter in pandas
        df = df[df[parent_col] != "true"]
    return df
