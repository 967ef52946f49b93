"""
Batch mapper benchmark runner - one strategy per Hydra job.

Usage:
    python run_benchmark.py strategy=multiprocess worker_count=4
    python run_benchmark.py --multirun strategy=sequential,multiprocess,multithread,joblib,vectorized
"""

import logging
import statistics
import sys

import hydra
from omegaconf import DictConfig

from BatchMap import (
    BatchMapError,
    BatchMapper,
    ConfigurationError,
    NumbaPrimeKernel,
    PrimeKernel,
    prime_candidates,
)

log = logging.getLogger(__name__)


def _create_kernel(cfg: DictConfig):
    """Create the primality kernel from config."""
    kernel = cfg.get("kernel", "numba")
    if kernel == "numba":
        return NumbaPrimeKernel(
            parallel=cfg.get("numba_parallel", False),
            specified_numba_threads=cfg.get("numba_threads"),
        )
    if kernel == "python":
        return PrimeKernel()
    raise ConfigurationError(f"Unknown kernel: {kernel}")


def run(cfg: DictConfig):
    """Run the configured benchmark.

    Returns
    -------
    tuple
        (mapper, last MapResult, list of wall times - one per repeat)
    """
    kernel = _create_kernel(cfg)
    kernel.warmup()

    inputs = prime_candidates(
        cfg.n_elements, low=cfg.get("low", 10**6), high=cfg.get("high", 10**7), seed=cfg.get("seed", 0)
    )
    mapper = BatchMapper(
        strategy=cfg.strategy,
        worker_count=cfg.get("worker_count"),
        on_error=cfg.get("on_error", "fail_fast"),
        on_unsupported=cfg.get("on_unsupported", "fallback"),
        joblib_backend=cfg.get("joblib_backend", "loky"),
        experiment_name=cfg.get("experiment_name", "default"),
    )

    wall_times = []
    result = None
    for _ in range(max(1, cfg.get("repeats", 1))):
        result = mapper.map(inputs, kernel)
        wall_times.append(result.metrics.wall_time)

    return mapper, result, wall_times


def _log_results(cfg: DictConfig, mapper: BatchMapper, result, wall_times):
    """Log run to MLflow (parent run per kernel/size, child per strategy)."""
    from utils.mlflow import (
        start_mlflow_run_context,
        log_parameters,
        log_metrics_dict,
        log_timeseries_metrics,
    )

    m = result.metrics
    run_name = f"{m.strategy}_w{m.worker_count}" + ("_fallback" if m.fell_back else "")
    with start_mlflow_run_context(
        experiment_name=cfg.get("experiment_name") or "default",
        parent_run_name=f"{cfg.kernel}_n{cfg.n_elements}",
        child_run_name=run_name,
    ):
        params = mapper.params.to_mlflow()
        params.update(
            {
                "kernel": cfg.kernel,
                "n_elements": cfg.n_elements,
                "executed_strategy": m.executed_strategy,
                "resolved_worker_count": m.worker_count,
            }
        )
        log_parameters(params)
        metrics = m.to_mlflow()
        metrics["median_wall_time"] = statistics.median(wall_times)
        metrics["n_primes"] = sum(1 for v in result.outputs if v is True)
        log_metrics_dict(metrics)
        log_timeseries_metrics({"wall_times": wall_times})


@hydra.main(config_path="Experiments/hydra-conf", config_name="config", version_base=None)
def main(cfg: DictConfig) -> None:
    """Entry point - runs one strategy and logs the result."""
    from utils.mlflow import setup_mlflow_tracking

    log.info(f"{cfg.strategy}, n={cfg.n_elements}, workers={cfg.get('worker_count') or 'auto'}")
    tracking = setup_mlflow_tracking(mode=cfg.mlflow.mode)

    try:
        mapper, result, wall_times = run(cfg)
    except BatchMapError as e:
        log.error(f"{type(e).__name__}: {e}")
        sys.exit(1)

    m = result.metrics
    if m.fell_back:
        log.warning(f"Fell back to {m.executed_strategy}: {m.fallback_reason}")
    log.info(
        f"Done: {m.executed_strategy}, {m.n_elements} elements, "
        f"median {statistics.median(wall_times):.4f}s over {len(wall_times)} repeat(s)"
    )

    if tracking:
        _log_results(cfg, mapper, result, wall_times)


if __name__ == "__main__":
    main()
