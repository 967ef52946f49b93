"""Wall-clock timing and strategy benchmarks.

Timing is a reporting concern layered on top of the mapper; it never
changes what the mapper returns.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence

import pandas as pd

from .datastructures import Strategy
from .mapper import BatchMapper, available_workers

log = logging.getLogger(__name__)

DEFAULT_STRATEGIES = tuple(s.value for s in Strategy)


@dataclass
class Timing:
    start: Optional[float] = None
    elapsed: Optional[float] = None


@contextmanager
def stopwatch():
    """Time the enclosed block; ``elapsed`` is set on exit, even on error."""
    timing = Timing(start=time.perf_counter())
    try:
        yield timing
    finally:
        timing.elapsed = time.perf_counter() - timing.start


def benchmark(
    inputs: Iterable,
    transform: Callable,
    strategies: Sequence[str] = DEFAULT_STRATEGIES,
    worker_counts: Sequence[int] = None,
    repeats: int = 3,
    on_unsupported: str = "fallback",
    **mapper_options,
) -> pd.DataFrame:
    """Time every strategy (and worker count) on the same batch.

    Parameters
    ----------
    inputs : iterable
        The batch; snapshotted once and reused for every run.
    transform : callable
        Pure per-element transform. ``transform.warmup()`` is called first
        if present (triggers Numba JIT outside the timed region).
    strategies : sequence of str
        Strategy names to run.
    worker_counts : sequence of int, optional
        Worker counts for concurrent strategies (default: [available_workers()]).
        Single-worker strategies always run once with 1 worker.
    repeats : int
        Timed runs per configuration.
    on_unsupported : str
        Passed to BatchMapper; "fallback" keeps the sweep going and marks
        the row with fell_back=True.

    Returns
    -------
    pd.DataFrame
        One row per run: strategy, executed_strategy, worker_count, repeat,
        n_elements, wall_time, throughput, fell_back, matches_baseline,
        speedup (sequential baseline median / wall_time).
    """
    if repeats < 1:
        raise ValueError(f"repeats must be at least 1, got {repeats}")
    inputs = list(inputs)
    if worker_counts is None:
        worker_counts = [available_workers()]

    warmup = getattr(transform, "warmup", None)
    if callable(warmup):
        warmup()

    # Baseline outputs and timing (sequential is the reference for both)
    baseline_times = []
    baseline = None
    for _ in range(repeats):
        with stopwatch() as t:
            baseline = BatchMapper("sequential").map(inputs, transform).outputs
        baseline_times.append(t.elapsed)
    baseline_time = float(pd.Series(baseline_times).median())

    rows = []
    for name in strategies:
        strategy = Strategy.parse(name)
        counts = worker_counts if strategy.is_concurrent else [1]
        for worker_count in counts:
            mapper = BatchMapper(
                strategy=strategy,
                worker_count=worker_count,
                on_unsupported=on_unsupported,
                **mapper_options,
            )
            for repeat in range(repeats):
                with stopwatch() as t:
                    result = mapper.map(inputs, transform)
                m = result.metrics
                rows.append(
                    {
                        "strategy": strategy.value,
                        "executed_strategy": m.executed_strategy,
                        "worker_count": worker_count,
                        "repeat": repeat,
                        "n_elements": len(inputs),
                        "wall_time": t.elapsed,
                        "throughput": len(inputs) / t.elapsed if t.elapsed > 0 else None,
                        "fell_back": m.fell_back,
                        "matches_baseline": result.outputs == baseline,
                    }
                )
            log.info(f"{strategy.value} x{worker_count}: {t.elapsed:.4f}s (last of {repeats})")

    df = pd.DataFrame(rows)
    if not df.empty:
        df["speedup"] = baseline_time / df["wall_time"]
    return df
