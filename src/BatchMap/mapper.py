"""Batch mapper: apply a pure transform to every element of a batch.

Correctness boundary
--------------------
Every strategy returns ``output[i] == transform(inputs[i])`` **only if the
transform is pure**: it must not read or write state shared with other
elements, and must not depend on the order in which elements are evaluated
or on the results of other elements. Concurrent strategies (multiprocess,
multithread, joblib) evaluate elements independently and in no particular
order. An order-dependent computation such as the recurrence
``x[n] = x[n-1] + 1`` mapped over indices is NOT independent: under a
concurrent strategy it silently yields a wrong, possibly non-deterministic
result (under multiprocess, the caller's slots are never written at all)
and no error is raised. Purity cannot be checked mechanically, so the
burden is on the caller; use the sequential strategy (or a plain loop) for
such computations. See ``BatchMap.recurrence`` for a worked example.
"""

import logging
import os
from typing import Any, Callable, Iterable, List

from .datastructures import MapMetrics, MapParams, MapResult, Strategy
from .errors import ConfigurationError, UnsupportedStrategyError
from .strategies import STRATEGIES, BaseStrategy, SequentialStrategy

log = logging.getLogger(__name__)


def available_workers() -> int:
    """Number of CPUs this process may run on (at least 1)."""
    try:
        return max(1, len(os.sched_getaffinity(0)))
    except AttributeError:
        # Not exposed on macOS / Windows
        return max(1, os.cpu_count() or 1)


class BatchMapper:
    """Configured batch mapper.

    Concurrent strategies require independent elements - see the module
    docstring. Mapping an order-dependent transform with them is undefined
    and is not detected.

    Parameters
    ----------
    strategy : str or Strategy
        "sequential" | "multiprocess" | "multithread" | "joblib" | "vectorized".
    worker_count : int, optional
        Workers for concurrent strategies (default: available_workers()).
        Values above the CPU count oversubscribe but are accepted.
    on_error : str
        "fail_fast" (default) raises TransformError on the first failing
        element and discards partial results; "collect" evaluates every
        element and leaves an ElementFailure in each failing slot.
    on_unsupported : str
        "raise" (default) raises UnsupportedStrategyError; "fallback" logs a
        warning, runs sequentially and records the fallback in the metrics.
    joblib_backend : str
        Backend for the joblib strategy (default: "loky").
    experiment_name : str
        Label carried into MapParams for experiment tracking.
    **strategy_options
        Extra keyword arguments for the strategy class (e.g. start_method,
        chunksize for multiprocess).
    """

    def __init__(
        self,
        strategy="sequential",
        worker_count: int = None,
        on_error: str = "fail_fast",
        on_unsupported: str = "raise",
        joblib_backend: str = "loky",
        experiment_name: str = "default",
        **strategy_options,
    ):
        self.params = MapParams(
            strategy=strategy,
            worker_count=worker_count,
            on_error=on_error,
            on_unsupported=on_unsupported,
            joblib_backend=joblib_backend,
            experiment_name=experiment_name,
        )
        self.strategy_options = strategy_options

    @property
    def worker_count(self) -> int:
        return self.params.worker_count or available_workers()

    def map(self, inputs: Iterable, transform: Callable) -> MapResult:
        """Apply transform to every input; returns positional outputs and metrics."""
        if not callable(transform):
            raise ConfigurationError(f"transform must be callable, got {transform!r}")

        # Snapshot: workers and reassembly see one fixed, ordered batch
        inputs = list(inputs)
        requested = self.params.strategy

        if not inputs:
            metrics = MapMetrics(
                strategy=requested.value,
                executed_strategy=requested.value,
                worker_count=self.worker_count if requested.is_concurrent else 1,
                wall_time=0.0,
            )
            return MapResult(outputs=[], metrics=metrics)

        strategy, fallback_reason = self._select(requested, transform)
        strategy.prepare(transform)

        outputs = strategy.run(inputs, transform)

        metrics = strategy.metrics
        metrics.strategy = requested.value
        if fallback_reason is not None:
            metrics.fell_back = True
            metrics.fallback_reason = fallback_reason
        return MapResult(outputs=outputs, metrics=metrics)

    def _select(self, requested: Strategy, transform: Callable):
        """Instantiate the requested strategy, or the sequential fallback."""
        cls = STRATEGIES[requested]
        reason = cls.unsupported_reason(transform)

        if reason is not None:
            if self.params.on_unsupported == "raise":
                raise UnsupportedStrategyError(requested.value, reason)
            log.warning(f"Strategy '{requested.value}' unsupported ({reason}); running sequentially")
            return self._build(SequentialStrategy, {}), reason

        return self._build(cls, self.strategy_options), None

    def _build(self, cls, options: dict) -> BaseStrategy:
        options = dict(options)
        if cls is STRATEGIES[Strategy.JOBLIB]:
            options["backend"] = self.params.joblib_backend
        try:
            return cls(worker_count=self.worker_count, on_error=self.params.on_error, **options)
        except TypeError as e:
            raise ConfigurationError(f"Invalid options for {cls.name} strategy: {e}") from e


def map_batch(
    inputs: Iterable,
    transform: Callable[[Any], Any],
    strategy="sequential",
    worker_count: int = None,
    on_error: str = "fail_fast",
    on_unsupported: str = "raise",
    **options,
) -> List:
    """Return ``[transform(x) for x in inputs]`` computed with the chosen strategy.

    The output has the same length and order as the input for every
    strategy; only wall-clock time and resource usage differ.

    WARNING: concurrent strategies (multiprocess, multithread, joblib) are
    only correct when the transform is pure and elements are independent.
    Applying them to an order-dependent computation, e.g. the recurrence
    ``x[n] = x[n-1] + 1``, silently produces a wrong result with no error
    raised. The mapper does not detect this; it is the caller's
    responsibility.

    Raises
    ------
    ConfigurationError
        Unknown strategy or policy, non-positive worker_count, or a
        transform the strategy cannot ship to its workers.
    UnsupportedStrategyError
        Strategy unavailable here and on_unsupported="raise".
    TransformError
        Under on_error="fail_fast", the first failing element (with its
        index). No partial result is returned.
    """
    mapper = BatchMapper(
        strategy=strategy,
        worker_count=worker_count,
        on_error=on_error,
        on_unsupported=on_unsupported,
        **options,
    )
    return mapper.map(inputs, transform).outputs
