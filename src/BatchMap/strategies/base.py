"""Base class for execution strategies."""

import logging
import pickle
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterator, List, Optional, Tuple

from ..datastructures import ElementFailure, MapMetrics
from ..errors import TransformError

log = logging.getLogger(__name__)

# (index, value, error) - error is None on success
Outcome = Tuple[int, Any, Optional[BaseException]]

_UNSET = object()


def call_guarded(transform: Callable, element) -> Tuple[Any, Optional[Exception]]:
    """Apply transform to one element, returning (value, error) instead of raising.

    Module-level so it pickles by reference for worker processes.
    """
    try:
        return transform(element), None
    except Exception as e:
        return None, e


def portable_error(error: Exception) -> Exception:
    """Return error if it survives a pickle round trip, else a RuntimeError stand-in.

    Exceptions whose ``__init__`` signature does not match their ``args``
    pickle fine but fail to unpickle, which kills the parent's result
    reader and breaks the whole pool.
    """
    try:
        pickle.loads(pickle.dumps(error))
    except Exception:
        return RuntimeError(f"{type(error).__name__}: {error}")
    return error


def call_portable(transform: Callable, element) -> Tuple[Any, Optional[Exception]]:
    """call_guarded for worker processes: the error is always safe to send back."""
    value, error = call_guarded(transform, element)
    if error is not None:
        error = portable_error(error)
    return value, error


class BaseStrategy(ABC):
    """Abstract base for all execution strategies.

    Subclasses implement ``_execute`` as a generator yielding one outcome per
    element, in any order, and release their workers in a ``finally`` block.
    Positional reassembly, the error policy and timing live here.

    Parameters
    ----------
    worker_count : int
        Number of workers (ignored by single-worker strategies).
    on_error : str
        "fail_fast" aborts on the first failure, "collect" stores
        ElementFailure placeholders in the failing slots.
    """

    name = "base"
    concurrent = False

    def __init__(self, worker_count: int = 1, on_error: str = "fail_fast"):
        self.worker_count = worker_count if self.concurrent else 1
        self.on_error = on_error

        self.metrics = MapMetrics(
            strategy=self.name,
            executed_strategy=self.name,
            worker_count=self.worker_count,
        )

    @classmethod
    def unsupported_reason(cls, transform: Callable) -> Optional[str]:
        """Why this strategy cannot run ``transform`` on this host, or None."""
        return None

    def prepare(self, transform: Callable):
        """Pre-flight checks on the transform. Runs before any work starts."""
        pass

    @abstractmethod
    def _execute(self, inputs: List, transform: Callable) -> Iterator[Outcome]:
        """Yield (index, value, error) for every element."""
        pass

    def run(self, inputs: List, transform: Callable) -> List:
        """Map transform over inputs; output[i] corresponds to inputs[i]."""
        n = len(inputs)
        outputs = [_UNSET] * n
        n_failures = 0

        t_start = self._get_time()
        outcomes = self._execute(inputs, transform)
        try:
            for index, value, error in outcomes:
                if error is None:
                    outputs[index] = value
                    continue

                n_failures += 1
                if self.on_error == "fail_fast":
                    log.debug(f"{self.name}: aborting batch at index {index}")
                    raise TransformError(index, inputs[index], error) from error
                outputs[index] = ElementFailure(index, inputs[index], error)
        finally:
            # Closing the generator runs the strategy's worker teardown
            outcomes.close()
        wall_time = self._get_time() - t_start

        missing = [i for i, value in enumerate(outputs) if value is _UNSET]
        if missing:
            raise RuntimeError(
                f"{self.name} strategy produced no result for indices {missing[:10]}"
            )

        self._finalize(wall_time, n, n_failures)
        return outputs

    def _get_time(self) -> float:
        """Get current time."""
        return time.perf_counter()

    def _finalize(self, wall_time: float, n_elements: int, n_failures: int):
        """Fill metrics after a run."""
        self.metrics.wall_time = wall_time
        self.metrics.n_elements = n_elements
        self.metrics.n_failures = n_failures
        if wall_time > 0:
            self.metrics.throughput = n_elements / wall_time

        log.info(
            f"{self.name}: {n_elements} elements, {self.worker_count} worker(s), "
            f"{wall_time:.4f}s" + (f", {n_failures} failed" if n_failures else "")
        )
