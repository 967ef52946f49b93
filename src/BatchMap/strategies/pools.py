"""Worker-pool strategies built on concurrent.futures.

Both strategies hand the whole batch to ``Executor.map``, which returns
results in input order even though workers finish out of order. The pool is
shut down (pending work cancelled) when the batch ends, including on
fail-fast aborts.
"""

import logging
import multiprocessing
import pickle
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from functools import partial

from ..errors import ConfigurationError
from .base import BaseStrategy, call_guarded, call_portable

log = logging.getLogger(__name__)


class _ExecutorStrategy(BaseStrategy):
    """Shared driver for concurrent.futures executors."""

    concurrent = True
    # Errors cross a process boundary and must unpickle in the parent
    crosses_processes = False

    def _make_executor(self, n_elements: int) -> Executor:
        raise NotImplementedError

    def _map_kwargs(self, n_elements: int) -> dict:
        return {}

    @property
    def _guard(self):
        return call_portable if self.crosses_processes else call_guarded

    def _execute(self, inputs, transform):
        executor = self._make_executor(len(inputs))
        try:
            results = executor.map(
                partial(self._guard, transform), inputs, **self._map_kwargs(len(inputs))
            )
            for index, (value, error) in enumerate(results):
                yield index, value, error
        finally:
            executor.shutdown(wait=True, cancel_futures=True)


class ProcessStrategy(_ExecutorStrategy):
    """Worker processes via ProcessPoolExecutor.

    The transform and every element are pickled to the workers, so the
    transform must be importable (module-level function or instance of a
    module-level class). Writes the transform makes to shared state land in
    the worker's copy and never reach the caller.

    Parameters
    ----------
    start_method : str, optional
        multiprocessing start method ("fork", "spawn", "forkserver").
        Platform default if None.
    chunksize : int, optional
        Elements per task sent to a worker. Defaults to roughly four chunks
        per worker.
    """

    name = "multiprocess"
    crosses_processes = True

    def __init__(self, *args, start_method: str = None, chunksize: int = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.start_method = start_method
        self.chunksize = chunksize

    @classmethod
    def unsupported_reason(cls, transform):
        # Same probe concurrent.futures.process relies on (missing sem_open etc.)
        try:
            import multiprocessing.synchronize  # noqa: F401
        except ImportError as e:
            return f"process synchronisation primitives unavailable ({e})"
        return None

    def prepare(self, transform):
        try:
            pickle.dumps(transform)
        except (pickle.PicklingError, AttributeError, TypeError) as e:
            raise ConfigurationError(
                f"multiprocess strategy needs a picklable transform, got {transform!r}: {e}"
            ) from e

    def _make_executor(self, n_elements):
        ctx = multiprocessing.get_context(self.start_method)
        workers = min(self.worker_count, n_elements)
        log.debug(f"Starting {workers} worker processes ({ctx.get_start_method()})")
        return ProcessPoolExecutor(max_workers=workers, mp_context=ctx)

    def _map_kwargs(self, n_elements):
        chunksize = self.chunksize or max(1, n_elements // (self.worker_count * 4))
        return {"chunksize": chunksize}


class ThreadStrategy(_ExecutorStrategy):
    """Worker threads via ThreadPoolExecutor.

    Threads share the interpreter, so pure-Python transforms are serialised
    by the GIL; transforms that release it (Numba ``nogil``, NumPy, I/O) run
    in parallel.
    """

    name = "multithread"

    def _make_executor(self, n_elements):
        workers = min(self.worker_count, n_elements)
        return ThreadPoolExecutor(max_workers=workers, thread_name_prefix="batchmap")
