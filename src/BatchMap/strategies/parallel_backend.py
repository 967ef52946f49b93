"""joblib strategy - parallel iteration over a pluggable backend."""

from joblib import Parallel, delayed

from .base import BaseStrategy, call_guarded, call_portable


class JoblibStrategy(BaseStrategy):
    """Parallel-backend iteration with ``joblib.Parallel``.

    Results stream back in input order (``return_as="generator"``); closing
    the stream on a fail-fast abort stops dispatching the remaining tasks.
    The loky backend keeps its worker processes in a reusable pool that
    joblib itself shuts down after an idle timeout.

    Parameters
    ----------
    backend : str
        "loky" (processes, cloudpickle - lambdas work), "threading" or
        "multiprocessing".
    """

    name = "joblib"
    concurrent = True

    def __init__(self, *args, backend: str = "loky", **kwargs):
        super().__init__(*args, **kwargs)
        self.backend = backend

    def _execute(self, inputs, transform):
        parallel = Parallel(
            n_jobs=self.worker_count, backend=self.backend, return_as="generator"
        )
        # Process backends send errors back pickled
        guard = call_guarded if self.backend == "threading" else call_portable
        results = parallel(delayed(guard)(transform, x) for x in inputs)
        try:
            for index, (value, error) in enumerate(results):
                yield index, value, error
        finally:
            results.close()
