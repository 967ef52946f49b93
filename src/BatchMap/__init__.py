"""BatchMap package.

Serial vs parallel execution of an embarrassingly-parallel workload
(primality testing over a list of integers). One operation, ``map_batch``,
applies a pure per-element transform with an interchangeable strategy:

Single worker:
- sequential: explicit loop, the baseline
- vectorized: one call of the transform's vector-native (ufunc) form

Concurrent:
- multiprocess: ProcessPoolExecutor
- multithread: ThreadPoolExecutor
- joblib: joblib.Parallel backend

All strategies return the same ordered output, PROVIDED the transform is
pure and elements are independent. Concurrent strategies silently give wrong
results for order-dependent computations such as x[n] = x[n-1] + 1; see
``BatchMap.recurrence``.
"""

from pathlib import Path

from .datastructures import (
    Strategy,
    MapParams,
    MapMetrics,
    MapResult,
    ElementFailure,
)
from .errors import (
    BatchMapError,
    ConfigurationError,
    UnsupportedStrategyError,
    TransformError,
)
from .kernels import is_prime, jittered_square, PrimeKernel, NumbaPrimeKernel
from .strategies import (
    SequentialStrategy,
    ProcessStrategy,
    ThreadStrategy,
    JoblibStrategy,
    VectorizedStrategy,
)
from .mapper import BatchMapper, map_batch, available_workers
from .problems import prime_candidates, large_prime_workload
from .recurrence import sequential_recurrence, unsafe_parallel_recurrence
from .timing import stopwatch, benchmark

__all__ = [
    # Data structures
    "Strategy",
    "MapParams",
    "MapMetrics",
    "MapResult",
    "ElementFailure",
    # Errors
    "BatchMapError",
    "ConfigurationError",
    "UnsupportedStrategyError",
    "TransformError",
    # Kernels
    "is_prime",
    "jittered_square",
    "PrimeKernel",
    "NumbaPrimeKernel",
    # Strategies
    "SequentialStrategy",
    "ProcessStrategy",
    "ThreadStrategy",
    "JoblibStrategy",
    "VectorizedStrategy",
    # Mapper
    "BatchMapper",
    "map_batch",
    "available_workers",
    # Problem setup
    "prime_candidates",
    "large_prime_workload",
    # Cautionary example
    "sequential_recurrence",
    "unsafe_parallel_recurrence",
    # Timing
    "stopwatch",
    "benchmark",
    # Utilities
    "get_project_root",
]


def get_project_root() -> Path:
    """Get project root directory.

    Returns
    -------
    Path
        Project root directory (contains pyproject.toml).
    """
    current = Path(__file__).resolve().parent
    while current != current.parent:
        if (current / "pyproject.toml").exists():
            return current
        current = current.parent

    # Fallback: assume standard src layout
    return Path(__file__).resolve().parent.parent.parent
