"""Execution strategies.

Consistent naming: {Mechanism}Strategy, registered under the Strategy enum.

Single worker:
- SequentialStrategy: explicit loop (baseline)
- VectorizedStrategy: one call of the transform's vector-native form

Concurrent (require independent elements):
- ProcessStrategy: ProcessPoolExecutor
- ThreadStrategy: ThreadPoolExecutor
- JoblibStrategy: joblib.Parallel backend
"""

from ..datastructures import Strategy
from .base import BaseStrategy, call_guarded, call_portable, portable_error
from .sequential import SequentialStrategy
from .pools import ProcessStrategy, ThreadStrategy
from .parallel_backend import JoblibStrategy
from .vectorized import VectorizedStrategy, vector_form

STRATEGIES = {
    Strategy.SEQUENTIAL: SequentialStrategy,
    Strategy.MULTIPROCESS: ProcessStrategy,
    Strategy.MULTITHREAD: ThreadStrategy,
    Strategy.JOBLIB: JoblibStrategy,
    Strategy.VECTORIZED: VectorizedStrategy,
}

__all__ = [
    "BaseStrategy",
    "call_guarded",
    "call_portable",
    "portable_error",
    "SequentialStrategy",
    "ProcessStrategy",
    "ThreadStrategy",
    "JoblibStrategy",
    "VectorizedStrategy",
    "vector_form",
    "STRATEGIES",
]
