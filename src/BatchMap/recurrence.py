"""The recurrence x[k] = x[k-1] + 1 - how NOT to use a concurrent strategy.

Each step reads the previous step's result, so the elements are not
independent and the batch mapper's purity contract is broken. Under the
multiprocess strategy every worker writes into its own copy of ``x``; the
caller's list keeps its NaN seed values and no error is raised. Under
threads the outcome depends on scheduling. Kept as a negative example only.
"""

import math
from typing import List

from .mapper import map_batch


class RecurrenceStep:
    """Order-dependent 'transform': writes x[k] from x[k-1], returns nothing."""

    def __init__(self, x: List[float]):
        self.x = x

    def __call__(self, k: int):
        self.x[k] = self.x[k - 1] + 1


def sequential_recurrence(n: int) -> List[float]:
    """Correct evaluation: [0, 1, ..., n]."""
    x = [0.0] * (n + 1)
    for k in range(1, n + 1):
        x[k] = x[k - 1] + 1
    return x


def unsafe_parallel_recurrence(
    n: int = 5, strategy: str = "multiprocess", worker_count: int = 2
) -> List[float]:
    """Map RecurrenceStep over 1..n with the given strategy and return x.

    With a concurrent strategy the result is wrong (slots left NaN, or
    computed from a stale predecessor) and nothing is raised.
    """
    x = [0.0] + [math.nan] * n
    map_batch(range(1, n + 1), RecurrenceStep(x), strategy=strategy, worker_count=worker_count)
    return x
