"""Workload setup for the primality benchmarks."""

from typing import List

import numpy as np

# Known primes near 1e14 - expensive enough per element to show parallel speedup
LARGE_PRIMES = [
    112272535095293,
    112582705942171,
    115280095190773,
    115797848077099,
]


def prime_candidates(
    n: int, low: int = 10**6, high: int = 10**7, seed: int = 0
) -> List[int]:
    """Reproducible list of n random integers in [low, high).

    Returns plain Python ints so every strategy sees identical input.
    """
    if n < 0:
        raise ValueError(f"n must be non-negative, got {n}")
    rng = np.random.default_rng(seed)
    return rng.integers(low, high, size=n, dtype=np.int64).tolist()


def large_prime_workload(repeat: int = 2) -> List[int]:
    """Few, very expensive elements (all prime) - the classic futures demo."""
    return LARGE_PRIMES * repeat
