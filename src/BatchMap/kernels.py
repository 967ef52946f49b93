"""Per-element transforms used as workloads.

Kernels are plain callables (one element in, one element out). Kernels that
also expose a ``vectorized`` attribute can be applied to a whole NumPy array
at once by the vectorized strategy.
"""

import math
import numbers
import time
from functools import lru_cache

import numpy as np
import numba
from numba import njit, vectorize


def _check_integer(n):
    if not isinstance(n, numbers.Integral):
        raise TypeError(f"Primality is defined for integers, got {type(n).__name__}")


_INT64 = np.iinfo(np.int64)


def _check_int64(n):
    # Numba would silently retype larger values as uint64
    _check_integer(n)
    if not _INT64.min <= int(n) <= _INT64.max:
        raise OverflowError(f"{n} is outside the int64 range of the Numba kernel")


def is_prime(n) -> bool:
    """Pure-Python trial division. Values below 2 are not prime."""
    _check_integer(n)
    n = int(n)
    if n < 2:
        return False
    if n < 4:
        return True
    if n % 2 == 0:
        return False
    for i in range(3, math.isqrt(n) + 1, 2):
        if n % i == 0:
            return False
    return True


@njit(nogil=True)
def _is_prime_numba(n):
    """Numba JIT trial division (releases the GIL)."""
    if n < 2:
        return False
    if n < 4:
        return True
    if n % 2 == 0:
        return False
    i = 3
    while i * i <= n:
        if n % i == 0:
            return False
        i += 2
    return True


@lru_cache(maxsize=None)
def _prime_ufunc(parallel: bool):
    """Build (once) the Numba ufunc; target="parallel" spreads over Numba threads."""
    target = "parallel" if parallel else "cpu"

    @vectorize(["boolean(int64)"], target=target)
    def _is_prime_vec(n):
        return _is_prime_numba(n)

    return _is_prime_vec


class PrimeKernel:
    """Pure-Python primality kernel (no vector-native form)."""

    vectorized = None

    def __init__(self, specified_numba_threads: int = None):
        self.observed_numba_threads = None  # Not applicable for pure Python

    def __call__(self, n) -> bool:
        return is_prime(n)

    def warmup(self, warmup_size: int = 16):
        """No-op for the pure-Python kernel."""
        pass


class NumbaPrimeKernel:
    """Numba primality kernel with a vector-native (ufunc) form.

    Parameters
    ----------
    parallel : bool
        Compile the ufunc for Numba's parallel target (default: False).
    specified_numba_threads : int, optional
        Numba thread count for the parallel target. May be clamped by the
        NUMBA_NUM_THREADS env var.
    """

    def __init__(self, parallel: bool = False, specified_numba_threads: int = None):
        self.parallel = parallel

        if specified_numba_threads is not None:
            numba.set_num_threads(specified_numba_threads)

        # Record what Numba actually reports
        self.observed_numba_threads = numba.get_num_threads()

    def __call__(self, n) -> bool:
        _check_int64(n)
        return bool(_is_prime_numba(int(n)))

    def vectorized(self, values) -> np.ndarray:
        """Apply to a whole integer array in one call."""
        values = np.asarray(values)
        if not np.issubdtype(values.dtype, np.integer):
            raise TypeError(f"Primality is defined for integers, got dtype {values.dtype}")
        if values.dtype.kind == "u" and values.size and values.max() > _INT64.max:
            raise OverflowError("values exceed the int64 range of the Numba kernel")
        return _prime_ufunc(self.parallel)(values.astype(np.int64, copy=False))

    def warmup(self, warmup_size: int = 16):
        """Trigger JIT compilation with a small problem."""
        self(7)
        self.vectorized(np.arange(warmup_size, dtype=np.int64))


def jittered_square(x):
    """Square with a small element-dependent sleep, so completion order scrambles."""
    time.sleep(((x * 7919) % 5) * 0.002)
    return x * x
