"""Data structures for mapper configuration and results.

Params (input/config)          Metrics (output/results)
─────────────────────          ────────────────────────
MapParams                      MapMetrics
strategy, worker_count,        wall_time, throughput,
on_error, on_unsupported...    n_failures, fell_back...

Per-element bookkeeping: ElementFailure. Bundled output: MapResult.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

from .errors import ConfigurationError


class Strategy(str, Enum):
    """Execution strategies. Only performance differs, never the result."""

    SEQUENTIAL = "sequential"
    MULTIPROCESS = "multiprocess"
    MULTITHREAD = "multithread"
    JOBLIB = "joblib"
    VECTORIZED = "vectorized"

    @classmethod
    def parse(cls, value) -> "Strategy":
        """Parse a strategy name, raising ConfigurationError if unknown."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            names = ", ".join(s.value for s in cls)
            raise ConfigurationError(
                f"Unknown strategy '{value}'. Available: {names}"
            ) from None

    @property
    def is_concurrent(self) -> bool:
        return self in (Strategy.MULTIPROCESS, Strategy.MULTITHREAD, Strategy.JOBLIB)


ERROR_POLICIES = ("fail_fast", "collect")
UNSUPPORTED_POLICIES = ("raise", "fallback")
JOBLIB_BACKENDS = ("loky", "threading", "multiprocessing")


def detect_environment() -> str:
    """Return "hpc" inside an LSF or Slurm job, otherwise "local"."""
    if os.environ.get("LSB_JOBID") or os.environ.get("SLURM_JOB_ID"):
        return "hpc"
    return "local"


def validate_worker_count(worker_count) -> Optional[int]:
    """Return worker_count unchanged if valid (None or positive int)."""
    if worker_count is None:
        return None
    # bool is an int subclass but never a meaningful worker count
    if isinstance(worker_count, bool) or not isinstance(worker_count, int):
        raise ConfigurationError(
            f"worker_count must be a positive integer, got {worker_count!r}"
        )
    if worker_count <= 0:
        raise ConfigurationError(
            f"worker_count must be a positive integer, got {worker_count}"
        )
    return worker_count


@dataclass
class MapParams:
    """Mapper configuration - validated on construction, logged to MLflow as params."""

    strategy: Strategy = Strategy.SEQUENTIAL
    worker_count: Optional[int] = None  # None -> available_workers()

    # Policies
    on_error: str = "fail_fast"  # "fail_fast" | "collect"
    on_unsupported: str = "raise"  # "raise" | "fallback"

    # joblib-specific (ignored by other strategies)
    joblib_backend: str = "loky"

    # Experiment tracking
    experiment_name: str = "default"

    # Auto-detected at runtime (not from config)
    environment: str = field(init=False)

    def __post_init__(self):
        """Validate and normalise after initialization."""
        self.strategy = Strategy.parse(self.strategy)
        self.worker_count = validate_worker_count(self.worker_count)
        if self.on_error not in ERROR_POLICIES:
            raise ConfigurationError(
                f"on_error must be one of {ERROR_POLICIES}, got {self.on_error!r}"
            )
        if self.on_unsupported not in UNSUPPORTED_POLICIES:
            raise ConfigurationError(
                f"on_unsupported must be one of {UNSUPPORTED_POLICIES}, "
                f"got {self.on_unsupported!r}"
            )
        if self.joblib_backend not in JOBLIB_BACKENDS:
            raise ConfigurationError(
                f"joblib_backend must be one of {JOBLIB_BACKENDS}, "
                f"got {self.joblib_backend!r}"
            )
        self.environment = detect_environment()

    def to_mlflow(self) -> dict:
        """Convert to MLflow-compatible params dict (enums as str, no None)."""
        return {
            k: (v.value if isinstance(v, Enum) else v)
            for k, v in self.__dict__.items()
            if v is not None
        }


@dataclass
class MapMetrics:
    """Results of one mapper call - logged to MLflow as metrics/params."""

    strategy: Optional[str] = None  # What was requested
    executed_strategy: Optional[str] = None  # What actually ran
    n_elements: int = 0
    worker_count: Optional[int] = None
    wall_time: Optional[float] = None
    throughput: Optional[float] = None  # Elements per second
    n_failures: int = 0

    # Fallback bookkeeping (on_unsupported="fallback")
    fell_back: bool = False
    fallback_reason: Optional[str] = None

    def to_mlflow(self) -> dict:
        """Convert numeric fields to an MLflow metrics dict (no None, bools as int)."""
        return {
            k: (int(v) if isinstance(v, bool) else v)
            for k, v in self.__dict__.items()
            if v is not None and not isinstance(v, str)
        }


@dataclass(frozen=True)
class ElementFailure:
    """Placeholder for a failed element under the "collect" error policy."""

    index: int
    element: Any
    error: BaseException


@dataclass
class MapResult:
    """Positional outputs plus run metrics."""

    outputs: List[Any] = field(default_factory=list)
    metrics: MapMetrics = field(default_factory=MapMetrics)

    @property
    def failures(self) -> List[ElementFailure]:
        return [o for o in self.outputs if isinstance(o, ElementFailure)]

    @property
    def ok(self) -> bool:
        return not self.failures

    def __len__(self):
        return len(self.outputs)
