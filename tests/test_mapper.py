"""Tests for the batch mapper and its execution strategies."""

import logging
import multiprocessing
import threading

import numpy as np
import pytest
from BatchMap import (
    BatchMapper,
    ConfigurationError,
    ElementFailure,
    NumbaPrimeKernel,
    PrimeKernel,
    ProcessStrategy,
    Strategy,
    TransformError,
    UnsupportedStrategyError,
    available_workers,
    is_prime,
    jittered_square,
    map_batch,
    prime_candidates,
)

from batch_transforms import TwoArgError, fail_at_two

ALL_STRATEGIES = ["sequential", "multiprocess", "multithread", "joblib", "vectorized"]
CONCURRENT = ["multiprocess", "multithread", "joblib"]


@pytest.fixture(scope="module")
def kernel():
    """Numba kernel (has a vector form), compiled once."""
    k = NumbaPrimeKernel()
    k.warmup()
    return k


class TestStrategyTransparency:
    """Every strategy must return the sequential result for a pure transform."""

    @pytest.mark.parametrize("strategy", ALL_STRATEGIES)
    def test_prime_scenario(self, kernel, strategy):
        """[2, 3, 4, 6, 17] -> [True, True, False, False, True] for every strategy."""
        result = map_batch([2, 3, 4, 6, 17], kernel, strategy=strategy, worker_count=2)
        assert result == [True, True, False, False, True]

    @pytest.mark.parametrize("strategy", ALL_STRATEGIES)
    @pytest.mark.parametrize("n", [1, 7, 250])
    def test_matches_sequential_baseline(self, kernel, strategy, n):
        """Outputs are identical to the sequential baseline for any length."""
        inputs = prime_candidates(n, low=1, high=10**5, seed=n)
        baseline = map_batch(inputs, kernel, strategy="sequential")

        assert baseline == [is_prime(x) for x in inputs]
        assert map_batch(inputs, kernel, strategy=strategy, worker_count=3) == baseline

    @pytest.mark.parametrize("strategy", ["sequential"] + CONCURRENT)
    def test_pure_python_kernel(self, strategy):
        """The pure-Python kernel agrees across all scalar strategies."""
        inputs = list(range(-3, 120))
        expected = [is_prime(x) for x in inputs]
        assert map_batch(inputs, PrimeKernel(), strategy=strategy, worker_count=2) == expected

    def test_ufunc_transform_is_vectorized(self):
        """A NumPy ufunc is its own vector-native form."""
        assert map_batch([1.0, 4.0, 9.0], np.sqrt, strategy="vectorized") == [1.0, 2.0, 3.0]

    def test_joblib_threading_backend(self, kernel):
        """The joblib strategy honours its backend option."""
        mapper = BatchMapper("joblib", worker_count=2, joblib_backend="threading")
        assert mapper.map([2, 3, 4, 6, 17], kernel).outputs == [True, True, False, False, True]


class TestOrderPreservation:
    """Results are reassembled by index regardless of completion order."""

    @pytest.mark.parametrize("strategy", CONCURRENT)
    def test_order_preserved_under_jitter(self, strategy):
        """Element-dependent delays must not reorder the output."""
        inputs = list(range(24))
        result = map_batch(inputs, jittered_square, strategy=strategy, worker_count=4)
        assert result == [x * x for x in inputs]

    def test_generator_input_is_snapshotted(self, kernel):
        """Any iterable works; it is consumed once, in order."""
        result = map_batch((x for x in [17, 4, 3]), kernel, strategy="multithread", worker_count=2)
        assert result == [True, False, True]


class TestEmptyInput:
    """Empty input returns an empty list for every strategy."""

    @pytest.mark.parametrize("strategy", ALL_STRATEGIES)
    def test_empty_input(self, strategy):
        """No error and no workers, even where the transform has no vector form."""
        assert map_batch([], is_prime, strategy=strategy) == []

    def test_empty_input_metrics(self):
        """Metrics are populated for an empty batch."""
        result = BatchMapper("multithread", worker_count=2).map([], is_prime)
        assert result.outputs == []
        assert result.metrics.n_elements == 0
        assert result.metrics.worker_count == 2
        assert result.ok


class TestWorkerCount:
    """Worker-count validation and defaults."""

    @pytest.mark.parametrize("strategy", ALL_STRATEGIES)
    @pytest.mark.parametrize("worker_count", [0, -1])
    def test_non_positive_raises(self, strategy, worker_count):
        """worker_count <= 0 is a configuration error for every strategy."""
        with pytest.raises(ConfigurationError):
            map_batch([2, 3], is_prime, strategy=strategy, worker_count=worker_count)

    @pytest.mark.parametrize("worker_count", ["2", 2.5, True])
    def test_non_integer_raises(self, worker_count):
        """Only real integers are accepted."""
        with pytest.raises(ConfigurationError):
            BatchMapper("multithread", worker_count=worker_count)

    def test_oversubscription_accepted(self, kernel):
        """More workers than CPUs is allowed."""
        workers = available_workers() * 2 + 1
        result = BatchMapper("multithread", worker_count=workers).map([2, 3, 4], kernel)
        assert result.outputs == [True, True, False]
        assert result.metrics.worker_count == workers

    def test_default_is_available_workers(self):
        """worker_count=None resolves to the hardware parallelism."""
        assert available_workers() >= 1
        assert BatchMapper("multiprocess").worker_count == available_workers()

    @pytest.mark.parametrize("strategy", ["sequential", "vectorized"])
    def test_single_worker_strategies_record_one(self, kernel, strategy):
        """Non-concurrent strategies report a single worker."""
        result = BatchMapper(strategy, worker_count=8).map([2, 3], kernel)
        assert result.metrics.worker_count == 1


class TestConfiguration:
    """Configuration errors surface before any work begins."""

    def test_unknown_strategy(self):
        """Unknown strategy names raise ConfigurationError (also a ValueError)."""
        with pytest.raises(ConfigurationError, match="Unknown strategy"):
            map_batch([1], is_prime, strategy="gpu")
        with pytest.raises(ValueError):
            map_batch([1], is_prime, strategy="gpu")

    def test_strategy_parse(self):
        """Strategy names are case-insensitive; enum members pass through."""
        assert Strategy.parse("MultiProcess") is Strategy.MULTIPROCESS
        assert Strategy.parse(Strategy.JOBLIB) is Strategy.JOBLIB

    @pytest.mark.parametrize(
        "kwargs",
        [{"on_error": "ignore"}, {"on_unsupported": "maybe"}, {"joblib_backend": "dask"}],
    )
    def test_unknown_policy(self, kwargs):
        """Policy names are validated."""
        with pytest.raises(ConfigurationError):
            BatchMapper("sequential", **kwargs)

    def test_non_callable_transform(self):
        """The transform must be callable."""
        with pytest.raises(ConfigurationError):
            map_batch([1, 2], "not a function")

    def test_unpicklable_transform_for_processes(self):
        """Locally defined functions cannot be shipped to worker processes."""
        calls = []

        def local_transform(x):
            calls.append(x)
            return x

        with pytest.raises(ConfigurationError, match="picklable"):
            map_batch([1, 2, 3], local_transform, strategy="multiprocess", worker_count=2)
        assert calls == []

    def test_unknown_strategy_option(self):
        """Options the strategy does not take are rejected."""
        with pytest.raises(ConfigurationError):
            map_batch([1, 2], is_prime, strategy="multithread", chunksize=4)

    def test_process_options_forwarded(self, kernel):
        """start_method / chunksize reach the process strategy."""
        result = map_batch(
            [2, 3, 4, 5], kernel, strategy="multiprocess", worker_count=2, chunksize=1
        )
        assert result == [True, True, False, True]


class TestFailFast:
    """Default error policy: abort on the first failing element."""

    @pytest.mark.parametrize("strategy", ALL_STRATEGIES)
    def test_reports_failing_index(self, kernel, strategy):
        """[1, 2, "bad", 4] fails with TransformError at index 2."""
        with pytest.raises(TransformError) as exc_info:
            map_batch([1, 2, "bad", 4], kernel, strategy=strategy, worker_count=2)

        err = exc_info.value
        assert err.index == 2
        assert err.element == "bad"
        assert isinstance(err.cause, TypeError)
        assert err.__cause__ is err.cause
        assert "index 2" in str(err)

    def test_sequential_stops_at_first_failure(self):
        """No element after the failing one is evaluated."""
        seen = []

        def record(x):
            seen.append(x)
            if x == "bad":
                raise ValueError("bad element")
            return x

        with pytest.raises(TransformError):
            map_batch([1, "bad", 3, 4], record)
        assert seen == [1, "bad"]

    @pytest.mark.parametrize("strategy", ["multiprocess", "multithread"])
    def test_workers_released_after_abort(self, kernel, strategy):
        """No worker process or thread outlives an aborted batch."""
        children_before = set(multiprocessing.active_children())

        with pytest.raises(TransformError):
            map_batch([1, 2, "bad", 4] * 8, kernel, strategy=strategy, worker_count=2)

        assert set(multiprocessing.active_children()) <= children_before
        assert [t.name for t in threading.enumerate() if t.name.startswith("batchmap")] == []


class TestErrorsAcrossProcesses:
    """Exceptions that cannot be unpickled still become TransformError."""

    @pytest.mark.parametrize("strategy", ["multiprocess", "joblib"])
    def test_fail_fast_reports_index(self, strategy):
        """The pool survives; the error keeps its type name and message."""
        with pytest.raises(TransformError) as exc_info:
            map_batch([0, 1, 2, 3], fail_at_two, strategy=strategy, worker_count=2)

        err = exc_info.value
        assert err.index == 2
        assert err.element == 2
        assert "TwoArgError" in str(err.cause)
        assert "custom failure" in str(err.cause)

    @pytest.mark.parametrize("strategy", ["multiprocess", "joblib"])
    def test_collect(self, strategy):
        """Other elements still complete under the collect policy."""
        result = BatchMapper(strategy, worker_count=2, on_error="collect").map(
            [0, 1, 2, 3], fail_at_two
        )

        assert [result.outputs[i] for i in (0, 1, 3)] == [0, 1, 3]
        assert [f.index for f in result.failures] == [2]

    @pytest.mark.parametrize("strategy", ["sequential", "multithread"])
    def test_in_process_strategies_keep_original_error(self, strategy):
        """Without a process boundary the original exception is kept."""
        with pytest.raises(TransformError) as exc_info:
            map_batch([0, 1, 2, 3], fail_at_two, strategy=strategy, worker_count=2)
        assert isinstance(exc_info.value.cause, TwoArgError)


class TestCollectPolicy:
    """on_error="collect" keeps going and marks failing slots."""

    @pytest.mark.parametrize("strategy", ALL_STRATEGIES)
    def test_collect_failures(self, kernel, strategy):
        """Failures sit at their index; successes are untouched."""
        result = BatchMapper(strategy, worker_count=2, on_error="collect").map(
            [1, 2, "bad", 4], kernel
        )

        assert result.outputs[0] is False
        assert result.outputs[1] is True
        assert result.outputs[3] is False

        failure = result.outputs[2]
        assert isinstance(failure, ElementFailure)
        assert failure.index == 2
        assert failure.element == "bad"
        assert isinstance(failure.error, TypeError)

        assert [f.index for f in result.failures] == [2]
        assert result.metrics.n_failures == 1
        assert not result.ok


class TestUnsupportedStrategy:
    """Unsupported strategies raise, or fall back observably."""

    def test_vectorized_without_vector_form_raises(self):
        """A plain function has no vector-native form."""
        with pytest.raises(UnsupportedStrategyError) as exc_info:
            map_batch([2, 3], is_prime, strategy="vectorized")
        assert exc_info.value.strategy == "vectorized"

    def test_vectorized_fallback_is_recorded(self, caplog):
        """Fallback runs sequentially, logs a warning and flags the metrics."""
        mapper = BatchMapper("vectorized", on_unsupported="fallback")
        with caplog.at_level(logging.WARNING):
            result = mapper.map([2, 3, 4], is_prime)

        assert result.outputs == [True, True, False]
        assert result.metrics.fell_back
        assert result.metrics.strategy == "vectorized"
        assert result.metrics.executed_strategy == "sequential"
        assert "vector-native" in result.metrics.fallback_reason
        assert any("unsupported" in r.message for r in caplog.records)

    def test_process_unavailable_on_host(self, monkeypatch, kernel):
        """A host without process primitives raises unless fallback is requested."""
        monkeypatch.setattr(
            ProcessStrategy, "unsupported_reason", classmethod(lambda cls, t: "no sem_open")
        )
        with pytest.raises(UnsupportedStrategyError, match="no sem_open"):
            map_batch([2, 3], kernel, strategy="multiprocess")

        result = BatchMapper("multiprocess", on_unsupported="fallback").map([2, 3], kernel)
        assert result.outputs == [True, True]
        assert result.metrics.fell_back
        assert result.metrics.fallback_reason == "no sem_open"

    def test_malformed_vector_output(self):
        """A vector form must return one value per input."""

        class BadVector:
            def __call__(self, x):
                return x

            def vectorized(self, values):
                return np.zeros(1)

        with pytest.raises(ConfigurationError, match="shape"):
            map_batch([1, 2, 3], BadVector(), strategy="vectorized")


class TestMetrics:
    """Run metrics and MLflow conversion."""

    def test_metrics_populated(self, kernel):
        """Wall time, throughput and counts are recorded."""
        result = BatchMapper("multithread", worker_count=2).map(range(50), kernel)
        m = result.metrics

        assert m.strategy == "multithread"
        assert m.executed_strategy == "multithread"
        assert m.n_elements == 50
        assert m.worker_count == 2
        assert m.wall_time >= 0
        assert m.n_failures == 0
        assert not m.fell_back
        assert len(result) == 50

    def test_to_mlflow(self):
        """Params flatten enums; metrics drop strings/None and cast bools."""
        mapper = BatchMapper("joblib", worker_count=2)
        params = mapper.params.to_mlflow()
        assert params["strategy"] == "joblib"
        assert params["worker_count"] == 2
        assert params["environment"] in ("local", "hpc")

        metrics = mapper.map([2, 3], is_prime).metrics.to_mlflow()
        assert metrics["fell_back"] == 0
        assert metrics["n_elements"] == 2
        assert "strategy" not in metrics
        assert "fallback_reason" not in metrics
