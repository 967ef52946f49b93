"""Tests for timing helpers and the strategy benchmark."""

import time

import pytest
from BatchMap import PrimeKernel, benchmark, prime_candidates, stopwatch

EXPECTED_COLUMNS = {
    "strategy",
    "executed_strategy",
    "worker_count",
    "repeat",
    "n_elements",
    "wall_time",
    "throughput",
    "fell_back",
    "matches_baseline",
    "speedup",
}


def test_stopwatch_measures_block():
    with stopwatch() as t:
        time.sleep(0.01)
    assert t.elapsed >= 0.01


def test_stopwatch_sets_elapsed_on_error():
    with pytest.raises(RuntimeError):
        with stopwatch() as t:
            raise RuntimeError("boom")
    assert t.elapsed is not None


class TestBenchmark:
    """Benchmark sweeps strategies and worker counts over one batch."""

    @pytest.fixture(scope="class")
    def df(self):
        inputs = prime_candidates(100, low=1, high=10**5)
        return benchmark(
            inputs,
            PrimeKernel(),
            strategies=["sequential", "multithread", "vectorized"],
            worker_counts=[1, 2],
            repeats=2,
        )

    def test_columns(self, df):
        assert set(df.columns) == EXPECTED_COLUMNS

    def test_row_count(self, df):
        """Single-worker strategies run once per repeat; concurrent once per worker count."""
        counts = df.groupby("strategy").size().to_dict()
        assert counts == {"sequential": 2, "multithread": 4, "vectorized": 2}

    def test_all_match_baseline(self, df):
        """Timing never changes the outputs."""
        assert df["matches_baseline"].all()
        assert (df["n_elements"] == 100).all()
        assert (df["speedup"] > 0).all()

    def test_unsupported_rows_marked(self, df):
        """The pure-Python kernel has no vector form, so that row fell back."""
        vectorized = df[df["strategy"] == "vectorized"]
        assert vectorized["fell_back"].all()
        assert (vectorized["executed_strategy"] == "sequential").all()
        assert not df[df["strategy"] != "vectorized"]["fell_back"].any()


def test_benchmark_rejects_zero_repeats():
    with pytest.raises(ValueError):
        benchmark([2, 3], PrimeKernel(), repeats=0)
