"""
Strategy Comparison Benchmark
=============================

Time every execution strategy on the same primality workload.

Two kernels are compared:
- python: pure-Python trial division (no vector form; vectorized falls back)
- numba: JIT-compiled trial division with a Numba ufunc as vector form

Every run is also checked against the sequential output, since all
strategies must agree for a pure transform.
"""

# %%
# Benchmark Configuration
# -----------------------

import pandas as pd

from BatchMap import NumbaPrimeKernel, PrimeKernel, available_workers, benchmark, prime_candidates
from utils import datatools

print("Strategy Benchmarks")
print("=" * 60)

n_elements = 20_000
inputs = prime_candidates(n_elements, low=10**6, high=10**7, seed=0)
workers = available_workers()
kernels = {"python": PrimeKernel(), "numba": NumbaPrimeKernel()}

# %%
# Run
# ---

results = []
for kernel_name, kernel in kernels.items():
    print(f"\nKernel={kernel_name}, n={n_elements}, workers={workers}")
    print("-" * 60)

    df = benchmark(inputs, kernel, worker_counts=[workers], repeats=3)
    df["kernel"] = kernel_name
    results.append(df)

    summary = df.groupby("strategy")[["wall_time", "speedup"]].median()
    for strategy, row in summary.iterrows():
        print(f"  {strategy:<13} {row.wall_time:8.4f}s  speedup {row.speedup:5.2f}x")

    if not df["matches_baseline"].all():
        bad = df.loc[~df["matches_baseline"], "strategy"].unique()
        print(f"  ✗ WARNING: outputs differ from sequential for {list(bad)}")

# %%
# Save Results
# ------------

df = pd.concat(results, ignore_index=True)
output_path = datatools.get_data_dir() / "strategies.parquet"
datatools.save_simulation_data(df, output_path)

print("\n" + "=" * 60)
print(f"Saved to: {output_path}")
