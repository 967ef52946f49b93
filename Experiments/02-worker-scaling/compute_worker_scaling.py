"""
Worker Scaling
==============

Strong scaling of the concurrent strategies: fixed workload, growing
worker count (1, 2, 4, ... up to the available CPUs, plus one
oversubscribed point).

The numba kernel releases the GIL, so threads scale too; with the
pure-Python kernel only process-based strategies would.
"""

# %%
# Configuration
# -------------

from BatchMap import NumbaPrimeKernel, available_workers, benchmark, large_prime_workload
from utils import datatools

max_workers = available_workers()
worker_counts = sorted({2**k for k in range(max_workers.bit_length()) if 2**k <= max_workers} | {max_workers, 2 * max_workers})

# Few expensive elements: per-element cost dominates dispatch overhead
inputs = large_prime_workload(repeat=max(2, max_workers))
kernel = NumbaPrimeKernel()

print("Worker Scaling")
print("=" * 60)
print(f"Elements: {len(inputs)}, worker counts: {worker_counts}")

# %%
# Run
# ---

df = benchmark(
    inputs,
    kernel,
    strategies=["sequential", "multiprocess", "multithread", "joblib"],
    worker_counts=worker_counts,
    repeats=3,
)
df["efficiency"] = df["speedup"] / df["worker_count"]

summary = df.groupby(["strategy", "worker_count"])["speedup"].median()
for (strategy, workers), speedup in summary.items():
    print(f"  {strategy:<13} p={workers:<3d} speedup {speedup:5.2f}x")

# %%
# Save Results
# ------------

output_path = datatools.get_data_dir() / "worker_scaling.parquet"
datatools.save_simulation_data(df, output_path)
print(f"\nSaved to: {output_path}")
