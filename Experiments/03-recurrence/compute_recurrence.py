"""
Unsafe Parallel Recurrence
==========================

x[k] = x[k-1] + 1 is not an elementwise map: each step needs the previous
one. Handing it to a concurrent strategy anyway gives a wrong answer with
no error - under multiprocess the caller's list is never written.
"""

# %%
# Run every strategy on the recurrence
# ------------------------------------

import math

import pandas as pd

from BatchMap import sequential_recurrence, unsafe_parallel_recurrence
from utils import datatools

n = 5
expected = sequential_recurrence(n)
print(f"Correct (loop): {expected}")

rows = []
for strategy in ["sequential", "multithread", "multiprocess", "joblib"]:
    x = unsafe_parallel_recurrence(n, strategy=strategy, worker_count=2)
    correct = x == expected
    n_unset = sum(math.isnan(v) for v in x)
    rows.append({"strategy": strategy, "result": str(x), "correct": correct, "unset_slots": n_unset})
    marker = "✓" if correct else "✗"
    print(f"  {marker} {strategy:<13} {x}")

# %%
# Save Results
# ------------

df = pd.DataFrame(rows)
output_path = datatools.get_data_dir() / "recurrence.csv"
datatools.save_simulation_data(df, output_path)
print(f"\nSaved to: {output_path}")
