#!/usr/bin/env python3
"""
Worker Scaling Plots
====================

Speedup and parallel efficiency (speedup / workers) versus worker count.
"""

# %%
# Setup
# -----

import matplotlib.pyplot as plt
import seaborn as sns

from utils import datatools, plotting

df = datatools.load_simulation_data(datatools.get_data_dir() / "worker_scaling.parquet")
df = df[df["strategy"] != "sequential"]
figures_dir = datatools.get_figures_dir()
palette = plotting.palettes.strategy_palette(df["strategy"])

# %%
# Speedup and Efficiency
# ----------------------

fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(12, 4.5))

sns.lineplot(
    data=df, x="worker_count", y="speedup", hue="strategy", palette=palette,
    marker="o", errorbar="sd", ax=ax1,
)
p_max = df["worker_count"].max()
ax1.plot([1, p_max], [1, p_max], "--", color=plotting.palettes.SCALING["ideal"], label="Ideal")
ax1.set_xlabel("Number of workers")
ax1.set_ylabel("Speedup (vs sequential)")
ax1.set_title("Strong Scaling")
ax1.legend()

sns.lineplot(
    data=df, x="worker_count", y="efficiency", hue="strategy", palette=palette,
    marker="o", errorbar="sd", ax=ax2, legend=False,
)
ax2.axhline(y=1, color=plotting.palettes.SCALING["ideal"], linestyle="--")
ax2.set_xlabel("Number of workers")
ax2.set_ylabel("Parallel efficiency")
ax2.set_title("Parallel Efficiency")

for ax in (ax1, ax2):
    ax.set_xscale("log", base=2)

fig.tight_layout()
plotting.save_figure(fig, figures_dir / "worker_scaling.pdf")
