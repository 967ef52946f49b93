"""
Strategy Comparison Plots
=========================

Wall time and speedup per strategy, one panel per kernel.
"""

# %%
# Setup
# -----

import matplotlib.pyplot as plt
import seaborn as sns

from utils import datatools, plotting

df = datatools.load_simulation_data(datatools.get_data_dir() / "strategies.parquet")
figures_dir = datatools.get_figures_dir()
palette = plotting.palettes.strategy_palette(df["strategy"])

# %%
# Wall Time per Strategy
# ----------------------

g = sns.catplot(
    data=df,
    x="strategy",
    y="wall_time",
    col="kernel",
    hue="strategy",
    palette=palette,
    kind="bar",
    errorbar="sd",
    sharey=False,
    height=4,
    aspect=1.2,
)
g.set_axis_labels("", "Wall time [s]")
g.set_titles("{col_name} kernel")
for ax in g.axes.flat:
    ax.tick_params(axis="x", rotation=30)
plotting.save_figure(g.figure, figures_dir / "wall_time_by_strategy.pdf")

# %%
# Speedup vs Sequential
# ---------------------

fig, ax = plt.subplots(figsize=(7, 4))
sns.barplot(
    data=df, x="strategy", y="speedup", hue="kernel", errorbar="sd", ax=ax
)
ax.axhline(1.0, color=plotting.palettes.SCALING["ideal"], linestyle="--", linewidth=1)
ax.set_xlabel("")
ax.set_ylabel("Speedup (vs sequential)")
ax.set_yscale("log")
plotting.save_figure(fig, figures_dir / "speedup_by_strategy.pdf")
