"""Style application for matplotlib plots.

Seaborn's whitegrid theme as the base, with a few rcParams overrides for
benchmark figures.
"""

import matplotlib.pyplot as plt
import seaborn as sns

RC_OVERRIDES = {
    "figure.dpi": 110,
    "savefig.dpi": 200,
    "savefig.bbox": "tight",
    "axes.titleweight": "bold",
    "legend.frameon": False,
}


def apply_styles(context: str = "notebook") -> None:
    """Apply the seaborn theme plus project overrides.

    Parameters
    ----------
    context : str, default "notebook"
        Seaborn plotting context ("paper", "notebook", "talk", "poster").
    """
    sns.set_theme(style="whitegrid", context=context)
    plt.rcParams.update(RC_OVERRIDES)


def save_figure(fig, path) -> None:
    """Save and close a figure."""
    fig.savefig(path)
    plt.close(fig)
    print(f"  ✓ Saved {path}")
