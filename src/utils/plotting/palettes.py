"""Color palettes for benchmark plots.

Colorblind-friendly (Paul Tol's vibrant) colors, with one fixed color per
execution strategy so every figure reads the same way.
"""

from typing import Dict, Iterable, List

CATEGORICAL = [
    "#0077BB",  # Blue
    "#EE7733",  # Orange
    "#009988",  # Teal
    "#CC3311",  # Red
    "#33BBEE",  # Cyan
    "#EE3377",  # Magenta
    "#BBBBBB",  # Grey
]

STRATEGY = {
    "sequential": "#BBBBBB",
    "multiprocess": "#0077BB",
    "multithread": "#EE7733",
    "joblib": "#009988",
    "vectorized": "#CC3311",
}

# For scaling plots
SCALING = {
    "ideal": "#888888",  # Grey dashed line for ideal scaling
    "speedup": "#0077BB",
    "efficiency": "#009988",
}


def get_categorical(n: int = None) -> List[str]:
    """Get categorical palette colors, cycling if n exceeds the palette."""
    if n is None:
        return CATEGORICAL.copy()
    return (CATEGORICAL * ((n // len(CATEGORICAL)) + 1))[:n]


def strategy_palette(strategies: Iterable[str]) -> Dict[str, str]:
    """Map strategy names to colors; unknown names get spare categorical colors."""
    strategies = list(dict.fromkeys(strategies))
    spare = iter(get_categorical(len(strategies)))
    return {s: STRATEGY.get(s) or next(spare) for s in strategies}
