"""Plotting utilities for benchmark figures.

This module provides:
- Automatic style application (seaborn theme + overrides)
- Strategy color palettes

Automatically applies styles on import:
    from utils import plotting  # Styles applied!
"""

from .styles import apply_styles, save_figure
from . import palettes

# Apply styles when module is imported
apply_styles()

__all__ = [
    "apply_styles",
    "save_figure",
    "palettes",
]
