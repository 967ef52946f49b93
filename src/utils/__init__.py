"""Utility modules for project management and visualization.

Submodules:
- plotting: Figure styling and strategy palettes
- runners: Experiment script discovery and execution
- config: Paths and cleanup
- datatools: Data/figure directories and dataframe I/O
- mlflow: MLflow tracking helpers

Import examples:
    from utils import plotting     # Auto-applies styles
    from utils import runners      # Script execution
    from utils import mlflow       # MLflow utilities
    from utils.config import get_repo_root
"""

import warnings

# Suppress MLflow FutureWarning about filesystem backend deprecation
warnings.filterwarnings("ignore", category=FutureWarning, module="mlflow")

from . import config, datatools, runners  # noqa: E402

# Re-export common config functions for convenience
from .config import get_repo_root  # noqa: E402

__all__ = [
    "config",
    "datatools",
    "runners",
    "get_repo_root",
]
