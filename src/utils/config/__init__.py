"""Configuration utilities.

This package contains path discovery and cleanup helpers.
"""

from .paths import get_repo_root, get_hydra_config_dir
from .clean import clean_all

__all__ = ["get_repo_root", "get_hydra_config_dir", "clean_all"]
