"""
Utility functions package
"""

from .config import load_config, get_project_root, validate_config, ConfigValidator
from .logger import setup_logger, get_logger, SearchLogger

__all__ = [
    "load_config",
    "get_project_root",
    "validate_config",
    "ConfigValidator",
    "setup_logger",
    "get_logger",
    "SearchLogger",
]
