"""
Settings file lookup and the typed view over it.
"""

__all__ = [
    "copy_default_config",
    "load_config_or_default",
    "ConfigAdapter",
]

from .adapter import ConfigAdapter
from .file_io import copy_default_config, load_config_or_default
