"""
rat-zsh - minimal zsh plugin manager.

This is the main package that exports the public API for rat-zsh: plugin
configuration, repository sync, and load order planning.
"""

__version__ = "0.1.0"

from ratzsh.config import Config, PluginSpec, PluginType, load_config, parse
from ratzsh.errors import ConfigError, FilesystemError, ResolutionError, RzError, SyncError
from ratzsh.paths import Paths, paths, rz_home
from ratzsh.plugin.manager import PluginManager

__all__ = [
    "__version__",
    "Config",
    "ConfigError",
    "FilesystemError",
    "PluginManager",
    "PluginSpec",
    "PluginType",
    "Paths",
    "ResolutionError",
    "RzError",
    "SyncError",
    "load_config",
    "parse",
    "paths",
    "rz_home",
]
