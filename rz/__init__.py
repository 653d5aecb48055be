"""
rz - command-line interface for rat-zsh.

Subcommands: init, sync, list, order, home, config, upgrade.
"""

from ratzsh import __version__

__all__ = ["__version__"]
