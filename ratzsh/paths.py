"""
Filesystem layout for rat-zsh.

Root directory resolution order:
1. $RAT_ZSH_HOME (used as-is)
2. $XDG_CONFIG_HOME/.rz
3. $ZDOTDIR/.rz
4. $HOME/.rz

Under the root live `bin/`, `plugins/`, `repos/` and `config.toml`.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from ratzsh.errors import FilesystemError

HOME_ENV = "RAT_ZSH_HOME"
HOME_DIRNAME = ".rz"


@dataclass(frozen=True)
class Paths:
    """
    Resolved directories used by rat-zsh.

    Attributes:
        root: rat-zsh home directory
        bin: Directory holding the rz executable
        plugins: Directory of published plugin symlinks (one per slug)
        repos: Directory of repository working trees (one per slug)
        config: Path to config.toml
    """

    root: Path
    bin: Path
    plugins: Path
    repos: Path
    config: Path

    @classmethod
    def under(cls, root: Path) -> "Paths":
        """Build the standard layout below a root directory."""
        return cls(
            root=root,
            bin=root / "bin",
            plugins=root / "plugins",
            repos=root / "repos",
            config=root / "config.toml",
        )

    def ensure_layout(self) -> None:
        """
        Create the bin/, plugins/ and repos/ directories.

        Raises:
            FilesystemError: If any directory cannot be created
        """
        for directory in (self.bin, self.plugins, self.repos):
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise FilesystemError(f"Failed to create directory {directory}: {e}") from e


def _get(env: Mapping[str, str], key: str) -> str | None:
    value = env.get(key)
    return value if value else None


def rz_home(env: Mapping[str, str] | None = None) -> Path:
    """
    Resolve the rat-zsh home directory.

    Args:
        env: Environment mapping (defaults to os.environ)

    Returns:
        Root directory path
    """
    if env is None:
        env = os.environ

    override = _get(env, HOME_ENV)
    if override:
        return Path(override)

    for key in ("XDG_CONFIG_HOME", "ZDOTDIR"):
        base = _get(env, key)
        if base:
            return Path(base) / HOME_DIRNAME

    home = _get(env, "HOME")
    if home:
        return Path(home) / HOME_DIRNAME
    return Path.home() / HOME_DIRNAME


def paths(env: Mapping[str, str] | None = None) -> Paths:
    """Return the Paths layout for the current environment."""
    return Paths.under(rz_home(env))
