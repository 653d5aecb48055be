"""
Completion Directory Scanner.

Finds directories inside a plugin repository worth adding to the shell's
function search path (fpath).

Two modes:
- Heuristic (no explicit dirs): the repository root and its direct children
  that hold at least one `_`-prefixed entry, skipping dot-directories and
  well-known non-source directories. Grandchildren are never scanned.
- Explicit dirs: each listed path joined with the root, kept if it is a directory.

All filesystem access goes through a DirectoryLister so the heuristic can be
exercised against an in-memory tree.
"""

import logging
import os
from pathlib import Path
from typing import NamedTuple, Protocol

logger = logging.getLogger(__name__)

BLOCKED_NAMES = frozenset(
    {
        "docs",
        "doc",
        "examples",
        "example",
        "samples",
        "sample",
        "tests",
        "test",
        "spec",
        "scripts",
        "script",
        "tools",
        "bin",
        "assets",
        "images",
        "img",
        "node_modules",
    }
)


class DirEntry(NamedTuple):
    """One directory entry as seen by the scanner."""

    name: str
    is_dir: bool


class DirectoryLister(Protocol):
    """Filesystem capability used by the scanner."""

    def list_dir(self, path: Path) -> list[DirEntry]:
        """Return direct entries of `path` in enumeration order; [] if unreadable."""
        ...

    def is_dir(self, path: Path) -> bool:
        ...

    def canonicalize(self, path: Path) -> Path:
        """Resolve symlinks and relative segments."""
        ...


class OsDirectoryLister:
    """DirectoryLister backed by the real filesystem."""

    def list_dir(self, path: Path) -> list[DirEntry]:
        try:
            with os.scandir(path) as it:
                return [DirEntry(entry.name, entry.is_dir()) for entry in it]
        except (FileNotFoundError, NotADirectoryError, PermissionError) as e:
            logger.debug("cannot list %s: %s", path, e)
            return []

    def is_dir(self, path: Path) -> bool:
        return path.is_dir()

    def canonicalize(self, path: Path) -> Path:
        return path.resolve()


def blocked(name: str) -> bool:
    """True if a child directory must never be considered for fpath."""
    return name.startswith(".") or name in BLOCKED_NAMES


def is_completion_dir(directory: Path, lister: DirectoryLister) -> bool:
    """True iff `directory` directly contains an entry whose name begins with `_`."""
    return any(entry.name.startswith("_") for entry in lister.list_dir(directory))


class CompletionDirScanner:
    """
    Discovers fpath directories for a plugin repository.

    Example:
        scanner = CompletionDirScanner()
        dirs = scanner.scan(Path("~/.rz/plugins/zsh-users__zsh-completions"))
    """

    def __init__(self, lister: DirectoryLister | None = None):
        self.lister = lister or OsDirectoryLister()

    def is_completion_dir(self, directory: Path) -> bool:
        return is_completion_dir(directory, self.lister)

    def scan(self, target_root: Path, explicit_dirs: tuple[str, ...] | list[str] | None = None) -> list[Path]:
        """
        Return fpath directories for a plugin.

        Args:
            target_root: Repository root (may be a symlink, e.g. the published path)
            explicit_dirs: Relative directories declared in config, or None for discovery

        Returns:
            Directories in discovery order (root first, then children in
            enumeration order) or in the declared order
        """
        root = self.lister.canonicalize(target_root)

        if explicit_dirs is not None:
            found = []
            for rel in explicit_dirs:
                candidate = root / rel
                if self.lister.is_dir(candidate):
                    found.append(candidate)
                else:
                    logger.warning("fpath dir %s is not a directory, skipping", candidate)
            return found

        if not self.lister.is_dir(root):
            return []

        found = []
        if self.is_completion_dir(root):
            found.append(root)

        for entry in self.lister.list_dir(root):
            if not entry.is_dir or blocked(entry.name):
                continue
            child = root / entry.name
            if self.is_completion_dir(child):
                found.append(child)
        return found


def format_fpath_dirs(dirs: list[Path]) -> str:
    """
    Format fpath directories for display.

    Empty -> "", one -> the path, several -> "{a, b}".
    """
    if not dirs:
        return ""
    if len(dirs) == 1:
        return str(dirs[0])
    return "{" + ", ".join(str(d) for d in dirs) + "}"
