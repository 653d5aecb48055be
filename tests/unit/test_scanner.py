"""
Tests for CompletionDirScanner.

Tests cover:
- Heuristic discovery (root, direct children, blocked names, dot-dirs)
- Grandchildren are never scanned
- Explicit fpath_dirs
- Real filesystem lister
- Display formatting
"""

import tempfile
from pathlib import Path

import pytest

from ratzsh.plugin.scanner import (
    CompletionDirScanner,
    DirEntry,
    OsDirectoryLister,
    blocked,
    format_fpath_dirs,
)


class FakeLister:
    """In-memory directory tree: maps a directory to its entries."""

    def __init__(self, tree: dict[str, list[tuple[str, bool]]]):
        self.tree = {Path(k): [DirEntry(n, d) for n, d in v] for k, v in tree.items()}
        self.listed: list[Path] = []

    def list_dir(self, path):
        self.listed.append(path)
        return list(self.tree.get(path, []))

    def is_dir(self, path):
        if path in self.tree:
            return True
        parent = self.tree.get(path.parent, [])
        return any(entry.name == path.name and entry.is_dir for entry in parent)

    def canonicalize(self, path):
        return path


@pytest.fixture
def completions_tree():
    return FakeLister(
        {
            "/r": [("src", True), ("docs", True), (".git", True), ("README.md", False)],
            "/r/src": [("_foo", False), ("_bar", False)],
            "/r/docs": [("_manual", False)],
            "/r/.git": [("_x", False)],
        }
    )


class TestHeuristicScan:
    """Test discovery without explicit dirs."""

    def test_child_with_completions(self, completions_tree):
        """Only src qualifies; docs and .git are blocked."""
        scanner = CompletionDirScanner(lister=completions_tree)
        assert scanner.scan(Path("/r")) == [Path("/r/src")]

    def test_root_before_children(self):
        """A qualifying root comes first, then children in enumeration order."""
        lister = FakeLister(
            {
                "/r": [("zeta", True), ("_r", False), ("alpha", True)],
                "/r/zeta": [("_z", False)],
                "/r/alpha": [("_a", False)],
            }
        )
        scanner = CompletionDirScanner(lister=lister)
        assert scanner.scan(Path("/r")) == [Path("/r"), Path("/r/zeta"), Path("/r/alpha")]

    def test_grandchildren_not_scanned(self):
        """Completions two levels deep are not discovered."""
        lister = FakeLister(
            {
                "/r": [("a", True)],
                "/r/a": [("b", True)],
                "/r/a/b": [("_deep", False)],
            }
        )
        scanner = CompletionDirScanner(lister=lister)
        assert scanner.scan(Path("/r")) == []
        assert Path("/r/a/b") not in lister.listed

    def test_files_are_not_candidates(self):
        """A file named like a directory is ignored."""
        lister = FakeLister({"/r": [("src", False)], "/r/src": [("_x", False)]})
        assert CompletionDirScanner(lister=lister).scan(Path("/r")) == []

    def test_missing_root(self):
        """A missing target yields no directories."""
        assert CompletionDirScanner(lister=FakeLister({})).scan(Path("/missing")) == []

    def test_blocked_names(self):
        """Dot-dirs and well-known names are blocked."""
        assert blocked(".github")
        assert blocked("node_modules")
        assert blocked("tests")
        assert not blocked("src")
        assert not blocked("functions")


class TestExplicitScan:
    """Test explicit fpath_dirs."""

    def test_existing_dirs_kept_in_order(self, completions_tree):
        """Declared dirs are kept in declared order; blocked names are allowed."""
        scanner = CompletionDirScanner(lister=completions_tree)
        assert scanner.scan(Path("/r"), ["docs", "src"]) == [Path("/r/docs"), Path("/r/src")]

    def test_missing_dirs_skipped(self, completions_tree):
        """Declared dirs that do not exist are skipped."""
        scanner = CompletionDirScanner(lister=completions_tree)
        assert scanner.scan(Path("/r"), ["nope", "src"]) == [Path("/r/src")]

    def test_regular_file_skipped(self, completions_tree):
        """Declared paths that are files are not directories and are skipped."""
        scanner = CompletionDirScanner(lister=completions_tree)
        assert scanner.scan(Path("/r"), ["README.md", "src"]) == [Path("/r/src")]

    def test_empty_list_means_none(self, completions_tree):
        """An explicit empty list disables discovery."""
        scanner = CompletionDirScanner(lister=completions_tree)
        assert scanner.scan(Path("/r"), []) == []


class TestOsLister:
    """Test scanning a real directory tree."""

    def test_scan_through_symlink(self):
        """The published symlink is canonicalized before scanning."""
        with tempfile.TemporaryDirectory() as tmpdir:
            base = Path(tmpdir).resolve()
            repo = base / "repo"
            (repo / "src").mkdir(parents=True)
            (repo / "src" / "_tool").write_text("#compdef tool\n")
            (repo / "tests").mkdir()
            (repo / "tests" / "_t").write_text("")
            link = base / "link"
            link.symlink_to(repo)

            assert CompletionDirScanner().scan(link) == [repo / "src"]

    def test_unreadable_dir_lists_empty(self):
        """Listing a missing directory returns nothing."""
        with tempfile.TemporaryDirectory() as tmpdir:
            assert OsDirectoryLister().list_dir(Path(tmpdir) / "missing") == []


class TestFormat:
    """Test fpath dir display."""

    def test_format(self):
        """Zero, one and several directories."""
        assert format_fpath_dirs([]) == ""
        assert format_fpath_dirs([Path("/a")]) == "/a"
        assert format_fpath_dirs([Path("/a"), Path("/b")]) == "{/a, /b}"


class TestCompletionDirs:
    """Test the completion directory predicate on real and fake trees."""

    def test_is_completion_dir(self):
        """Only direct underscore entries count."""
        lister = FakeLister({"/e": [], "/n": [("foo", False), ("bar", True)], "/y": [("_x", True)]})
        scanner = CompletionDirScanner(lister=lister)
        assert not scanner.is_completion_dir(Path("/e"))
        assert not scanner.is_completion_dir(Path("/n"))
        assert scanner.is_completion_dir(Path("/y"))

    def test_completions_beside_docs(self):
        """completions/ is found; docs/ is blocked even with underscore files."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            (root / "completions").mkdir()
            (root / "completions" / "_git").write_text("")
            (root / "docs").mkdir()
            (root / "docs" / "_ignored").write_text("")
            (root / "README.md").write_text("")

            assert CompletionDirScanner().scan(root) == [root / "completions"]

    def test_explicit_dir_without_completions(self):
        """Declared dirs are kept regardless of contents."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            (root / "src").mkdir()
            (root / "src" / "README").write_text("")

            assert CompletionDirScanner().scan(root, ["src"]) == [root / "src"]

    def test_explicit_file_on_disk_skipped(self):
        """A declared entry pointing at a file never reaches fpath."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            (root / "src").mkdir()
            (root / "_tool").write_text("#compdef tool\n")

            assert CompletionDirScanner().scan(root, ["_tool", "src"]) == [root / "src"]
