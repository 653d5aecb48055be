"""Shared fixtures: rat-zsh layouts and local git remotes."""

import subprocess
from pathlib import Path

import pytest

from ratzsh.paths import Paths
from ratzsh.plugin.resolver import RepoResolver


def git(*args, cwd=None):
    result = subprocess.run(
        ["git", "-c", "user.name=rz", "-c", "user.email=rz@example.com", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


class Remote:
    """A working repository mirrored into a bare `owner/name.git` remote."""

    def __init__(self, base: Path, repo: str, branch: str = "main"):
        self.work = base / "work" / repo
        self.bare = base / "remote" / f"{repo}.git"
        self.work.mkdir(parents=True)
        git("init", "--quiet", "-b", branch, cwd=self.work)

    def git(self, *args):
        return git(*args, cwd=self.work)

    def bare_git(self, *args):
        return git(*args, cwd=self.bare)

    def commit(self, filename: str, content: str = "# plugin\n") -> str:
        path = self.work / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        self.git("add", "-A")
        self.git("commit", "--quiet", "-m", f"update {filename}")
        return self.git("rev-parse", "HEAD")

    def publish(self) -> None:
        if not self.bare.exists():
            self.bare.parent.mkdir(parents=True, exist_ok=True)
            git("clone", "--quiet", "--bare", str(self.work), str(self.bare))
        else:
            self.git(
                "push", "--quiet", "--force", str(self.bare),
                "refs/heads/*:refs/heads/*", "refs/tags/*:refs/tags/*",
            )


@pytest.fixture
def workspace(tmp_path):
    """(base, paths, resolver) with the resolver pointed at local remotes."""
    base = tmp_path.resolve()
    paths = Paths.under(base / ".rz")
    paths.ensure_layout()
    resolver = RepoResolver(paths, remote_base=(base / "remote").as_uri())
    return base, paths, resolver


@pytest.fixture
def make_remote(workspace):
    base = workspace[0]

    def factory(repo: str, branch: str = "main") -> Remote:
        return Remote(base, repo, branch)

    return factory


@pytest.fixture
def allow_file_submodules(monkeypatch):
    """Let git clone submodules from local paths (blocked by default since 2.38.1)."""
    monkeypatch.setenv("GIT_CONFIG_COUNT", "1")
    monkeypatch.setenv("GIT_CONFIG_KEY_0", "protocol.file.allow")
    monkeypatch.setenv("GIT_CONFIG_VALUE_0", "always")
