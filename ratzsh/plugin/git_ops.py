"""
Git Operations for Plugin Repositories.

This module drives the external `git` executable for plugin installation and updates.

Key features:
- Clone and fetch plugin repositories
- Checkout branches (attached, tracking origin) or tags/commits (detached)
- Default branch discovery from origin/HEAD
- Recursive submodule update
- Working tree inspection (HEAD commit, attached branch, ahead/behind, dirty)
- Semantic version tag lookup
"""

import logging
import os
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

# Never block on credential prompts; a missing repo must fail fast
_GIT_ENV = {"GIT_TERMINAL_PROMPT": "0", "GIT_ASKPASS": "echo"}


class GitError(Exception):
    """Base exception for git-related errors."""

    pass


def _run_git(
    args: list[str], cwd: Path | None = None, check: bool = True
) -> subprocess.CompletedProcess[str]:
    """
    Run a git command and capture its output.

    Args:
        args: Arguments after `git`
        cwd: Working directory
        check: Raise GitError on non-zero exit

    Returns:
        Completed process

    Raises:
        GitError: If git is missing or (with check) the command fails
    """
    cmd = ["git", "-c", "advice.detachedHead=false", *args]
    logger.debug("running %s (cwd=%s)", " ".join(cmd), cwd)
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
            env={**os.environ, **_GIT_ENV},
        )
    except FileNotFoundError as e:
        raise GitError("git command not found. Please install git.") from e
    except OSError as e:
        raise GitError(f"failed to run git {args[0]}: {e}") from e

    if check and result.returncode != 0:
        detail = (result.stderr or result.stdout).strip()
        raise GitError(f"git {args[0]} failed: {detail}")
    return result


def clone_repo(repo_url: str, target_dir: Path) -> None:
    """
    Clone a repository.

    Args:
        repo_url: Git repository URL
        target_dir: Target directory for clone (must not exist)

    Raises:
        GitError: If clone operation fails
    """
    target_dir.parent.mkdir(parents=True, exist_ok=True)
    _run_git(["clone", "--quiet", repo_url, str(target_dir)])


def is_work_tree(repo_dir: Path) -> bool:
    """
    Check whether a directory holds a usable git work tree.

    A directory without `.git`, or one git refuses to open, is not usable.
    """
    if not (repo_dir / ".git").exists():
        return False
    try:
        result = _run_git(["rev-parse", "--is-inside-work-tree"], cwd=repo_dir, check=False)
    except GitError:
        return False
    return result.returncode == 0 and result.stdout.strip() == "true"


def fetch_origin(repo_dir: Path) -> None:
    """
    Fetch branches and tags from origin, then refresh origin/HEAD.

    origin/HEAD is only written at clone time; refreshing it keeps the default
    branch correct after upstream renames it.

    Raises:
        GitError: If fetch operation fails
    """
    _run_git(
        [
            "fetch",
            "--quiet",
            "--prune",
            "--force",
            "origin",
            "+refs/heads/*:refs/remotes/origin/*",
            "+refs/tags/*:refs/tags/*",
        ],
        cwd=repo_dir,
    )
    result = _run_git(["remote", "set-head", "origin", "--auto"], cwd=repo_dir, check=False)
    if result.returncode != 0:
        logger.debug("could not refresh origin/HEAD in %s: %s", repo_dir, result.stderr.strip())


def ref_exists(repo_dir: Path, ref: str) -> bool:
    """Check whether a fully qualified ref exists."""
    result = _run_git(["show-ref", "--verify", "--quiet", ref], cwd=repo_dir, check=False)
    return result.returncode == 0


def default_branch(repo_dir: Path) -> str:
    """
    Determine the remote default branch.

    Uses origin/HEAD when it points at an existing branch, falling back to
    origin/main then origin/master.

    Raises:
        GitError: If no default branch can be determined
    """
    result = _run_git(
        ["symbolic-ref", "--quiet", "refs/remotes/origin/HEAD"], cwd=repo_dir, check=False
    )
    target = result.stdout.strip()
    if (
        result.returncode == 0
        and target.startswith("refs/remotes/origin/")
        and ref_exists(repo_dir, target)
    ):
        return target[len("refs/remotes/origin/"):]
    if target:
        logger.debug("origin/HEAD points at missing %s", target)

    for candidate in ("main", "master"):
        if ref_exists(repo_dir, f"refs/remotes/origin/{candidate}"):
            return candidate

    raise GitError(
        "could not determine default branch (missing origin/HEAD, origin/main, origin/master)"
    )


def checkout_branch(repo_dir: Path, branch: str) -> None:
    """
    Attach HEAD to a local branch tracking origin/<branch>, reset to the remote tip.

    Raises:
        GitError: If checkout fails
    """
    _run_git(
        ["checkout", "--quiet", "--force", "-B", branch, f"refs/remotes/origin/{branch}"],
        cwd=repo_dir,
    )
    _run_git(["branch", "--quiet", f"--set-upstream-to=origin/{branch}", branch], cwd=repo_dir)


def checkout_detached(repo_dir: Path, rev: str) -> None:
    """
    Check out a tag or commit-ish with a detached HEAD.

    Raises:
        GitError: If the revision cannot be resolved or checked out
    """
    result = _run_git(
        ["rev-parse", "--verify", "--quiet", f"{rev}^{{commit}}"], cwd=repo_dir, check=False
    )
    commit = result.stdout.strip()
    if result.returncode != 0 or not commit:
        raise GitError(f"rev not found: {rev}")
    _run_git(["checkout", "--quiet", "--force", "--detach", commit], cwd=repo_dir)


def checkout_rev(repo_dir: Path, rev: str) -> bool:
    """
    Check out a revision (branch, tag, or commit).

    Resolution order:
    1. Remote branch (refs/remotes/origin/<rev>) -> attached, tracking
    2. Tag (refs/tags/<rev>) -> detached
    3. Commit SHA or revspec -> detached

    A local branch left over after its upstream was deleted is never used.

    Returns:
        True if HEAD is attached to a branch, False if detached

    Raises:
        GitError: If the revision cannot be resolved or checkout fails
    """
    if ref_exists(repo_dir, f"refs/remotes/origin/{rev}"):
        checkout_branch(repo_dir, rev)
        return True

    if ref_exists(repo_dir, f"refs/tags/{rev}"):
        checkout_detached(repo_dir, f"refs/tags/{rev}")
        return False

    if ref_exists(repo_dir, f"refs/heads/{rev}"):
        raise GitError(f"rev not found: {rev} (branch no longer exists on origin)")

    checkout_detached(repo_dir, rev)
    return False


def update_submodules(repo_dir: Path) -> None:
    """
    Initialize and update all submodules recursively.

    Raises:
        GitError: If any submodule fails to initialize or update
    """
    if not (repo_dir / ".gitmodules").exists():
        return
    _run_git(["submodule", "--quiet", "sync", "--recursive"], cwd=repo_dir)
    _run_git(
        ["submodule", "--quiet", "update", "--init", "--recursive", "--force"], cwd=repo_dir
    )


def head_commit(repo_dir: Path) -> str:
    """
    Return the full commit hash of HEAD.

    Raises:
        GitError: If HEAD cannot be resolved
    """
    return _run_git(["rev-parse", "HEAD"], cwd=repo_dir).stdout.strip()


def head_branch(repo_dir: Path) -> str | None:
    """Return the branch HEAD is attached to, or None when detached."""
    result = _run_git(["symbolic-ref", "--quiet", "--short", "HEAD"], cwd=repo_dir, check=False)
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def tags_at_head(repo_dir: Path) -> list[str]:
    """Return tag names pointing at HEAD."""
    result = _run_git(["tag", "--points-at", "HEAD"], cwd=repo_dir, check=False)
    if result.returncode != 0:
        return []
    return [line.strip() for line in result.stdout.splitlines() if line.strip()]


def is_dirty(repo_dir: Path) -> bool:
    """
    Check for uncommitted changes to tracked files.

    Raises:
        GitError: If status cannot be read
    """
    result = _run_git(["status", "--porcelain", "--untracked-files=no"], cwd=repo_dir)
    return bool(result.stdout.strip())


@dataclass(frozen=True)
class UpdateStatus:
    """
    Local branch position relative to its upstream.

    Attributes:
        ahead: Commits on the local branch not on upstream
        behind: Commits on upstream not on the local branch
        dirty: Tracked files modified
        unknown: Status could not be determined
    """

    ahead: int = 0
    behind: int = 0
    dirty: bool = False
    unknown: bool = False


def attached_update_status(repo_dir: Path, branch: str) -> UpdateStatus:
    """
    Compare a local branch with origin/<branch> using local refs only.

    Returns:
        UpdateStatus (unknown=True if refs are missing or git fails)
    """
    try:
        dirty = is_dirty(repo_dir)
    except GitError:
        return UpdateStatus(unknown=True)

    result = _run_git(
        ["rev-list", "--left-right", "--count", f"{branch}...origin/{branch}"],
        cwd=repo_dir,
        check=False,
    )
    parts = result.stdout.split()
    if result.returncode != 0 or len(parts) != 2:
        return UpdateStatus(dirty=dirty, unknown=True)
    return UpdateStatus(ahead=int(parts[0]), behind=int(parts[1]), dirty=dirty)


def list_tags(repo_dir: Path) -> list[str]:
    """
    List all tags in repository.

    Raises:
        GitError: If list operation fails
    """
    result = _run_git(["tag", "-l"], cwd=repo_dir)
    return [line.strip() for line in result.stdout.splitlines() if line.strip()]


def get_latest_tag(repo_dir: Path, prefix: str = "v") -> str | None:
    """
    Get the latest semantic version tag.

    Args:
        repo_dir: Repository directory
        prefix: Tag prefix (default: "v")

    Returns:
        Latest tag name, or None if no tags found

    Raises:
        GitError: If operation fails
    """
    version_tags = []
    for tag in list_tags(repo_dir):
        if tag.startswith(prefix):
            version_str = tag[len(prefix):]
            if _is_valid_semver(version_str):
                version_tags.append((tag, version_str))

    if not version_tags:
        return None

    version_tags.sort(key=lambda x: _parse_semver(x[1]), reverse=True)
    return version_tags[0][0]


def _is_valid_semver(version: str) -> bool:
    return bool(re.match(r"^\d+\.\d+\.\d+$", version))


def _parse_semver(version: str) -> tuple[int, int, int]:
    parts = version.split(".")
    return (int(parts[0]), int(parts[1]), int(parts[2]))
