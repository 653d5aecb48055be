"""
Repository Resolver.

Maps a PluginSpec to its local repository and publishes it under plugins/.

Key features:
- Deterministic slug derivation and collision detection
- Clone/fetch that survives interruption (staging directory + atomic rename)
- Branch (attached) vs tag/commit (detached) checkout
- Recursive submodule update
- Atomic publish symlink replacement
"""

import logging
import os
import re
import secrets
import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ratzsh.config.schema import PluginSpec, PluginType, Source
from ratzsh.errors import FilesystemError, ResolutionError, SyncError
from ratzsh.paths import Paths
from ratzsh.plugin import git_ops
from ratzsh.plugin.git_ops import GitError

logger = logging.getLogger(__name__)

GITHUB_BASE_URL = "https://github.com"

# Entry file patterns tried in order when a source plugin declares no `file`
ENTRY_PATTERNS = ("*.plugin.zsh", "*.zsh", "*.zsh-theme")

_SLUG_UNSAFE = re.compile(r"[^A-Za-z0-9._-]")


class RevState(Enum):
    """How HEAD relates to the requested revision."""

    TRACKING_BRANCH = "tracking-branch"
    DETACHED = "detached-at-tag-or-commit"


@dataclass(frozen=True)
class ResolvedPlugin:
    """
    A plugin mapped onto the local filesystem.

    Attributes:
        spec: Originating plugin spec
        slug: Unique identifier (alias or owner__name)
        local_repo_path: Working tree under repos/
        published_path: Symlink under plugins/
        rev_state: Attached or detached; None if not inspected
        resolved_commit: HEAD commit; None if not inspected
        branch: Branch HEAD is attached to, if any
    """

    spec: PluginSpec
    slug: str
    local_repo_path: Path
    published_path: Path
    rev_state: RevState | None = None
    resolved_commit: str | None = None
    branch: str | None = None

    @property
    def type(self) -> PluginType:
        return self.spec.type

    @property
    def repo(self) -> str:
        return self.spec.repo

    @property
    def short_commit(self) -> str | None:
        return self.resolved_commit[:7] if self.resolved_commit else None


def derive_slug(spec: PluginSpec) -> str:
    """Return `name` if set, else `owner__name` with unsafe characters replaced."""
    if spec.name:
        return spec.name
    return _SLUG_UNSAFE.sub("-", f"{spec.owner}__{spec.repo_name}")


def assign_slugs(specs: list[PluginSpec]) -> list[tuple[str, PluginSpec]]:
    """
    Derive slugs for all specs and verify they are unique.

    Returns:
        (slug, spec) pairs in input order

    Raises:
        ResolutionError: If two specs map to the same slug
    """
    pairs = [(derive_slug(spec), spec) for spec in specs]

    claimed: dict[str, list[PluginSpec]] = {}
    for slug, spec in pairs:
        claimed.setdefault(slug, []).append(spec)

    collisions = {slug: owners for slug, owners in claimed.items() if len(owners) > 1}
    if collisions:
        slug, owners = next(iter(collisions.items()))
        details = "; ".join(
            f"'{dup}' claimed by {', '.join(s.repo for s in dup_specs)}"
            for dup, dup_specs in collisions.items()
        )
        raise ResolutionError(
            f"duplicate plugin slugs: {details}. Give each entry a distinct `name`.",
            slug=slug,
            repo=owners[0].repo,
        )
    return pairs


def find_entry_file(repo_dir: Path) -> Path | None:
    """Return the first root file matching ENTRY_PATTERNS, in pattern order."""
    for pattern in ENTRY_PATTERNS:
        matches = sorted(p for p in repo_dir.glob(pattern) if p.is_file())
        if matches:
            return matches[0]
    return None


class RepoResolver:
    """
    Materializes plugin repositories and publishes them.

    Each slug owns `repos/<slug>` and `plugins/<slug>` exclusively, so resolvers
    for different slugs may run concurrently without locking.
    """

    def __init__(self, paths: Paths, remote_base: str = GITHUB_BASE_URL):
        """
        Initialize RepoResolver.

        Args:
            paths: rat-zsh directory layout
            remote_base: Base URL for `github` sources (overridable for mirrors/tests)
        """
        self.paths = paths
        self.remote_base = remote_base.rstrip("/")

    def remote_url(self, spec: PluginSpec) -> str:
        if spec.source is Source.GITHUB:
            return f"{self.remote_base}/{spec.repo}.git"
        raise SyncError(f"unsupported source: {spec.source.value}", repo=spec.repo)

    def resolve(self, spec: PluginSpec, slug: str | None = None, publish: bool = True) -> ResolvedPlugin:
        """
        Clone or update a plugin, check out its revision and publish it.

        Safe to call repeatedly; each call converges on the configured revision.

        Args:
            spec: Plugin spec
            slug: Pre-assigned slug (derived from spec when omitted)
            publish: Replace the plugins/<slug> symlink

        Returns:
            ResolvedPlugin with rev state and resolved commit

        Raises:
            SyncError: On any git failure or missing entry file
            FilesystemError: If the working tree or symlink cannot be written
        """
        slug = slug or derive_slug(spec)
        repo_dir = self.paths.repos / slug

        try:
            self._materialize(spec, slug, repo_dir)
            rev_state, branch = self._checkout(spec, repo_dir)
            git_ops.update_submodules(repo_dir)
            commit = git_ops.head_commit(repo_dir)
        except GitError as e:
            raise SyncError(str(e), slug=slug, repo=spec.repo) from e

        published = self.paths.plugins / slug
        if publish:
            self.publish(slug, spec, self.publish_target(spec, slug, repo_dir))

        logger.debug("resolved %s at %s (%s)", slug, commit, rev_state.value)
        return ResolvedPlugin(
            spec=spec,
            slug=slug,
            local_repo_path=repo_dir,
            published_path=published,
            rev_state=rev_state,
            resolved_commit=commit,
            branch=branch,
        )

    def locate(self, spec: PluginSpec, slug: str | None = None, inspect: bool = False) -> ResolvedPlugin:
        """
        Describe a plugin from on-disk state without touching the network.

        Args:
            spec: Plugin spec
            slug: Pre-assigned slug (derived from spec when omitted)
            inspect: Read HEAD commit and branch via git

        Returns:
            ResolvedPlugin (rev_state/resolved_commit None when not inspected
            or when the working tree is missing)
        """
        slug = slug or derive_slug(spec)
        repo_dir = self.paths.repos / slug
        plugin = ResolvedPlugin(
            spec=spec,
            slug=slug,
            local_repo_path=repo_dir,
            published_path=self.paths.plugins / slug,
        )
        if not inspect or not git_ops.is_work_tree(repo_dir):
            return plugin

        try:
            commit = git_ops.head_commit(repo_dir)
            branch = git_ops.head_branch(repo_dir)
        except GitError as e:
            logger.warning("cannot inspect %s: %s", slug, e)
            return plugin

        return ResolvedPlugin(
            spec=spec,
            slug=slug,
            local_repo_path=repo_dir,
            published_path=plugin.published_path,
            rev_state=RevState.TRACKING_BRANCH if branch else RevState.DETACHED,
            resolved_commit=commit,
            branch=branch,
        )

    def _materialize(self, spec: PluginSpec, slug: str, repo_dir: Path) -> None:
        """Clone into a staging dir and rename into place, or fetch an existing tree."""
        staging = self.paths.repos / f".{slug}.partial"
        try:
            if staging.exists():
                logger.warning("removing interrupted clone %s", staging)
                shutil.rmtree(staging)

            if repo_dir.exists() or repo_dir.is_symlink():
                if git_ops.is_work_tree(repo_dir):
                    git_ops.fetch_origin(repo_dir)
                    return
                logger.warning("%s is not a valid work tree, cloning again", repo_dir)
                if repo_dir.is_dir() and not repo_dir.is_symlink():
                    shutil.rmtree(repo_dir)
                else:
                    repo_dir.unlink()

            git_ops.clone_repo(self.remote_url(spec), staging)
            os.replace(staging, repo_dir)
        except OSError as e:
            raise FilesystemError(f"failed to prepare {repo_dir}: {e}", slug=slug, repo=spec.repo) from e

    def _checkout(self, spec: PluginSpec, repo_dir: Path) -> tuple[RevState, str | None]:
        if spec.rev:
            if git_ops.checkout_rev(repo_dir, spec.rev):
                return RevState.TRACKING_BRANCH, spec.rev
            return RevState.DETACHED, None

        branch = git_ops.default_branch(repo_dir)
        git_ops.checkout_branch(repo_dir, branch)
        return RevState.TRACKING_BRANCH, branch

    def publish_target(self, spec: PluginSpec, slug: str, repo_dir: Path) -> Path:
        """
        Compute what plugins/<slug> should point at.

        Raises:
            SyncError: If a declared entry file does not exist
        """
        if spec.type is PluginType.FPATH:
            return repo_dir

        if spec.file:
            target = repo_dir / spec.file
            if not target.is_file():
                raise SyncError(f"file not found in repository: {spec.file}", slug=slug, repo=spec.repo)
            return target

        return find_entry_file(repo_dir) or repo_dir

    def publish(self, slug: str, spec: PluginSpec, target: Path) -> None:
        """
        Atomically point plugins/<slug> at `target`.

        A temporary symlink is renamed over the old one so the published path
        never disappears.

        Raises:
            FilesystemError: If the symlink cannot be created or replaced
        """
        link = self.paths.plugins / slug
        tmp = self.paths.plugins / f".{slug}.tmp-{os.getpid()}-{secrets.token_hex(4)}"
        try:
            self.paths.plugins.mkdir(parents=True, exist_ok=True)
            os.symlink(target, tmp)
            os.replace(tmp, link)
        except OSError as e:
            if tmp.is_symlink():
                tmp.unlink()
            raise FilesystemError(f"failed to publish {link}: {e}", slug=slug, repo=spec.repo) from e
