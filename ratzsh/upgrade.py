"""
Self-upgrade support.

rat-zsh manages its own repository like any plugin: it is synced through the
regular resolver under a reserved slug, pinned to the latest release tag, and
never published into plugins/. Installing the program from the synced tree is
left to an external step.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

import httpx

from ratzsh import __version__
from ratzsh.config.schema import PluginSpec
from ratzsh.errors import SyncError
from ratzsh.plugin import git_ops
from ratzsh.plugin.git_ops import GitError
from ratzsh.plugin.sync import SyncEngine, SyncResult

logger = logging.getLogger(__name__)

SELF_REPO = "gotokazuki/rat-zsh"
# Leading underscore keeps it outside the namespace allowed for config names
SELF_SLUG = "_rat-zsh"
RELEASES_URL = f"https://api.github.com/repos/{SELF_REPO}/releases/latest"


class UpgradeError(SyncError):
    """Raised when the self repository cannot be upgraded."""

    pass


@dataclass(frozen=True)
class UpgradeOutcome:
    """
    Result of an upgrade run.

    Attributes:
        tag: Release tag selected (None when tracking the default branch)
        up_to_date: Installed version already matches the tag
        result: Sync result for the self repository (None when up to date)
    """

    tag: str | None
    up_to_date: bool
    result: SyncResult | None = None


def github_headers() -> dict[str, str]:
    """Headers for the GitHub REST API, with a bearer token when GITHUB_TOKEN is set."""
    headers = {
        "Accept": "application/vnd.github+json",
        "User-Agent": f"rat-zsh/{__version__}",
    }
    token = os.environ.get("GITHUB_TOKEN")
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def fetch_latest_release_tag(client: httpx.Client | None = None, url: str = RELEASES_URL) -> str:
    """
    Look up the latest release tag on GitHub.

    Raises:
        httpx.HTTPError: If the request fails
        UpgradeError: If the response has no tag
    """
    owns_client = client is None
    if client is None:
        client = httpx.Client(headers=github_headers(), timeout=30.0, follow_redirects=True)
    try:
        response = client.get(url)
        response.raise_for_status()
        data = response.json()
    finally:
        if owns_client:
            client.close()

    tag = data.get("tag_name") if isinstance(data, dict) else None
    if not tag:
        raise UpgradeError("latest release has no tag_name", slug=SELF_SLUG, repo=SELF_REPO)
    return tag


def is_current(tag: str, version: str = __version__) -> bool:
    """True if a release tag names the given version."""
    return tag.removeprefix("v") == version


class SelfUpgrader:
    """
    Syncs rat-zsh's own repository to the newest release.

    Example:
        upgrader = SelfUpgrader(SyncEngine(RepoResolver(paths)))
        outcome = upgrader.upgrade()
    """

    def __init__(self, engine: SyncEngine, client: httpx.Client | None = None):
        self.engine = engine
        self.client = client

    @property
    def repo_dir(self) -> Path:
        return self.engine.resolver.paths.repos / SELF_SLUG

    def _sync(self, rev: str | None) -> SyncResult:
        spec = PluginSpec(repo=SELF_REPO, name=SELF_SLUG, rev=rev)
        (result,) = self.engine.sync_all([spec], publish=False)
        return result

    def choose_tag(self) -> str | None:
        """
        Pick the release tag to install.

        Asks the GitHub API first; if that fails, syncs the self repository and
        takes its newest vX.Y.Z tag.
        """
        try:
            return fetch_latest_release_tag(self.client)
        except httpx.HTTPError as e:
            logger.warning("release lookup failed (%s); falling back to repository tags", e)

        result = self._sync(None)
        if not result.ok:
            raise UpgradeError(result.message or "sync failed", slug=SELF_SLUG, repo=SELF_REPO)
        try:
            return git_ops.get_latest_tag(self.repo_dir)
        except GitError as e:
            raise UpgradeError(str(e), slug=SELF_SLUG, repo=SELF_REPO) from e

    def upgrade(self, rev: str | None = None) -> UpgradeOutcome:
        """
        Sync the self repository to `rev` or the latest release.

        Returns:
            UpgradeOutcome
        """
        tag = rev or self.choose_tag()
        if rev is None and tag is not None and is_current(tag):
            return UpgradeOutcome(tag=tag, up_to_date=True)

        return UpgradeOutcome(tag=tag, up_to_date=False, result=self._sync(tag))
