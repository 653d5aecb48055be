"""
Sync Engine.

Runs RepoResolver over every plugin spec under bounded concurrency.

Key features:
- asyncio worker pool capped by a semaphore and a thread pool of the same size
  (limits concurrent git processes)
- Fail-at-end: every plugin is attempted, failures are collected per slug
- Results returned in spec order regardless of completion order
"""

import asyncio
import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum

from ratzsh.config.schema import PluginSpec, default_jobs
from ratzsh.errors import RzError
from ratzsh.plugin.resolver import RepoResolver, ResolvedPlugin, assign_slugs

logger = logging.getLogger(__name__)


class SyncStatus(Enum):
    """Outcome of syncing one plugin."""

    OK = "ok"
    ERROR = "error"


@dataclass(frozen=True)
class SyncResult:
    """
    Result of syncing one plugin.

    Attributes:
        slug: Plugin slug
        repo: Repository (owner/name)
        status: ok or error
        message: Error description (error only)
        resolved_commit: HEAD after checkout (ok only)
        plugin: Resolved plugin (ok only)
    """

    slug: str
    repo: str
    status: SyncStatus
    message: str | None = None
    resolved_commit: str | None = None
    plugin: ResolvedPlugin | None = None

    @property
    def ok(self) -> bool:
        return self.status is SyncStatus.OK


class SyncEngine:
    """
    Bounded-concurrency driver for RepoResolver.

    Example:
        engine = SyncEngine(RepoResolver(paths), jobs=4)
        results = engine.sync_all(config.plugins)
        failed = [r.slug for r in results if not r.ok]
    """

    def __init__(self, resolver: RepoResolver, jobs: int | None = None):
        """
        Initialize SyncEngine.

        Args:
            resolver: Resolver used for every plugin
            jobs: Maximum concurrent resolutions (default: core count, capped at 8)
        """
        self.resolver = resolver
        self.jobs = max(1, jobs if jobs is not None else default_jobs())

    def sync_all(
        self,
        specs: list[PluginSpec],
        publish: bool = True,
        on_result: Callable[[SyncResult], None] | None = None,
    ) -> list[SyncResult]:
        """
        Sync all plugins; returns only after every worker has finished.

        Args:
            specs: Plugin specs in config order
            publish: Publish plugins/<slug> symlinks
            on_result: Called with each result as soon as it is available

        Returns:
            One SyncResult per spec, in spec order

        Raises:
            ResolutionError: If slugs collide (raised before any work starts)
        """
        pairs = assign_slugs(specs)
        if not pairs:
            return []
        return asyncio.run(self._sync_all_async(pairs, publish, on_result))

    async def _sync_all_async(
        self,
        pairs: list[tuple[str, PluginSpec]],
        publish: bool,
        on_result: Callable[[SyncResult], None] | None,
    ) -> list[SyncResult]:
        loop = asyncio.get_running_loop()
        semaphore = asyncio.Semaphore(self.jobs)
        # Own pool: the default executor may have fewer threads than jobs
        executor = ThreadPoolExecutor(max_workers=self.jobs, thread_name_prefix="rz-sync")

        async def run_one(slug: str, spec: PluginSpec) -> SyncResult:
            async with semaphore:
                try:
                    result = await loop.run_in_executor(executor, self._sync_one, slug, spec, publish)
                except Exception as e:
                    logger.exception("unexpected failure syncing %s", slug)
                    result = SyncResult(
                        slug=slug, repo=spec.repo, status=SyncStatus.ERROR, message=str(e) or repr(e)
                    )
            if on_result is not None:
                on_result(result)
            return result

        try:
            return list(await asyncio.gather(*(run_one(slug, spec) for slug, spec in pairs)))
        finally:
            executor.shutdown(wait=True)

    def _sync_one(self, slug: str, spec: PluginSpec, publish: bool) -> SyncResult:
        try:
            plugin = self.resolver.resolve(spec, slug=slug, publish=publish)
        except RzError as e:
            logger.warning("sync failed for %s: %s", slug, e.message)
            return SyncResult(slug=slug, repo=spec.repo, status=SyncStatus.ERROR, message=e.message)

        return SyncResult(
            slug=slug,
            repo=spec.repo,
            status=SyncStatus.OK,
            resolved_commit=plugin.resolved_commit,
            plugin=plugin,
        )
