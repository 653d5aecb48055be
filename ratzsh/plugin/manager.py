"""
Plugin Manager.

Ties configuration, sync and planning together.

Phases:
1. Load config.toml into PluginSpecs
2. Sync: clone/fetch/checkout/publish every plugin (parallel)
3. Plan: compute load order and fpath from the synced filesystem
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from ratzsh.config import Config, load_config
from ratzsh.paths import Paths
from ratzsh.plugin.planner import LoadOrderPlanner, LoadPlan
from ratzsh.plugin.resolver import RepoResolver, ResolvedPlugin, assign_slugs
from ratzsh.plugin.sync import SyncEngine, SyncResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncReport:
    """Outcome of a full sync run."""

    results: list[SyncResult]
    plan: LoadPlan

    @property
    def failed(self) -> list[SyncResult]:
        return [r for r in self.results if not r.ok]

    @property
    def ok(self) -> bool:
        return not self.failed


class PluginManager:
    """
    Plugin lifecycle manager.

    Example:
        manager = PluginManager(paths)
        report = manager.sync()
        for plugin in report.plan.source_order:
            print(plugin.slug)
    """

    def __init__(
        self,
        paths: Paths,
        resolver: RepoResolver | None = None,
        planner: LoadOrderPlanner | None = None,
        jobs: int | None = None,
    ):
        """
        Initialize PluginManager.

        Args:
            paths: rat-zsh directory layout
            resolver: Repository resolver (default: GitHub remotes)
            planner: Load order planner
            jobs: Worker pool size override (takes precedence over config)
        """
        self.paths = paths
        self.resolver = resolver or RepoResolver(paths)
        self.planner = planner or LoadOrderPlanner()
        self.jobs = jobs
        self._config: Config | None = None

    @property
    def config(self) -> Config:
        """Lazily loaded config.toml."""
        if self._config is None:
            self._config = load_config(self.paths.config)
        return self._config

    def locate_all(self, inspect: bool = False) -> list[ResolvedPlugin]:
        """
        Describe every configured plugin from on-disk state.

        Raises:
            ConfigError: If config.toml is invalid
            ResolutionError: If slugs collide
        """
        return [
            self.resolver.locate(spec, slug=slug, inspect=inspect)
            for slug, spec in assign_slugs(self.config.plugins)
        ]

    def plan(self, inspect: bool = False) -> LoadPlan:
        """Plan load order from on-disk state without syncing."""
        return self.planner.plan(self.locate_all(inspect=inspect))

    def sync(self, on_result: Callable[[SyncResult], None] | None = None) -> SyncReport:
        """
        Sync all plugins, then plan.

        Plugins that failed to sync are planned from their previous on-disk
        state so an earlier good checkout keeps loading.

        Raises:
            FilesystemError: If the root skeleton cannot be created
            ConfigError: If config.toml is invalid
            ResolutionError: If slugs collide
        """
        self.paths.ensure_layout()
        config = self.config

        jobs = self.jobs if self.jobs is not None else config.sync.jobs
        engine = SyncEngine(self.resolver, jobs=jobs)
        results = engine.sync_all(config.plugins, on_result=on_result)

        # Sync phase has fully joined; everything below reads settled state
        resolved = []
        for result, spec in zip(results, config.plugins):
            if result.plugin is not None:
                resolved.append(result.plugin)
            else:
                resolved.append(self.resolver.locate(spec, slug=result.slug))

        return SyncReport(results=results, plan=self.planner.plan(resolved))
