"""
Load Order Planner.

Computes the order in which source plugins are loaded and the block of
directories prepended to fpath.

Order rules:
- Source plugins whose slug is in TAIL_SLUGS load last, in TAIL_SLUGS order
- All other source plugins load first, sorted by slug (ordinal)
- fpath directories follow plugin position order, then per-plugin discovery order
"""

from dataclasses import dataclass
from pathlib import Path

from ratzsh.config.schema import PluginType
from ratzsh.plugin.resolver import ResolvedPlugin
from ratzsh.plugin.scanner import CompletionDirScanner

# Plugins that wrap widgets defined by others and must load after them
TAIL_SLUGS: tuple[str, ...] = (
    "zsh-users__zsh-autosuggestions",
    "zsh-users__zsh-syntax-highlighting",
)


@dataclass(frozen=True)
class FpathEntry:
    """An fpath plugin with its discovered directories."""

    plugin: ResolvedPlugin
    dirs: tuple[Path, ...]


@dataclass(frozen=True)
class LoadPlan:
    """
    Planner output.

    Attributes:
        source_order: Source plugins in load order
        fpath_entries: fpath plugins in input order with their directories
    """

    source_order: tuple[ResolvedPlugin, ...]
    fpath_entries: tuple[FpathEntry, ...]

    @property
    def fpath_dirs(self) -> tuple[Path, ...]:
        """All fpath directories, to be prepended to fpath as one block."""
        return tuple(d for entry in self.fpath_entries for d in entry.dirs)


def order_sources(
    plugins: list[ResolvedPlugin], tail_slugs: tuple[str, ...] = TAIL_SLUGS
) -> tuple[ResolvedPlugin, ...]:
    """
    Order source plugins: sorted normal block, then the tail block.

    Tail slugs absent from `plugins` are skipped.
    """
    sources = [p for p in plugins if p.type is PluginType.SOURCE]
    tail_set = set(tail_slugs)

    normal = sorted((p for p in sources if p.slug not in tail_set), key=lambda p: p.slug)
    by_slug = {p.slug: p for p in sources if p.slug in tail_set}
    tail = [by_slug[slug] for slug in tail_slugs if slug in by_slug]

    return tuple(normal) + tuple(tail)


class LoadOrderPlanner:
    """
    Pure planner over resolved plugins.

    Must run after syncing has finished; the only I/O is the scanner's
    directory listing.
    """

    def __init__(
        self,
        scanner: CompletionDirScanner | None = None,
        tail_slugs: tuple[str, ...] = TAIL_SLUGS,
    ):
        self.scanner = scanner or CompletionDirScanner()
        self.tail_slugs = tail_slugs

    def plan(self, resolved: list[ResolvedPlugin]) -> LoadPlan:
        """
        Compute load order and fpath directories.

        Args:
            resolved: Resolved plugins in config order

        Returns:
            LoadPlan
        """
        fpath_entries = tuple(
            FpathEntry(
                plugin=p,
                dirs=tuple(self.scanner.scan(p.published_path, p.spec.fpath_dirs)),
            )
            for p in resolved
            if p.type is PluginType.FPATH
        )
        return LoadPlan(
            source_order=order_sources(resolved, self.tail_slugs),
            fpath_entries=fpath_entries,
        )
