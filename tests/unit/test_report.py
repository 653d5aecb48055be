"""
Tests for the Reporter.

Tests cover:
- Shell init rendering (fpath block, source lines, skipped plugins)
- List and order rendering
- Sync progress lines and summary
"""

import tempfile
from pathlib import Path

import pytest

from ratzsh.config.schema import PluginSpec, PluginType
from ratzsh.paths import Paths
from ratzsh.plugin.manager import SyncReport
from ratzsh.plugin.planner import FpathEntry, LoadPlan
from ratzsh.plugin.resolver import ResolvedPlugin, RevState, derive_slug
from ratzsh.plugin.sync import SyncResult, SyncStatus
from ratzsh.report import (
    format_sync_result,
    loadable_file,
    render_init,
    render_list,
    render_order,
    render_sync_summary,
)


@pytest.fixture
def rz_tree():
    with tempfile.TemporaryDirectory() as tmpdir:
        paths = Paths.under(Path(tmpdir).resolve() / ".rz")
        paths.ensure_layout()
        yield paths


def published(paths, repo, target_name=None, type_=PluginType.SOURCE, **state):
    """Create repos/<slug> and a plugins/<slug> symlink to `target_name` (or the root)."""
    spec = PluginSpec(repo=repo, type=type_)
    slug = derive_slug(spec)
    repo_dir = paths.repos / slug
    repo_dir.mkdir()
    target = repo_dir
    if target_name:
        target = repo_dir / target_name
        target.write_text("# plugin\n")
    (paths.plugins / slug).symlink_to(target)
    return ResolvedPlugin(
        spec=spec,
        slug=slug,
        local_repo_path=repo_dir,
        published_path=paths.plugins / slug,
        **state,
    )


class TestInit:
    """Test init rendering."""

    def test_init_script(self, rz_tree):
        """fpath is prepended once, then plugins are sourced in order."""
        abbr = published(rz_tree, "olets/zsh-abbr", "zsh-abbr.plugin.zsh")
        auto = published(rz_tree, "zsh-users/zsh-autosuggestions", "zsh-autosuggestions.zsh")
        comps = published(rz_tree, "zsh-users/zsh-completions", type_=PluginType.FPATH)
        src = comps.local_repo_path / "src"
        plan = LoadPlan(
            source_order=(abbr, auto),
            fpath_entries=(FpathEntry(plugin=comps, dirs=(src,)),),
        )

        script = render_init(plan, rz_tree)
        lines = script.splitlines()

        assert lines[0] == "# rat-zsh init"
        assert f"  fpath=({src} $fpath)" in lines
        assert script.count("compinit -u") == 1
        sources = [line.strip() for line in lines if line.strip().startswith("source ")]
        assert sources == [
            f"source {rz_tree.plugins / 'olets__zsh-abbr'}",
            f"source {rz_tree.plugins / 'zsh-users__zsh-autosuggestions'}",
        ]
        assert lines.index(f"  fpath=({src} $fpath)") < lines.index("    compinit -u")
        assert "local " not in script
        assert script.endswith("fi\n")

    def test_no_fpath_line_without_dirs(self, rz_tree):
        """No fpath assignment when no directories were found."""
        script = render_init(LoadPlan(source_order=(), fpath_entries=()), rz_tree)
        assert "fpath=(" not in script

    def test_plugin_without_loadable_file_skipped(self, rz_tree):
        """A source plugin published as a directory is reported, not sourced."""
        bare = published(rz_tree, "a/no-entry")
        readme = published(rz_tree, "b/readme", "README.md")
        plan = LoadPlan(source_order=(bare, readme), fpath_entries=())

        script = render_init(plan, rz_tree)

        assert "source " not in script
        assert "# rz: skipped a__no-entry: no loadable file" in script
        assert "# rz: skipped b__readme: no loadable file" in script
        assert loadable_file(bare) is None

    def test_paths_are_quoted(self):
        """Paths with spaces are shell-quoted."""
        with tempfile.TemporaryDirectory() as tmpdir:
            paths = Paths.under(Path(tmpdir).resolve() / "my home" / ".rz")
            paths.ensure_layout()
            plugin = published(paths, "a/b", "b.zsh")
            script = render_init(LoadPlan(source_order=(plugin,), fpath_entries=()), paths)
            assert f"source '{paths.plugins / 'a__b'}'" in script


class TestListing:
    """Test list and order rendering."""

    def test_list_sections(self, rz_tree):
        """Source plugins and fpath plugins are listed in separate sections."""
        abbr = published(
            rz_tree,
            "olets/zsh-abbr",
            "zsh-abbr.plugin.zsh",
            rev_state=RevState.TRACKING_BRANCH,
            resolved_commit="a1b2c3d4e5f6",
            branch="main",
        )
        comps = published(rz_tree, "zsh-users/zsh-completions", type_=PluginType.FPATH)
        src = comps.local_repo_path / "src"
        plan = LoadPlan(source_order=(abbr,), fpath_entries=(FpathEntry(plugin=comps, dirs=(src,)),))

        text = render_list(plan)

        assert text.splitlines() == [
            "Source order",
            "- olets/zsh-abbr (github) [source] @main (a1b2c3d)",
            "",
            "fpath",
            f"- zsh-users/zsh-completions (github) [fpath: {src}]",
        ]

    def test_list_detached_tag(self, rz_tree):
        """Detached plugins show their tag rev."""
        spec = PluginSpec(repo="a/b", rev="v1.2.3")
        plugin = ResolvedPlugin(
            spec=spec,
            slug="a__b",
            local_repo_path=rz_tree.repos / "a__b",
            published_path=rz_tree.plugins / "a__b",
            rev_state=RevState.DETACHED,
            resolved_commit="0123456789abcdef",
        )
        text = render_list(LoadPlan(source_order=(plugin,), fpath_entries=()))
        assert "- a/b (github) [source] @v1.2.3 (0123456)  (no loadable file)" in text

    def test_check_update_unknown_when_not_synced(self, rz_tree):
        """Plugins never synced show an unknown update status."""
        plugin = published(rz_tree, "a/b", "b.zsh")
        text = render_list(LoadPlan(source_order=(plugin,), fpath_entries=()), check_update=True)
        assert "- a/b (github) [source] ?" in text

    def test_order(self, rz_tree):
        """order prints source slugs then fpath slugs."""
        abbr = published(rz_tree, "olets/zsh-abbr", "zsh-abbr.plugin.zsh")
        comps = published(rz_tree, "zsh-users/zsh-completions", type_=PluginType.FPATH)
        plan = LoadPlan(source_order=(abbr,), fpath_entries=(FpathEntry(plugin=comps, dirs=()),))
        assert render_order(plan) == "olets__zsh-abbr\nzsh-users__zsh-completions\n"


class TestSyncOutput:
    """Test sync progress lines and summary."""

    def test_progress_lines(self):
        """Successes show the short commit; failures show the message."""
        ok = SyncResult(slug="a__b", repo="a/b", status=SyncStatus.OK, resolved_commit="abcdef0123")
        bad = SyncResult(slug="c__d", repo="c/d", status=SyncStatus.ERROR, message="rev not found: x")
        assert format_sync_result(ok) == "✔ a__b (abcdef0)"
        assert format_sync_result(bad) == "✘ c__d: rev not found: x"

    def test_summary_lists_failures(self):
        """The summary names every failed slug with its repository."""
        results = [
            SyncResult(slug="a__b", repo="a/b", status=SyncStatus.OK, resolved_commit="abc"),
            SyncResult(slug="c__d", repo="c/d", status=SyncStatus.ERROR, message="unreachable"),
        ]
        report = SyncReport(results=results, plan=LoadPlan(source_order=(), fpath_entries=()))

        assert render_sync_summary(report).splitlines() == [
            "1 of 2 plugins failed to sync:",
            "  - c__d (c/d): unreachable",
        ]

    def test_summary_success(self):
        """A clean run reports the count."""
        results = [SyncResult(slug="a__b", repo="a/b", status=SyncStatus.OK)]
        report = SyncReport(results=results, plan=LoadPlan(source_order=(), fpath_entries=()))
        assert render_sync_summary(report) == "1 plugins synced\n"
