"""
Reporter.

Renders planner and sync output as text:
- Shell initialization code for `eval "$(rz init)"`
- Human-readable plugin lists (`rz list`, `rz order`)
- Per-plugin sync lines and the final failure summary
"""

import re
import shlex
from pathlib import Path

from ratzsh.paths import Paths
from ratzsh.plugin import git_ops
from ratzsh.plugin.git_ops import GitError
from ratzsh.plugin.manager import SyncReport
from ratzsh.plugin.planner import LoadPlan
from ratzsh.plugin.resolver import ResolvedPlugin, RevState
from ratzsh.plugin.scanner import format_fpath_dirs
from ratzsh.plugin.sync import SyncResult

SOURCE_SUFFIXES = (".zsh", ".plugin.zsh", ".zsh-theme")

_HEX_SHA = re.compile(r"^[0-9a-fA-F]{7,40}$")


def loadable_file(plugin: ResolvedPlugin) -> Path | None:
    """
    Return the path to source for a plugin, or None if it has no loadable file.

    The published path must resolve to a regular file with a known suffix.
    """
    target = plugin.published_path.resolve()
    if target.is_file() and target.name.endswith(SOURCE_SUFFIXES):
        return plugin.published_path
    return None


def skipped_sources(plan: LoadPlan) -> list[ResolvedPlugin]:
    """Source plugins that will not be sourced because no loadable file exists."""
    return [p for p in plan.source_order if loadable_file(p) is None]


def render_init(plan: LoadPlan, paths: Paths) -> str:
    """
    Render shell initialization code.

    The script is eval'ed in the user's interactive shell, so it must not
    declare `local` variables and runs its body only once per shell.
    """
    lines = [
        "# rat-zsh init",
        'if [[ -z "${_RZ_INIT:-}" ]]; then',
        "  typeset -g _RZ_INIT=1",
        f"  typeset -g RZ_HOME={shlex.quote(str(paths.root))}",
        f'  export PATH={shlex.quote(str(paths.bin))}":$PATH"',
    ]

    if plan.fpath_dirs:
        dirs = " ".join(shlex.quote(str(d)) for d in plan.fpath_dirs)
        lines.append(f"  fpath=({dirs} $fpath)")

    lines += [
        "  autoload -Uz compinit",
        '  if [[ -z "${_RZ_COMPINIT_DONE:-}" ]]; then',
        "    typeset -g _RZ_COMPINIT_DONE=1",
        "    compinit -u",
        "  fi",
    ]

    for plugin in plan.source_order:
        path = loadable_file(plugin)
        if path is None:
            lines.append(f"  # rz: skipped {plugin.slug}: no loadable file")
        else:
            lines.append(f"  source {shlex.quote(str(path))}")

    lines.append("fi")
    return "\n".join(lines) + "\n"


def _rev_label(plugin: ResolvedPlugin) -> str:
    if plugin.branch:
        return f"@{plugin.branch}"
    rev = plugin.spec.rev
    if plugin.rev_state is RevState.DETACHED:
        if rev and not _HEX_SHA.match(rev):
            return f"@{rev}"
        return "@detached"
    if rev:
        return f"@{rev}"
    return ""


def _update_suffix(plugin: ResolvedPlugin) -> str:
    repo_dir = plugin.local_repo_path
    if plugin.resolved_commit is None:
        return " ?"

    if plugin.branch:
        status = git_ops.attached_update_status(repo_dir, plugin.branch)
        if status.unknown:
            return " * ?" if status.dirty else " ?"
        parts = [f"↓{status.behind or ''}/↑{status.ahead or ''}"]
        if status.dirty:
            parts.append("*")
        return " " + " ".join(parts)

    try:
        return " *" if git_ops.is_dirty(repo_dir) else ""
    except GitError:
        return " ?"


def _plugin_line(plugin: ResolvedPlugin, role: str, check_update: bool) -> str:
    parts = [f"- {plugin.spec.display} ({plugin.spec.source.value}) {role}"]
    rev = _rev_label(plugin)
    if rev:
        parts.append(rev)
    if plugin.short_commit:
        parts.append(f"({plugin.short_commit})")
    line = " ".join(parts)
    if check_update:
        line += _update_suffix(plugin)
    return line


def render_list(plan: LoadPlan, check_update: bool = False) -> str:
    """
    Render plugins in effective load order, split into source and fpath sections.

    Example:
        Source order
        - olets/zsh-abbr (github) [source] @main (a1b2c3d)
        - zsh-users/zsh-autosuggestions (github) [source] @v0.7.0 (c3d4e5f)

        fpath
        - zsh-users/zsh-completions (github) [fpath: /home/u/.rz/repos/zsh-users__zsh-completions/src] @master (d5e6f7a)
    """
    lines = ["Source order"]
    for plugin in plan.source_order:
        line = _plugin_line(plugin, "[source]", check_update)
        if loadable_file(plugin) is None:
            line += "  (no loadable file)"
        lines.append(line)

    lines.append("")
    lines.append("fpath")
    for entry in plan.fpath_entries:
        dirs = format_fpath_dirs(list(entry.dirs))
        role = f"[fpath: {dirs}]" if dirs else "[fpath]"
        lines.append(_plugin_line(entry.plugin, role, check_update))

    return "\n".join(lines) + "\n"


def render_order(plan: LoadPlan) -> str:
    """Render slugs in load order: source plugins, then fpath plugins."""
    slugs = [p.slug for p in plan.source_order] + [e.plugin.slug for e in plan.fpath_entries]
    return "".join(f"{slug}\n" for slug in slugs)


def format_sync_result(result: SyncResult) -> str:
    """One progress line for a finished plugin."""
    if result.ok:
        commit = f" ({result.resolved_commit[:7]})" if result.resolved_commit else ""
        return f"✔ {result.slug}{commit}"
    return f"✘ {result.slug}: {result.message}"


def render_sync_summary(report: SyncReport) -> str:
    """
    Render the closing summary of a sync run.

    Lists failing slugs (with repository) and source plugins without a loadable file.
    """
    lines = []
    for plugin in skipped_sources(report.plan):
        lines.append(f"warning: {plugin.slug} has no loadable file and will not be sourced")

    total = len(report.results)
    failed = report.failed
    if failed:
        lines.append(f"{len(failed)} of {total} plugins failed to sync:")
        for result in failed:
            lines.append(f"  - {result.slug} ({result.repo}): {result.message}")
    else:
        lines.append(f"{total} plugins synced")

    return "\n".join(lines) + "\n"
