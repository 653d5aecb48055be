"""
rz sync command.

Clone or update every plugin in config.toml, publish it under plugins/,
then print the per-plugin outcome and a summary. Exits non-zero when any
plugin failed.
"""

import sys
from typing import Any

from ratzsh.paths import paths
from ratzsh.plugin.manager import PluginManager
from ratzsh.plugin.sync import SyncResult
from ratzsh.report import format_sync_result, render_sync_summary


def sync_command(args: Any) -> int:
    """
    Execute sync command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    if args.jobs is not None and args.jobs < 1:
        print("Error: --jobs must be at least 1", file=sys.stderr)
        return 1

    p = paths()
    manager = PluginManager(p, jobs=args.jobs)

    if not manager.config.plugins:
        print(f"no plugins in {p.config}", file=sys.stderr)
        return 0

    def progress(result: SyncResult) -> None:
        print(format_sync_result(result), flush=True)

    report = manager.sync(on_result=progress)

    summary = render_sync_summary(report)
    if report.ok:
        sys.stdout.write(summary)
        return 0

    sys.stderr.write(summary)
    return 1
