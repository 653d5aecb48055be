"""
rz upgrade command.

Sync rat-zsh's own repository to the latest release. Replacing the installed
program is delegated: the command prints how to install from the synced tree.
"""

import shlex
import sys
from typing import Any

from ratzsh.paths import paths
from ratzsh.plugin.resolver import RepoResolver
from ratzsh.plugin.sync import SyncEngine
from ratzsh.upgrade import SelfUpgrader


def upgrade_command(args: Any) -> int:
    """
    Execute upgrade command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    p = paths()
    p.ensure_layout()

    upgrader = SelfUpgrader(SyncEngine(RepoResolver(p), jobs=1))
    outcome = upgrader.upgrade(rev=args.rev)

    if outcome.up_to_date:
        print(f"already up to date ({outcome.tag})")
        return 0

    result = outcome.result
    if result is None or not result.ok:
        message = result.message if result is not None else "sync failed"
        print(f"Error: failed to sync rat-zsh: {message}", file=sys.stderr)
        return 1

    label = outcome.tag or "default branch"
    print(f"synced rat-zsh {label} ({result.resolved_commit[:7]}) into {upgrader.repo_dir}")
    print("to finish upgrading, run:")
    print(f"  {shlex.quote(sys.executable)} -m pip install --upgrade {shlex.quote(str(upgrader.repo_dir))}")
    return 0
