"""
rz list / rz order commands.

Show configured plugins in their effective load order.
"""

import sys
from typing import Any

from ratzsh.paths import paths
from ratzsh.plugin.manager import PluginManager
from ratzsh.report import render_list, render_order


def list_command(args: Any) -> int:
    """
    Execute list command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    plan = PluginManager(paths()).plan(inspect=True)
    sys.stdout.write(render_list(plan, check_update=args.check_update))
    return 0


def order_command(args: Any) -> int:
    """Execute order command."""
    plan = PluginManager(paths()).plan()
    sys.stdout.write(render_order(plan))
    return 0
