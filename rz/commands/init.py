"""
rz init command.

Print shell initialization code, meant to be used as:

    eval "$(rz init)"

Only on-disk state is read; nothing is fetched.
"""

import sys
from typing import Any

from ratzsh.paths import paths
from ratzsh.plugin.manager import PluginManager
from ratzsh.report import render_init


def init_command(args: Any) -> int:
    """
    Execute init command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    p = paths()
    plan = PluginManager(p).plan()
    sys.stdout.write(render_init(plan, p))
    return 0
