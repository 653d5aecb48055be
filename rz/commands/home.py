"""rz home command: print the resolved rat-zsh home directory."""

from typing import Any

from ratzsh.paths import rz_home


def home_command(args: Any) -> int:
    print(rz_home())
    return 0
