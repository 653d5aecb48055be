"""
rz config command.

Open config.toml in $EDITOR (default: vim), writing a sample config first
when none exists.
"""

import os
from pathlib import Path
from typing import Any

from ratzsh.config.toml_handler import generate_sample_config, write_toml
from ratzsh.errors import FilesystemError
from ratzsh.paths import paths


def editor_command(config_file: Path, editor: str | None = None) -> list[str]:
    """
    Build the editor invocation for a config file.

    vim-like editors get `-n` so no swap file is left next to the config.
    """
    editor = editor or os.environ.get("EDITOR") or "vim"
    cmd = [editor, str(config_file)]
    if "vim" in Path(editor).name.lower():
        cmd.append("-n")
    return cmd


def config_command(args: Any) -> int:
    """
    Execute config command.

    Replaces the current process with the editor.
    """
    p = paths()
    if not p.config.exists():
        write_toml(p.config, generate_sample_config())
        print(f"Wrote sample config: {p.config}")

    cmd = editor_command(p.config)
    try:
        os.execvp(cmd[0], cmd)
    except OSError as e:
        raise FilesystemError(f"failed to launch editor {cmd[0]}: {e}") from e
    return 0
