"""
TOML File I/O Handler.

This module provides TOML decoding and sample config generation.

Key features:
- Decode config bytes using tomllib (Python 3.11+)
- Write TOML files using tomlkit (preserves comments and formatting)
- Generate the starter config.toml with descriptive comments
"""

import tomllib
from pathlib import Path
from typing import Any

import tomlkit

from ratzsh.errors import ConfigError

# Starter plugin list written by `rz config` when no config exists yet
SAMPLE_PLUGINS: list[dict[str, str]] = [
    {
        "source": "github",
        "repo": "zsh-users/zsh-autosuggestions",
        "type": "source",
        "file": "zsh-autosuggestions.zsh",
    },
    {
        "source": "github",
        "repo": "zsh-users/zsh-completions",
        "type": "fpath",
    },
    {
        "source": "github",
        "repo": "zsh-users/zsh-syntax-highlighting",
        "type": "source",
        "file": "zsh-syntax-highlighting.zsh",
    },
    {
        "source": "github",
        "repo": "zsh-users/zsh-history-substring-search",
        "type": "source",
        "file": "zsh-history-substring-search.zsh",
    },
    {
        "source": "github",
        "repo": "olets/zsh-abbr",
        "type": "source",
        "file": "zsh-abbr.zsh",
    },
]


def loads_toml(data: bytes) -> dict[str, Any]:
    """
    Decode TOML bytes.

    Args:
        data: Raw file content

    Returns:
        Parsed TOML data as dictionary

    Raises:
        ConfigError: If the content is not valid UTF-8 TOML
    """
    try:
        return tomllib.loads(data.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise ConfigError(f"config is not valid UTF-8: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"failed to parse config: {e}") from e


def read_toml(file_path: Path) -> dict[str, Any]:
    """
    Read and parse a TOML file.

    Raises:
        ConfigError: If file cannot be read or parsed
    """
    try:
        data = file_path.read_bytes()
    except FileNotFoundError as e:
        raise ConfigError(f"config not found: {file_path}") from e
    except OSError as e:
        raise ConfigError(f"failed to read config {file_path}: {e}") from e
    return loads_toml(data)


def write_toml(file_path: Path, content: str) -> None:
    """
    Write TOML text to a file, creating parent directories.

    Raises:
        ConfigError: If file cannot be written
    """
    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"failed to write config {file_path}: {e}") from e


def generate_sample_config(plugins: list[dict[str, str]] | None = None) -> str:
    """
    Generate a starter config.toml with explanatory comments.

    Args:
        plugins: Plugin records to include (defaults to SAMPLE_PLUGINS)

    Returns:
        TOML string
    """
    if plugins is None:
        plugins = SAMPLE_PLUGINS

    doc = tomlkit.document()
    doc.add(tomlkit.comment("rat-zsh plugin configuration"))
    doc.add(tomlkit.comment("Each [[plugins]] entry is cloned into repos/ and linked into plugins/."))
    doc.add(tomlkit.comment("type = \"source\" plugins are sourced; type = \"fpath\" plugins extend fpath."))
    doc.add(tomlkit.nl())

    sync_table = tomlkit.table()
    sync_table.add(tomlkit.comment("Number of plugins synced in parallel"))
    sync_table.add("jobs", 8)
    doc.add("sync", sync_table)

    entries = tomlkit.aot()
    for record in plugins:
        table = tomlkit.table()
        for key, value in record.items():
            table.add(key, value)
        entries.append(table)
    doc.add("plugins", entries)

    return tomlkit.dumps(doc)
