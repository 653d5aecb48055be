"""
rat-zsh Configuration - TOML-based plugin configuration.

This module provides:
- parse(): decode config.toml bytes into an ordered list of PluginSpec
- load_config(): read and parse a config file
- Sample config generation for first-time setup

Example usage:
    from ratzsh import config

    cfg = config.load_config(paths.config)
    for spec in cfg.plugins:
        print(spec.repo, spec.type.value)
"""

from dataclasses import dataclass, field
from pathlib import Path

from ratzsh.config.schema import (
    PluginSpec,
    PluginType,
    Source,
    SyncSettings,
    plugin_from_record,
    sync_settings_from_table,
)
from ratzsh.config.toml_handler import generate_sample_config, loads_toml, read_toml
from ratzsh.errors import ConfigError


@dataclass(frozen=True)
class Config:
    """
    Decoded config.toml.

    Attributes:
        plugins: Plugin specs in config order
        sync: Settings from the `[sync]` table
    """

    plugins: list[PluginSpec] = field(default_factory=list)
    sync: SyncSettings = field(default_factory=SyncSettings)


def _from_document(document: dict) -> Config:
    unknown = sorted(set(document) - {"plugins", "sync"})
    if unknown:
        raise ConfigError(f"unknown top-level keys: {', '.join(unknown)}")

    records = document.get("plugins", [])
    if not isinstance(records, list):
        raise ConfigError("'plugins' must be an array of tables ([[plugins]])")

    plugins = [plugin_from_record(index, record) for index, record in enumerate(records)]
    return Config(plugins=plugins, sync=sync_settings_from_table(document.get("sync")))


def parse(data: bytes) -> Config:
    """
    Parse config.toml content.

    Args:
        data: Raw file content

    Returns:
        Config with plugins in file order

    Raises:
        ConfigError: On malformed syntax or invalid records
    """
    return _from_document(loads_toml(data))


def load_config(config_file: Path) -> Config:
    """
    Read and parse a config file.

    Raises:
        ConfigError: If the file is missing, unreadable or invalid
    """
    return _from_document(read_toml(config_file))


__all__ = [
    "Config",
    "ConfigError",
    "PluginSpec",
    "PluginType",
    "Source",
    "SyncSettings",
    "generate_sample_config",
    "load_config",
    "parse",
]
