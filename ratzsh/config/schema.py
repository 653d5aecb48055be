"""
Configuration Schema.

This module declares the structure of config.toml and validates decoded records.

Key features:
- ConfigField definitions with type and range constraints
- PluginSpec: one immutable `[[plugins]]` record
- SyncSettings: the optional `[sync]` table
- Record validation producing ConfigError with record index and repo
"""

import os
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from typing import Any

from ratzsh.errors import ConfigError


class ValidationError(ConfigError):
    """Raised when a single value fails validation."""

    pass


class Source(Enum):
    """Where a plugin repository is hosted."""

    GITHUB = "github"


class PluginType(Enum):
    """How a plugin is consumed by the shell."""

    SOURCE = "source"
    FPATH = "fpath"


@dataclass
class ConfigField:
    """
    Represents a configuration field with type and constraints.

    Attributes:
        type_: The expected type of the field value
        default: Default value (None marks the field optional without default)
        description: Human-readable description
        min: Minimum value (for numbers) or minimum length (for strings/lists)
        max: Maximum value (for numbers) or maximum length (for strings/lists)
        choices: List of allowed values (optional)
        required: Whether the key must be present
    """

    type_: type
    default: Any = None
    description: str = ""
    min: Any = None
    max: Any = None
    choices: list[Any] | None = None
    required: bool = False

    def __post_init__(self):
        """Validate field definition."""
        if self.default is not None and not isinstance(self.default, self.type_):
            raise TypeError(
                f"Default value {self.default!r} does not match type {self.type_.__name__}"
            )
        if self.choices is not None and self.default is not None and self.default not in self.choices:
            raise TypeError(f"Default value {self.default!r} not in choices {self.choices}")

    def validate(self, value: Any) -> None:
        """
        Validate a value against this field's constraints.

        Raises:
            ValidationError: If validation fails
        """
        # bool is a subclass of int; reject it for numeric fields
        if not isinstance(value, self.type_) or (self.type_ is int and isinstance(value, bool)):
            raise ValidationError(
                f"expected type {self.type_.__name__}, got {type(value).__name__}"
            )

        if self.choices is not None and value not in self.choices:
            raise ValidationError(f"value {value!r} not in allowed choices {self.choices}")

        if self.type_ in (int, float):
            if self.min is not None and value < self.min:
                raise ValidationError(f"value {value} is less than minimum {self.min}")
            if self.max is not None and value > self.max:
                raise ValidationError(f"value {value} is greater than maximum {self.max}")

        if self.type_ in (str, list):
            if self.min is not None and len(value) < self.min:
                raise ValidationError(f"length {len(value)} is less than minimum {self.min}")
            if self.max is not None and len(value) > self.max:
                raise ValidationError(f"length {len(value)} is greater than maximum {self.max}")


def validate_table(table: dict[str, Any], schema: dict[str, ConfigField]) -> dict[str, Any]:
    """
    Validate a decoded TOML table against a schema.

    Args:
        table: Decoded table
        schema: Schema dictionary (field_name -> ConfigField)

    Returns:
        Table with defaults filled in for absent fields

    Raises:
        ValidationError: If validation fails
    """
    for key in table:
        if key not in schema:
            raise ValidationError(f"unknown field: {key}")

    result: dict[str, Any] = {}
    for field_name, field in schema.items():
        if field_name not in table:
            if field.required:
                raise ValidationError(f"missing required field: {field_name}")
            result[field_name] = field.default
            continue

        try:
            field.validate(table[field_name])
        except ValidationError as e:
            raise ValidationError(f"field '{field_name}': {e}") from e
        result[field_name] = table[field_name]

    return result


PLUGIN_FIELDS: dict[str, ConfigField] = {
    "source": ConfigField(str, Source.GITHUB.value, "Repository host", choices=[s.value for s in Source]),
    "repo": ConfigField(str, description="Repository as owner/name", min=3, required=True),
    "rev": ConfigField(str, description="Tag, branch or commit to check out", min=1),
    "file": ConfigField(str, description="Entry file to source (type=source)", min=1),
    "type": ConfigField(str, PluginType.SOURCE.value, "Plugin type", choices=[t.value for t in PluginType]),
    "name": ConfigField(str, description="Alias used as the plugin slug", min=1),
    "fpath_dirs": ConfigField(list, description="Directories to add to fpath (type=fpath)"),
}

SYNC_FIELDS: dict[str, ConfigField] = {
    "jobs": ConfigField(int, description="Number of plugins synced in parallel", min=1, max=64),
}

_REPO_RE = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")
_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


@dataclass(frozen=True)
class PluginSpec:
    """
    One plugin entry from config.toml.

    Attributes:
        repo: Repository as owner/name
        source: Repository host
        rev: Tag, branch or commit; None tracks the default branch
        file: Entry file relative to the repository root (type=source)
        type: source or fpath
        name: Alias, used as slug when present
        fpath_dirs: Explicit fpath directories relative to the repository root
    """

    repo: str
    source: Source = Source.GITHUB
    rev: str | None = None
    file: str | None = None
    type: PluginType = PluginType.SOURCE
    name: str | None = None
    fpath_dirs: tuple[str, ...] | None = None

    @property
    def owner(self) -> str:
        return self.repo.split("/", 1)[0]

    @property
    def repo_name(self) -> str:
        return self.repo.split("/", 1)[1]

    @property
    def display(self) -> str:
        return self.name or self.repo


@dataclass(frozen=True)
class SyncSettings:
    """Settings from the optional `[sync]` table."""

    jobs: int | None = None


def default_jobs() -> int:
    """Default worker pool size: the core count, capped at 8."""
    return min(8, os.cpu_count() or 1)


def _check_relative(value: str, what: str) -> None:
    path = PurePosixPath(value)
    if path.is_absolute() or ".." in path.parts:
        raise ValidationError(f"{what} must be a relative path inside the repository: {value!r}")


def plugin_from_record(index: int, record: Any) -> PluginSpec:
    """
    Build a PluginSpec from one decoded `[[plugins]]` record.

    Args:
        index: Position of the record in the config (for messages)
        record: Decoded TOML table

    Returns:
        PluginSpec instance

    Raises:
        ConfigError: If the record is structurally invalid
    """
    if not isinstance(record, dict):
        raise ConfigError(f"plugins[{index}]: expected a table, got {type(record).__name__}")

    repo = record.get("repo") if isinstance(record.get("repo"), str) else None
    try:
        values = validate_table(record, PLUGIN_FIELDS)

        if not _REPO_RE.match(values["repo"]):
            raise ValidationError(f"repo must look like owner/name, got {values['repo']!r}")

        name = values["name"]
        if name is not None and not _NAME_RE.match(name):
            raise ValidationError(f"invalid name {name!r}")

        plugin_type = PluginType(values["type"])

        if values["file"] is not None:
            if plugin_type is not PluginType.SOURCE:
                raise ValidationError("'file' is only valid for type = \"source\"")
            _check_relative(values["file"], "file")

        fpath_dirs = values["fpath_dirs"]
        if fpath_dirs is not None:
            if plugin_type is not PluginType.FPATH:
                raise ValidationError("'fpath_dirs' is only valid for type = \"fpath\"")
            for entry in fpath_dirs:
                if not isinstance(entry, str) or not entry:
                    raise ValidationError("fpath_dirs entries must be non-empty strings")
                _check_relative(entry, "fpath_dirs entry")
            fpath_dirs = tuple(fpath_dirs)

    except ValidationError as e:
        label = f"plugins[{index}]"
        raise ConfigError(f"{label}: {e.message}", repo=repo) from e

    return PluginSpec(
        repo=values["repo"],
        source=Source(values["source"]),
        rev=values["rev"],
        file=values["file"],
        type=plugin_type,
        name=name,
        fpath_dirs=fpath_dirs,
    )


def sync_settings_from_table(table: Any) -> SyncSettings:
    """
    Build SyncSettings from the decoded `[sync]` table.

    Raises:
        ConfigError: If the table is invalid
    """
    if table is None:
        return SyncSettings()
    if not isinstance(table, dict):
        raise ConfigError(f"[sync]: expected a table, got {type(table).__name__}")
    try:
        values = validate_table(table, SYNC_FIELDS)
    except ValidationError as e:
        raise ConfigError(f"[sync]: {e.message}") from e
    return SyncSettings(jobs=values["jobs"])
