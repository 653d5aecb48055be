"""
Error kinds shared across rat-zsh.

Every error optionally carries the offending plugin's slug and repository so
failures can be traced back to a config entry:

- ConfigError: malformed config, unknown enum value, invalid record (fatal)
- ResolutionError: two specs resolve to the same slug (fatal, before sync)
- SyncError: clone/fetch/checkout/submodule failure for one plugin (recovered)
- FilesystemError: root skeleton (fatal) or one plugin symlink (recovered)
"""


class RzError(Exception):
    """Base exception for rat-zsh errors."""

    def __init__(self, message: str, slug: str | None = None, repo: str | None = None):
        super().__init__(message)
        self.message = message
        self.slug = slug
        self.repo = repo

    def __str__(self) -> str:
        where = [part for part in (self.slug, self.repo) if part]
        if not where:
            return self.message
        # Avoid "slug (slug)" when the slug was derived from nothing but the repo
        label = where[0] if len(where) == 1 or where[0] == where[1] else f"{where[0]} ({where[1]})"
        return f"{label}: {self.message}"


class ConfigError(RzError):
    """Raised when the config file cannot be decoded or is structurally invalid."""

    pass


class ResolutionError(RzError):
    """Raised when plugin specs cannot be mapped to unique slugs."""

    pass


class SyncError(RzError):
    """Raised when a git operation fails for one plugin."""

    pass


class FilesystemError(RzError):
    """Raised when a required directory or publish symlink cannot be written."""

    pass
