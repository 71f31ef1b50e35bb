from __future__ import annotations

from pathlib import Path


class SiteError(Exception):
    pass


class BuildError(SiteError):
    """Fatal: the build cannot continue."""


class ConfigError(BuildError):
    pass


class PageError(SiteError):
    """Recoverable failure scoped to a single source file."""

    def __init__(self, source: Path | str, message: str) -> None:
        self.source = Path(source)
        self.message = message
        super().__init__(f"{self.source}: {message}")


class MalformedHeaderBlock(PageError):
    pass


class UnknownTemplate(PageError):
    pass


class ManifestError(SiteError):
    """Recoverable failure while writing the sitemap or the feed."""
