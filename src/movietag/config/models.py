"""Configuration models describing movietag settings."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MovietagBaseModel(BaseModel):
    """Shared configuration for movietag Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class LibrarySettings(MovietagBaseModel):
    """Locations of the two scanned directory trees.

    Attributes:
        movie_dir: Directory holding one subdirectory per movie.
        tag_dir: Directory holding one subdirectory of symlinks per tag.
    """

    movie_dir: Optional[str] = None
    tag_dir: Optional[str] = None


class LoggingSettings(MovietagBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        file: Optional log file written alongside console output.
        max_size_mb: Maximum log file size before rotation.
        backup_count: Number of rotated log files to retain.
    """

    level: str = "WARNING"
    file: Optional[str] = None
    max_size_mb: int = Field(default=10, ge=1)
    backup_count: int = Field(default=3, ge=0)


class CLIOptions(MovietagBaseModel):
    """CLI presentation defaults.

    Attributes:
        quiet_default: Suppress confirmation messages from `toggle` and the `config`
            write commands.
    """

    quiet_default: bool = False


class MovietagConfig(MovietagBaseModel):
    """Top-level configuration for movietag."""

    library: LibrarySettings = Field(default_factory=LibrarySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "MovietagBaseModel",
    "LibrarySettings",
    "LoggingSettings",
    "CLIOptions",
    "MovietagConfig",
]
