"""Configuration management for movietag."""

from __future__ import annotations

import os
import textwrap
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import CLIOptions, LibrarySettings, LoggingSettings, MovietagConfig
from .resolver import assign_nested, parse_env, resolve_with_precedence

DEFAULT_CONFIG_PATH = Path("~/.movietag/config.yaml")
_CONFIG_HEADER = textwrap.dedent(
    """\
    # movietag configuration file
    # Manage with `movietag config edit` or `movietag config set`.
    """
)


class ConfigManager:
    """Load and persist the YAML configuration file."""

    def __init__(self, config_path: Path | None = None) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()

    @property
    def config_path(self) -> Path:
        """Return the resolved configuration path."""
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        env_overrides: Mapping[str, str] | None = None,
    ) -> MovietagConfig:
        """Return the effective configuration.

        Args:
            cli_overrides: Dotted-key overrides from command-line options.
            include_env: Whether ``MOVIETAG__`` environment variables apply.
            env_overrides: Environment mapping to use instead of ``os.environ``.

        Raises:
            ConfigError: If the file or any override is invalid.
        """

        self.ensure_exists()

        env_data = None
        if include_env:
            env_data = parse_env(env_overrides if env_overrides is not None else os.environ)

        return resolve_with_precedence(
            defaults=MovietagConfig(),
            file_overrides=self._read_file(),
            env_overrides=env_data or None,
            cli_overrides=cli_overrides,
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Return raw values stored on disk."""
        return self._read_file()

    def save(self, data: Mapping[str, Any]) -> None:
        self._write_file(data)

    def ensure_exists(self) -> Path:
        """Create a configuration file with defaults if one does not exist."""
        if not self._config_path.exists():
            self._write_file(MovietagConfig().model_dump(mode="python"))
        return self._config_path

    def read_text(self) -> str:
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")

    def _read_file(self) -> dict[str, Any]:
        if not self._config_path.exists():
            return {}

        try:
            raw = yaml.safe_load(self._config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse configuration file: {exc}") from exc

        if not isinstance(raw, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")
        return raw

    def _write_file(self, data: Mapping[str, Any]) -> None:
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        body = yaml.safe_dump(dict(data), sort_keys=False)
        self._config_path.write_text(
            f"{_CONFIG_HEADER}# Last updated: {stamp}\n{body}", encoding="utf-8"
        )


__all__ = [
    "CLIOptions",
    "ConfigError",
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "LibrarySettings",
    "LoggingSettings",
    "MovietagConfig",
    "assign_nested",
    "parse_env",
    "resolve_with_precedence",
]
