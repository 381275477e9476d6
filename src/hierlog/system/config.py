"""
Framework settings.

Settings come from built-in defaults, deep-merged with an optional YAML file:

1. explicit path passed to ``SystemConfig.load`` / ``reload_system_config``
2. ``$HIERLOG_CONFIG``
3. ``./hierlog.yaml`` if present

String values may reference environment variables as ``${VAR}`` or
``${VAR:-default}``.

Example hierlog.yaml:

    fallback_level: WARN
    watch_poll_interval: 0.5
    console_stream: stderr
    logging:
      format: json
"""

import os
import re
import threading
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from hierlog.appenders.layouts import SINGLE_LINE_PATTERN, TWO_LINE_PATTERN, compile_pattern
from hierlog.core.errors import AmbiguousOrUnknownLevelError, ConfigurationError, InvalidPatternError
from hierlog.core.levels import Level, resolve
from hierlog.system.log_system import LoggingConfig

CONFIG_ENV_VAR = "HIERLOG_CONFIG"
DEFAULT_CONFIG_FILE = "hierlog.yaml"

_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


class SystemConfig(BaseModel):
    """Process-wide hierlog settings."""

    model_config = ConfigDict(extra="forbid")

    fallback_level: Level = Field(
        default=Level.INFO,
        description="Effective level when no logger up to the root has a level",
    )
    sane_level: Level = Field(
        default=Level.INFO,
        description="Level set by SANE when no level is given",
    )
    single_line_pattern: str = Field(
        default=SINGLE_LINE_PATTERN,
        description="Conversion pattern used by SANE/DAILY without PATTERN",
    )
    two_line_pattern: str = Field(
        default=TWO_LINE_PATTERN,
        description="Conversion pattern used with TWOLINE",
    )
    daily_backup_suffix: str = Field(
        default=".%Y%m%d",
        description="Appended to the DAILY path to form the backup name template",
    )
    watch_poll_interval: float = Field(
        default=1.0,
        gt=0,
        description="Seconds between polls of a watched property file",
    )
    console_stream: Literal["stdout", "stderr"] = Field(
        default="stdout",
        description="Stream used by console appenders created by SANE/CONSOLE",
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("fallback_level", "sane_level", mode="before")
    @classmethod
    def parse_level(cls, v: Any) -> Level:
        """Accept level names and prefixes; reject UNSET."""
        try:
            return resolve(v)
        except AmbiguousOrUnknownLevelError as exc:
            raise ValueError(str(exc)) from exc

    @field_validator("single_line_pattern", "two_line_pattern")
    @classmethod
    def validate_pattern(cls, v: str) -> str:
        try:
            compile_pattern(v)
        except InvalidPatternError as exc:
            raise ValueError(str(exc)) from exc
        return v

    @classmethod
    def load(cls, path: str | Path | None = None) -> "SystemConfig":
        """
        Load settings.

        Args:
            path: YAML file to load. Falls back to $HIERLOG_CONFIG, then
                ./hierlog.yaml, then built-in defaults.

        Raises:
            ConfigurationError: If the file is unreadable or invalid.
        """
        config_path = _locate(path)
        if config_path is None:
            return cls()
        return cls._from_dict(_read_yaml(config_path), source=config_path)

    @classmethod
    def _from_dict(cls, data: dict[str, Any], source: Path | None = None) -> "SystemConfig":
        merged = _deep_merge(cls().model_dump(), _substitute_env_vars(data))
        try:
            return cls(**merged)
        except ValidationError as exc:
            where = f" in {source}" if source is not None else ""
            raise ConfigurationError(f"Invalid hierlog settings{where}: {exc}") from exc


def _locate(path: str | Path | None) -> Path | None:
    if path is not None:
        return Path(path)
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    default = Path(DEFAULT_CONFIG_FILE)
    return default if default.exists() else None


def _read_yaml(path: Path) -> dict[str, Any]:
    import yaml

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Cannot load hierlog settings from {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Hierlog settings in {path} must be a mapping")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    result = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _substitute_env_vars(value: Any) -> Any:
    """Replace ``${VAR}`` / ``${VAR:-default}`` in every string of a nested structure."""
    if isinstance(value, dict):
        return {key: _substitute_env_vars(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_substitute_env_vars(item) for item in value]
    if isinstance(value, str):
        return _ENV_PATTERN.sub(lambda match: os.environ.get(match.group(1), match.group(2) or ""), value)
    return value


_system_config: SystemConfig | None = None
_config_lock = threading.Lock()


def get_system_config() -> SystemConfig:
    """Return the process-wide settings, loading them on first use."""
    global _system_config
    if _system_config is None:
        with _config_lock:
            if _system_config is None:
                _system_config = SystemConfig.load()
    return _system_config


def reload_system_config(path: str | Path | None = None) -> SystemConfig:
    """Force settings to be reloaded (from ``path`` if given)."""
    global _system_config
    with _config_lock:
        _system_config = SystemConfig.load(path)
    return _system_config
