"""
Property-file configurator.

A property file describes the configuration of one subtree as flat
key/value pairs. Two syntaxes are accepted:

- ``.properties`` (anything not ending in .yaml/.yml)::

      # comments start with '#' or '!'
      rootLogger = INFO, A1
      logger.app.db = DEBUG, A2
      additivity.app.db = false
      appender.A1 = console
      appender.A1.layout = pattern
      appender.A1.layout.conversion_pattern = %d{%H:%M:%S} %-5p [%c] - %m%n
      appender.A1.immediate_flush = true
      appender.A2 = daily
      appender.A2.name_format = logs/db.log

- ``.yaml`` / ``.yml``: a mapping with the same keys. Nested mappings are
  flattened with '.', and list values are joined with ', '.

Keys may carry a leading ``hierlog.`` prefix. ``rootLogger`` configures the
logger the file is applied to; ``logger.<name>`` names are relative to it.
The value of a logger key is ``LEVEL, APPENDER, APPENDER...`` where LEVEL may
be left empty (``", A1"``).

Appender kinds: ``console`` (``stream``), ``file`` (``file``), ``daily``
(``name_format``, optional ``backup_name_format``). Layouts: ``pattern``
(optional ``conversion_pattern``) or ``simple``. Appender definitions are
templates: every logger that references one gets its own instance.
"""

from pathlib import Path
from typing import Any, Literal, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from hierlog.appenders.base import Appender, ConsoleAppender, FileAppender
from hierlog.appenders.daily import DailyFileAppender
from hierlog.appenders.layouts import Layout, PatternLayout, SimpleLayout, compile_pattern
from hierlog.core.errors import AmbiguousOrUnknownLevelError, InvalidPatternError, PropertyParseError
from hierlog.core.levels import Level, resolve

_KEY_PREFIX = "hierlog."
_APPENDER_PROPERTIES = frozenset({"immediate_flush", "stream", "file", "name_format", "backup_name_format"})
_YAML_SUFFIXES = frozenset({".yaml", ".yml"})


class AppenderSpec(BaseModel):
    """Definition of a named appender template."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    kind: Literal["console", "file", "daily"]
    layout: Literal["pattern", "simple"] = "pattern"
    conversion_pattern: str | None = None
    immediate_flush: bool = False
    stream: Literal["stdout", "stderr"] = "stdout"
    file: str | None = None
    name_format: str | None = None
    backup_name_format: str | None = None

    @field_validator("conversion_pattern")
    @classmethod
    def validate_pattern(cls, v: str | None) -> str | None:
        """Reject patterns that would fail at appender construction."""
        if v is not None:
            try:
                compile_pattern(v)
            except InvalidPatternError as exc:
                raise ValueError(str(exc)) from exc
        return v

    @model_validator(mode="after")
    def validate_destination(self) -> "AppenderSpec":
        """Each kind needs its own destination property."""
        if self.kind == "file" and not self.file:
            raise ValueError(f"appender {self.name}: kind 'file' requires 'file'")
        if self.kind == "daily" and not self.name_format:
            raise ValueError(f"appender {self.name}: kind 'daily' requires 'name_format'")
        if self.layout == "simple" and self.conversion_pattern is not None:
            raise ValueError(f"appender {self.name}: 'simple' layout takes no conversion_pattern")
        return self

    def build(self, default_pattern: str) -> Appender:
        """Create a fresh appender instance from this template."""
        layout: Layout
        if self.layout == "simple":
            layout = SimpleLayout()
        else:
            layout = PatternLayout(self.conversion_pattern or default_pattern)

        if self.kind == "console":
            return ConsoleAppender(layout=layout, immediate_flush=self.immediate_flush, stream=self.stream)
        if self.kind == "file":
            assert self.file is not None
            return FileAppender(self.file, layout=layout, immediate_flush=self.immediate_flush)
        assert self.name_format is not None
        return DailyFileAppender(
            self.name_format,
            self.backup_name_format,
            layout=layout,
            immediate_flush=self.immediate_flush,
        )


class LoggerSpec(BaseModel):
    """Settings of one logger, relative to the configured target ("" = the target itself)."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = ""
    level: Level | None = None
    appenders: list[str] = Field(default_factory=list)
    additive: bool | None = None

    @field_validator("level", mode="before")
    @classmethod
    def parse_level(cls, v: Any) -> Level | None:
        """Accept level names and prefixes."""
        if v is None or v == "":
            return None
        try:
            return resolve(v)
        except AmbiguousOrUnknownLevelError as exc:
            raise ValueError(str(exc)) from exc

    @property
    def segments(self) -> tuple[str, ...]:
        return tuple(self.name.split(".")) if self.name else ()


class PropertyConfiguration(BaseModel):
    """Validated content of a property file."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    source: Path | None = None
    loggers: list[LoggerSpec] = Field(default_factory=list)
    appenders: dict[str, AppenderSpec] = Field(default_factory=dict)

    @model_validator(mode="after")
    def validate_references(self) -> "PropertyConfiguration":
        """Every appender a logger references must be defined."""
        for logger in self.loggers:
            for name in logger.appenders:
                if name not in self.appenders:
                    label = logger.name or "rootLogger"
                    raise ValueError(f"logger {label} references undefined appender {name!r}")
        return self

    def build_appenders(self, logger: LoggerSpec, default_pattern: str) -> list[Appender]:
        return [self.appenders[name].build(default_pattern) for name in logger.appenders]


def load_properties(path: str | Path) -> PropertyConfiguration:
    """
    Read and validate a property file.

    Raises:
        PropertyParseError: If the file cannot be read, has a syntax error or
            describes an invalid configuration.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise PropertyParseError(path, f"cannot read file: {exc}") from exc

    if path.suffix.lower() in _YAML_SUFFIXES:
        entries = _read_yaml(text, path)
    else:
        entries = _read_properties(text, path)
    return parse_properties(entries, source=path)


def parse_properties(
    entries: Mapping[str, str | tuple[str, int | None]],
    source: Path | None = None,
) -> PropertyConfiguration:
    """
    Interpret flat key/value pairs.

    Args:
        entries: key -> value, or key -> (value, line number).
        source: File the entries came from (for error messages).

    Raises:
        PropertyParseError: On an unknown key or an invalid value.
    """
    loggers: dict[str, dict[str, Any]] = {}
    appenders: dict[str, dict[str, Any]] = {}

    for raw_key, raw_value in entries.items():
        value, line = raw_value if isinstance(raw_value, tuple) else (raw_value, None)
        key = raw_key[len(_KEY_PREFIX) :] if raw_key.startswith(_KEY_PREFIX) else raw_key
        value = value.strip()

        if key == "rootLogger":
            loggers.setdefault("", {"name": ""}).update(_logger_value(value))
        elif key.startswith("logger."):
            name = _logger_name(key[len("logger.") :], source, line)
            loggers.setdefault(name, {"name": name}).update(_logger_value(value))
        elif key.startswith("additivity."):
            name = _logger_name(key[len("additivity.") :], source, line)
            loggers.setdefault(name, {"name": name})["additive"] = value
        elif key.startswith("appender."):
            _appender_entry(appenders, key[len("appender.") :], value, source, line)
        else:
            raise PropertyParseError(source, f"unknown key {raw_key!r}", line)

    for name, spec in appenders.items():
        if "kind" not in spec:
            raise PropertyParseError(source, f"appender {name!r} has properties but no kind")

    try:
        return PropertyConfiguration(
            source=source,
            loggers=[LoggerSpec(**spec) for spec in loggers.values()],
            appenders={name: AppenderSpec(**spec) for name, spec in appenders.items()},
        )
    except ValidationError as exc:
        raise PropertyParseError(source, _summarize(exc)) from exc


def _logger_value(value: str) -> dict[str, Any]:
    items = [item.strip() for item in value.split(",")]
    return {"level": items[0] or None, "appenders": [item for item in items[1:] if item]}


def _logger_name(name: str, source: Path | None, line: int | None) -> str:
    if name == "rootLogger":
        return ""
    if not name or any(not segment for segment in name.split(".")):
        raise PropertyParseError(source, f"invalid logger name {name!r}", line)
    return name


def _appender_entry(
    appenders: dict[str, dict[str, Any]],
    rest: str,
    value: str,
    source: Path | None,
    line: int | None,
) -> None:
    name, _, attribute = rest.partition(".")
    if not name:
        raise PropertyParseError(source, "appender key without a name", line)
    spec = appenders.setdefault(name, {"name": name})
    if attribute == "":
        spec["kind"] = value.lower()
    elif attribute == "layout":
        spec["layout"] = value.lower()
    elif attribute == "layout.conversion_pattern":
        spec["conversion_pattern"] = value
    elif attribute in _APPENDER_PROPERTIES:
        spec[attribute] = value
    else:
        raise PropertyParseError(source, f"unknown appender property {attribute!r} on {name!r}", line)


def _read_properties(text: str, path: Path) -> dict[str, tuple[str, int | None]]:
    entries: dict[str, tuple[str, int | None]] = {}
    for number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line[0] in "#!":
            continue
        separators = [pos for pos in (line.find("="), line.find(":")) if pos != -1]
        if not separators:
            raise PropertyParseError(path, f"expected 'key = value', got {raw!r}", number)
        split = min(separators)
        key = line[:split].strip()
        if not key:
            raise PropertyParseError(path, "empty key", number)
        if key in entries:
            raise PropertyParseError(path, f"duplicate key {key!r}", number)
        entries[key] = (line[split + 1 :].strip(), number)
    return entries


def _read_yaml(text: str, path: Path) -> dict[str, str]:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise PropertyParseError(path, f"invalid YAML: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise PropertyParseError(path, f"expected a mapping at top level, got {type(data).__name__}")
    flat: dict[str, str] = {}
    _flatten(data, "", flat, path)
    return flat


def _flatten(data: dict[Any, Any], prefix: str, out: dict[str, str], path: Path) -> None:
    for key, value in data.items():
        full = f"{prefix}{key}"
        if isinstance(value, dict):
            _flatten(value, f"{full}.", out, path)
            continue
        if full in out:
            raise PropertyParseError(path, f"duplicate key {full!r}")
        if value is None:
            out[full] = ""
        elif isinstance(value, bool):
            out[full] = "true" if value else "false"
        elif isinstance(value, list):
            out[full] = ", ".join("" if item is None else str(item) for item in value)
        else:
            out[full] = str(value)


def _summarize(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()))
        message = error.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)
