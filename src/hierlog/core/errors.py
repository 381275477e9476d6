"""
Exception taxonomy for hierlog.

Every configuration failure is detected before any logger state is touched,
so catching one of these means the hierarchy is exactly as it was before the
call.

Hierarchy:
    HierlogError
    ├── ConfigurationError          (synchronous, raised by configure())
    │   ├── AmbiguousOrUnknownLevelError
    │   ├── ConflictingTargetError
    │   ├── UnknownDirectiveError
    │   ├── UnrecognizedArgumentError
    │   ├── DuplicateLevelError
    │   ├── MissingArgumentError
    │   ├── NothingToDoError
    │   ├── IncompatibleDirectivesError
    │   ├── InvalidPatternError
    │   └── PropertyParseError
    ├── ReloadError                 (non-fatal, logged by the file watcher)
    └── LoggerTypeError             (emission boundary, also a TypeError)
"""

from pathlib import Path
from typing import Any


class HierlogError(Exception):
    """Base exception for all hierlog errors."""

    pass


class ConfigurationError(HierlogError):
    """A configuration request was rejected before any mutation."""

    pass


class AmbiguousOrUnknownLevelError(ConfigurationError):
    """Token is not a level name or matches more than one level."""

    def __init__(self, token: Any, candidates: list[str] | None = None):
        self.token = token
        self.candidates = candidates or []
        if self.candidates:
            message = f"Ambiguous level {token!r}, could be any of: {', '.join(self.candidates)}"
        else:
            message = f"Unknown level {token!r}"
        super().__init__(message)


class ConflictingTargetError(ConfigurationError):
    """An explicit logger target was combined with SELF."""

    pass


class UnknownDirectiveError(ConfigurationError):
    """A flag-shaped token names no known directive."""

    pass


class UnrecognizedArgumentError(ConfigurationError):
    """A token is neither a directive nor a level."""

    pass


class DuplicateLevelError(ConfigurationError):
    """More than one level token was given."""

    pass


class MissingArgumentError(ConfigurationError):
    """DAILY, PROPERTIES or PATTERN was not followed by its argument."""

    pass


class NothingToDoError(ConfigurationError):
    """None of level, SANE, CLEAR, DAILY or PROPERTIES was given."""

    pass


class IncompatibleDirectivesError(ConfigurationError):
    """Directives that cannot be combined were given together."""

    pass


class InvalidPatternError(ConfigurationError):
    """Conversion pattern could not be compiled."""

    def __init__(self, pattern: str, position: int, reason: str):
        self.pattern = pattern
        self.position = position
        self.reason = reason
        super().__init__(f"Invalid conversion pattern {pattern!r} at position {position}: {reason}")


class PropertyParseError(ConfigurationError):
    """Property file is malformed or describes an invalid configuration."""

    def __init__(self, path: Path | str | None, reason: str, line: int | None = None):
        self.path = Path(path) if path is not None else None
        self.line = line
        self.reason = reason
        location = str(self.path) if self.path is not None else "<properties>"
        if line is not None:
            location = f"{location}:{line}"
        super().__init__(f"{location}: {reason}")


class ReloadError(HierlogError):
    """A watched property file could not be reloaded. The watcher keeps polling."""

    def __init__(self, path: Path | str, cause: BaseException):
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"Failed to reload {self.path}: {cause}")


class LoggerTypeError(HierlogError, TypeError):
    """A runtime value used as a logging target is not a logger."""

    pass
