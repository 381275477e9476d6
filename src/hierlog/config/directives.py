"""
Directive parsing and validation.

``configure()`` takes a flat, loosely typed argument list::

    configure(["app", "db"], Level.DEBUG, Directive.DAILY, "db.log", Directive.OWN)
    configure("sane", "twoline", "info")

This module turns such a list into a ``PendingDirectiveSet`` and checks it.
Nothing here touches logger state: a call that fails parsing or validation
leaves the hierarchy untouched.
"""

import os
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Sequence

from hierlog.core.emit import Logger
from hierlog.core.errors import (
    AmbiguousOrUnknownLevelError,
    ConflictingTargetError,
    DuplicateLevelError,
    IncompatibleDirectivesError,
    MissingArgumentError,
    NothingToDoError,
    UnknownDirectiveError,
    UnrecognizedArgumentError,
)
from hierlog.core.levels import Level, resolve
from hierlog.core.tree import LoggerNode


class Directive(str, Enum):
    """Configuration directives understood by configure()."""

    SANE = "SANE"
    CLEAR = "CLEAR"
    ALL = "ALL"
    OWN = "OWN"
    IMMEDIATE_FLUSH = "IMMEDIATE_FLUSH"
    TWOLINE = "TWOLINE"
    CONSOLE = "CONSOLE"
    WATCH = "WATCH"
    SELF = "SELF"
    DAILY = "DAILY"
    PROPERTIES = "PROPERTIES"
    PATTERN = "PATTERN"


WITH_ARGUMENT = frozenset({Directive.DAILY, Directive.PROPERTIES, Directive.PATTERN})

TargetSpec = LoggerNode | Logger | tuple[str, ...]


@dataclass(frozen=True)
class PendingDirectiveSet:
    """One parsed, not yet applied configure() call."""

    target: TargetSpec | None = None
    level: Level | None = None
    flags: frozenset[Directive] = field(default_factory=frozenset)
    daily: str | None = None
    properties: Path | None = None
    pattern: str | None = None

    def has(self, directive: Directive) -> bool:
        return directive in self.flags

    @property
    def sane(self) -> bool:
        return Directive.SANE in self.flags

    @property
    def clear(self) -> bool:
        return Directive.CLEAR in self.flags

    @property
    def is_self(self) -> bool:
        return Directive.SELF in self.flags

    @property
    def is_read_only(self) -> bool:
        """Nothing but (optionally) a target and SELF was given."""
        return (
            self.level is None
            and self.flags <= {Directive.SELF}
            and self.daily is None
            and self.properties is None
            and self.pattern is None
        )

    @property
    def installs_appenders(self) -> bool:
        return self.sane or self.daily is not None

    def with_flags(self, *directives: Directive) -> "PendingDirectiveSet":
        return replace(self, flags=self.flags | set(directives))


def parse_directives(args: Sequence[Any]) -> PendingDirectiveSet:
    """
    Parse a configure() argument list.

    Only the first positional element may be a target: a LoggerNode, a Logger
    or a list/tuple of name segments.

    Raises:
        MissingArgumentError: DAILY/PROPERTIES/PATTERN without an argument.
        DuplicateLevelError: More than one level token.
        AmbiguousOrUnknownLevelError: A level prefix matching several levels.
        UnknownDirectiveError: A ':'-prefixed token that names nothing.
        UnrecognizedArgumentError: Any other token.
        IncompatibleDirectivesError: DAILY/PROPERTIES/PATTERN given twice.
    """
    tokens = list(args)
    target: TargetSpec | None = None
    if tokens and _is_target(tokens[0]):
        target = _target_spec(tokens.pop(0))

    level: Level | None = None
    flags: set[Directive] = set()
    arguments: dict[Directive, Any] = {}

    index = 0
    while index < len(tokens):
        token = tokens[index]
        index += 1

        directive = _as_directive(token)
        if directive is not None:
            if directive in WITH_ARGUMENT:
                if index >= len(tokens) or not _is_argument(tokens[index]):
                    raise MissingArgumentError(f"{directive.value} requires an argument")
                if directive in arguments:
                    raise IncompatibleDirectivesError(f"{directive.value} given more than once")
                arguments[directive] = tokens[index]
                index += 1
            else:
                flags.add(directive)
            continue

        parsed_level = _as_level(token)
        if level is not None:
            raise DuplicateLevelError(f"Level given twice: {level.name} and {parsed_level.name}")
        level = parsed_level

    return PendingDirectiveSet(
        target=target,
        level=level,
        flags=frozenset(flags),
        daily=os.fspath(arguments[Directive.DAILY]) if Directive.DAILY in arguments else None,
        properties=Path(arguments[Directive.PROPERTIES]) if Directive.PROPERTIES in arguments else None,
        pattern=str(arguments[Directive.PATTERN]) if Directive.PATTERN in arguments else None,
    )


def validate(pending: PendingDirectiveSet) -> None:
    """
    Check a parsed directive set before anything is applied.

    Raises:
        ConflictingTargetError: Explicit target together with SELF.
        NothingToDoError: None of level, SANE, CLEAR, DAILY, PROPERTIES.
        IncompatibleDirectivesError: PROPERTIES with SANE, DAILY, PATTERN or a level.
    """
    if pending.is_self and pending.target is not None:
        raise ConflictingTargetError("SELF cannot be combined with an explicit logger target")

    if pending.is_read_only:
        return

    if not (
        pending.level is not None
        or pending.sane
        or pending.clear
        or pending.daily is not None
        or pending.properties is not None
    ):
        raise NothingToDoError("Need at least one of: a level, SANE, CLEAR, DAILY or PROPERTIES")

    if pending.properties is not None:
        conflicts = []
        if pending.sane:
            conflicts.append("SANE")
        if pending.daily is not None:
            conflicts.append("DAILY")
        if pending.pattern is not None:
            conflicts.append("PATTERN")
        if pending.level is not None:
            conflicts.append("a level")
        if conflicts:
            raise IncompatibleDirectivesError(f"PROPERTIES cannot be combined with {', '.join(conflicts)}")


def _is_target(token: Any) -> bool:
    return isinstance(token, (LoggerNode, Logger, list, tuple))


def _target_spec(token: Any) -> TargetSpec:
    if isinstance(token, (LoggerNode, Logger)):
        return token
    segments = tuple(token)
    for segment in segments:
        if not isinstance(segment, str):
            raise UnrecognizedArgumentError(f"Logger name segments must be strings, got {segment!r}")
    return segments


def _is_argument(token: Any) -> bool:
    return isinstance(token, (str, os.PathLike)) and not isinstance(token, Directive)


def _as_directive(token: Any) -> Directive | None:
    if isinstance(token, Directive):
        return token
    if isinstance(token, str):
        return Directive.__members__.get(token.strip().lstrip(":").upper())
    return None


def _as_level(token: Any) -> Level:
    if isinstance(token, Level):
        return resolve(token)
    if isinstance(token, str):
        try:
            return resolve(token)
        except AmbiguousOrUnknownLevelError as exc:
            if exc.candidates:
                raise
            if token.startswith(":"):
                raise UnknownDirectiveError(f"Unknown directive {token!r}") from None
            raise UnrecognizedArgumentError(f"Don't know what to do with {token!r}") from None
    if _is_target(token):
        raise UnrecognizedArgumentError(f"Logger target must be the first argument, got {token!r}")
    raise UnrecognizedArgumentError(f"Don't know what to do with {token!r}")
