"""
Level registry.

Levels are totally ordered by severity::

    ALL < DEBUG < INFO < WARN < ERROR < FATAL < OFF

``UNSET`` is a distinguished value meaning "inherit from the parent". It takes
no part in the ordering: comparing it with ``<``/``>`` raises ``TypeError``.

User tokens are resolved with :func:`resolve`, which accepts full names,
the stdlib spellings ``WARNING``/``CRITICAL`` and any case-insensitive prefix
that identifies exactly one level.

Usage:
    >>> resolve("deb")
    <Level.DEBUG: 10>
    >>> Level.WARN > Level.INFO
    True
"""

from enum import Enum
from typing import Any

from hierlog.core.errors import AmbiguousOrUnknownLevelError


class Level(Enum):
    """Logging severity levels."""

    UNSET = -1
    ALL = 0
    DEBUG = 10
    INFO = 20
    WARN = 30
    ERROR = 40
    FATAL = 50
    OFF = 100

    @property
    def severity(self) -> int:
        """Numeric severity (stdlib logging numbering where one exists)."""
        return self.value

    @property
    def is_set(self) -> bool:
        """True for every level except UNSET."""
        return self is not Level.UNSET

    def _pair(self, other: Any) -> tuple[int, int] | None:
        if not isinstance(other, Level):
            return None
        if self is Level.UNSET or other is Level.UNSET:
            raise TypeError("Level.UNSET is not ordered against other levels")
        return self.value, other.value

    def __lt__(self, other: Any) -> bool:
        pair = self._pair(other)
        if pair is None:
            return NotImplemented
        return pair[0] < pair[1]

    def __le__(self, other: Any) -> bool:
        pair = self._pair(other)
        if pair is None:
            return NotImplemented
        return pair[0] <= pair[1]

    def __gt__(self, other: Any) -> bool:
        pair = self._pair(other)
        if pair is None:
            return NotImplemented
        return pair[0] > pair[1]

    def __ge__(self, other: Any) -> bool:
        pair = self._pair(other)
        if pair is None:
            return NotImplemented
        return pair[0] >= pair[1]


CONCRETE_LEVELS: tuple[Level, ...] = tuple(level for level in Level if level.is_set)

# Spellings accepted in addition to the canonical names
_ALIASES: dict[str, Level] = {
    "WARNING": Level.WARN,
    "CRITICAL": Level.FATAL,
}


def _name_table() -> dict[str, Level]:
    table = {level.name: level for level in CONCRETE_LEVELS}
    table.update(_ALIASES)
    return table


_NAMES = _name_table()


def resolve(token: Any) -> Level:
    """
    Resolve a user token to a concrete level.

    Args:
        token: A Level, a level name, an alias or an unambiguous prefix.
            Matching is case-insensitive and a leading ':' is ignored.

    Returns:
        The concrete Level.

    Raises:
        AmbiguousOrUnknownLevelError: If the token matches no level, or a
            prefix matches two or more distinct levels.
    """
    if isinstance(token, Level):
        if not token.is_set:
            raise AmbiguousOrUnknownLevelError(token)
        return token
    if not isinstance(token, str):
        raise AmbiguousOrUnknownLevelError(token)

    key = token.strip().lstrip(":").upper()
    if key in _NAMES:
        return _NAMES[key]

    matches = {level for name, level in _NAMES.items() if name.startswith(key)}
    if len(matches) == 1:
        return matches.pop()
    if matches:
        ordered = sorted(matches, key=lambda level: level.value)
        raise AmbiguousOrUnknownLevelError(token, [level.name for level in ordered])
    raise AmbiguousOrUnknownLevelError(token)


def shortest_prefix(level: Level) -> str:
    """Return the shortest prefix of ``level.name`` that :func:`resolve` accepts."""
    if not level.is_set:
        raise ValueError("UNSET has no name to abbreviate")
    name = level.name
    for size in range(1, len(name) + 1):
        prefix = name[:size]
        try:
            if resolve(prefix) is level:
                return prefix
        except AmbiguousOrUnknownLevelError:
            continue
    return name
