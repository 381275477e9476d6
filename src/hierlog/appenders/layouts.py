"""
Layouts: compiled formatting strategies.

A ``PatternLayout`` parses its conversion pattern once, at construction, into
a fixed sequence of literal segments and field directives. Formatting an event
only walks that sequence, so a bad pattern is always reported when the layout
is built and never while an event is being written.

Conversion directives:
    %d, %d{fmt}  timestamp (strftime ``fmt``, default "%Y-%m-%d %H:%M:%S")
    %p           level name
    %c           logger name ("ROOT" for the root logger)
    %m           message
    %n           newline
    %I           indentation marker: continuation lines of %m line up here
    %t           thread name
    %r           milliseconds since the layout was created
    %%           literal percent sign

Format modifiers go between '%' and the directive letter:
    %-5p   left-align, minimum width 5
    %10c   right-align, minimum width 10
    %.20c  maximum width 20 (keeps the rightmost characters)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from hierlog.core.errors import InvalidPatternError
from hierlog.core.events import LogEvent

SINGLE_LINE_PATTERN = "%d{%H:%M:%S} %-5p [%c] - %m%n"
TWO_LINE_PATTERN = "%d{%Y-%m-%d %H:%M:%S} %-5p [%c] <%t>%n  * %I%m%n"
SIMPLE_PATTERN = "%p - %m%n"

DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_CONVERSIONS = frozenset("dpcmnItr")
_TAKES_ARGUMENT = frozenset("d")


@dataclass(frozen=True)
class _Field:
    """One compiled field directive."""

    kind: str
    left_align: bool = False
    min_width: int | None = None
    max_width: int | None = None
    argument: str | None = None

    def pad(self, value: str) -> str:
        if self.max_width is not None and len(value) > self.max_width:
            value = value[len(value) - self.max_width :]
        if self.min_width is not None:
            value = value.ljust(self.min_width) if self.left_align else value.rjust(self.min_width)
        return value


class Layout(ABC):
    """Interface for layouts."""

    @abstractmethod
    def format(self, event: LogEvent) -> str:
        """Render ``event`` to text."""
        ...

    def properties(self) -> list[tuple[str, Any]]:
        """Name/value pairs describing this layout (used by the tree renderer)."""
        return []


class PatternLayout(Layout):
    """
    Layout driven by a log4j-style conversion pattern.

    Args:
        conversion_pattern: Pattern string, see module docstring.

    Raises:
        InvalidPatternError: If the pattern cannot be compiled.
    """

    def __init__(self, conversion_pattern: str = SINGLE_LINE_PATTERN):
        if not isinstance(conversion_pattern, str):
            raise InvalidPatternError(str(conversion_pattern), 0, "pattern must be a string")
        self.conversion_pattern = conversion_pattern
        self._tokens = compile_pattern(conversion_pattern)
        self._created = datetime.now()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.conversion_pattern!r})"

    def properties(self) -> list[tuple[str, Any]]:
        return [("conversion_pattern", self.conversion_pattern)]

    def format(self, event: LogEvent) -> str:
        pieces: list[str] = []
        indent: int | None = None
        for token in self._tokens:
            if isinstance(token, str):
                pieces.append(token)
                continue
            if token.kind == "n":
                pieces.append("\n")
                continue
            if token.kind == "I":
                text = "".join(pieces)
                indent = len(text) - (text.rfind("\n") + 1)
                continue
            value = self._field_value(token, event)
            if token.kind == "m" and indent is not None:
                value = value.replace("\n", "\n" + " " * indent)
            pieces.append(token.pad(value))
        return "".join(pieces)

    def _field_value(self, token: _Field, event: LogEvent) -> str:
        kind = token.kind
        if kind == "m":
            return event.message
        if kind == "p":
            return event.level.name
        if kind == "c":
            return event.category
        if kind == "d":
            return event.timestamp.strftime(token.argument or DEFAULT_DATE_FORMAT)
        if kind == "t":
            return event.thread_name
        # %r
        elapsed = event.timestamp - self._created
        return str(int(elapsed.total_seconds() * 1000))


class SimpleLayout(PatternLayout):
    """Level and message only: ``"INFO - message"``."""

    def __init__(self) -> None:
        super().__init__(SIMPLE_PATTERN)

    def properties(self) -> list[tuple[str, Any]]:
        return []


def compile_pattern(pattern: str) -> list[str | _Field]:
    """
    Compile a conversion pattern into literal strings and field directives.

    Raises:
        InvalidPatternError: On a dangling '%', an unknown directive, a
            missing width after '.', an unterminated '{', or an argument given
            to a directive that takes none.
    """
    tokens: list[str | _Field] = []
    literal: list[str] = []
    length = len(pattern)
    i = 0

    while i < length:
        char = pattern[i]
        if char != "%":
            literal.append(char)
            i += 1
            continue

        start = i
        i += 1
        if i >= length:
            raise InvalidPatternError(pattern, start, "dangling '%' at end of pattern")
        if pattern[i] == "%":
            literal.append("%")
            i += 1
            continue

        left_align = False
        if pattern[i] == "-":
            left_align = True
            i += 1

        digits_start = i
        while i < length and pattern[i].isdigit():
            i += 1
        min_width = int(pattern[digits_start:i]) if i > digits_start else None

        max_width = None
        if i < length and pattern[i] == ".":
            i += 1
            digits_start = i
            while i < length and pattern[i].isdigit():
                i += 1
            if i == digits_start:
                raise InvalidPatternError(pattern, i, "expected maximum width after '.'")
            max_width = int(pattern[digits_start:i])

        if i >= length:
            raise InvalidPatternError(pattern, start, "missing conversion character")
        kind = pattern[i]
        if kind not in _CONVERSIONS:
            raise InvalidPatternError(pattern, i, f"unknown conversion '%{kind}'")
        i += 1

        argument = None
        if i < length and pattern[i] == "{":
            end = pattern.find("}", i)
            if end == -1:
                raise InvalidPatternError(pattern, i, "unterminated '{'")
            if kind not in _TAKES_ARGUMENT:
                raise InvalidPatternError(pattern, i, f"'%{kind}' takes no argument")
            argument = pattern[i + 1 : end]
            i = end + 1

        if literal:
            tokens.append("".join(literal))
            literal = []
        tokens.append(_Field(kind, left_align, min_width, max_width, argument))

    if literal:
        tokens.append("".join(literal))
    return tokens
