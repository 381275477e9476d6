"""Unit tests for appenders/layouts.py - pattern compilation and formatting."""

from datetime import datetime

import pytest

from hierlog.appenders.layouts import (
    SINGLE_LINE_PATTERN,
    TWO_LINE_PATTERN,
    PatternLayout,
    SimpleLayout,
    compile_pattern,
)
from hierlog.core.errors import ConfigurationError, InvalidPatternError
from hierlog.core.events import LogEvent
from hierlog.core.levels import Level


@pytest.fixture
def event():
    return LogEvent(
        level=Level.WARN,
        logger_name="app.db",
        message="disk almost full",
        timestamp=datetime(2024, 3, 1, 14, 5, 9),
        thread_name="worker-1",
    )


class TestPatternLayout:
    def test_single_line_default(self, event):
        # Arrange
        layout = PatternLayout()

        # Act
        text = layout.format(event)

        # Assert
        assert layout.conversion_pattern == SINGLE_LINE_PATTERN
        assert text == "14:05:09 WARN  [app.db] - disk almost full\n"

    def test_two_line_pattern(self, event):
        text = PatternLayout(TWO_LINE_PATTERN).format(event)

        assert text == "2024-03-01 14:05:09 WARN  [app.db] <worker-1>\n  * disk almost full\n"

    def test_indent_marker_aligns_continuation_lines(self, event):
        multi = LogEvent(Level.INFO, "x", "first\nsecond", event.timestamp, "t")

        text = PatternLayout("%p: %I%m%n").format(multi)

        assert text == "INFO: first\n      second\n"

    def test_width_modifiers(self, event):
        layout = PatternLayout("[%8p][%-8p][%.3c]")

        assert layout.format(event) == "[    WARN][WARN    ][.db]"

    def test_literal_percent_and_root_category(self, event):
        root_event = LogEvent(Level.INFO, "", "m", event.timestamp, "t")

        assert PatternLayout("100%% %c").format(root_event) == "100% ROOT"

    def test_default_date_format(self, event):
        assert PatternLayout("%d").format(event) == "2024-03-01 14:05:09"

    def test_properties_expose_pattern(self):
        layout = PatternLayout("%m%n")

        assert layout.properties() == [("conversion_pattern", "%m%n")]


class TestSimpleLayout:
    def test_level_and_message(self, event):
        assert SimpleLayout().format(event) == "WARN - disk almost full\n"


class TestCompilePattern:
    @pytest.mark.parametrize(
        "pattern",
        [
            "%",  # dangling
            "abc %",
            "%q",  # unknown conversion
            "%d{%H:%M",  # unterminated argument
            "%p{x}",  # argument on a directive that takes none
            "%5.",  # missing max width
            "%-",  # missing conversion
        ],
    )
    def test_malformed_patterns_fail_at_construction(self, pattern):
        with pytest.raises(InvalidPatternError) as exc_info:
            PatternLayout(pattern)

        assert exc_info.value.pattern == pattern
        assert isinstance(exc_info.value, ConfigurationError)

    def test_non_string_pattern(self):
        with pytest.raises(InvalidPatternError):
            PatternLayout(None)

    def test_literals_are_merged(self):
        tokens = compile_pattern("a%%b%m")

        assert tokens[0] == "a%b"
        assert len(tokens) == 2
