"""Tests for the show command."""

import pytest
from click.testing import CliRunner

from hierlog.cli.commands.show import show_command
from hierlog.cli.main import main
from hierlog.core.tree import get_tree


@pytest.fixture
def runner():
    """Create a Click CLI runner."""
    return CliRunner()


@pytest.fixture
def properties_file(tmp_path):
    path = tmp_path / "logging.properties"
    path.write_text(
        "rootLogger = WARN, C\n"
        "logger.app.db = DEBUG\n"
        "additivity.app.db = false\n"
        "appender.C = console\n"
        "appender.C.layout.conversion_pattern = %m%n\n"
    )
    return path


class TestShowCommand:
    """Tests for the show command."""

    def test_prints_tree(self, runner, properties_file):
        result = runner.invoke(show_command, [str(properties_file)])

        assert result.exit_code == 0
        assert result.output.splitlines() == [
            "ROOT, WARN",
            "    [1] ConsoleAppender",
            '        layout: PatternLayout conversion_pattern="%m%n"',
            '        stream: "stdout"',
            "        immediate_flush: False",
            "`-app",
            "  `-db (non-additive), DEBUG",
        ]

    def test_applies_under_named_logger(self, runner, properties_file):
        result = runner.invoke(show_command, [str(properties_file), "--logger", "svc"])

        assert result.exit_code == 0
        assert result.output.splitlines()[0] == "svc, WARN"
        assert "`-app" in result.output

    def test_leaves_default_context_untouched(self, runner, properties_file):
        runner.invoke(show_command, [str(properties_file), "-l", "cli.probe"])

        assert get_tree().get_or_create("cli.probe").peek_state(0) is None

    def test_invalid_file(self, runner, tmp_path):
        path = tmp_path / "bad.properties"
        path.write_text("rootLogger = INFO, NOPE\n")

        result = runner.invoke(show_command, [str(path)])

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_invalid_logger_name(self, runner, properties_file):
        result = runner.invoke(show_command, [str(properties_file), "--logger", "a..b"])

        assert result.exit_code == 2

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(show_command, [str(tmp_path / "absent.properties")])

        assert result.exit_code == 2


class TestMainGroup:
    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])

        assert result.exit_code == 0
        assert "version" in result.output

    def test_commands_registered(self, runner):
        result = runner.invoke(main, ["--help"])

        assert "show" in result.output
        assert "check" in result.output
