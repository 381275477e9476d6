"""Tests for hierlog's own diagnostic logging (structlog routed into the tree)."""

import json

import pytest

from conftest import CaptureAppender, attach
from hierlog.core.levels import Level
from hierlog.system import LoggerFactory, LoggingConfig


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset diagnostic logging before and after each test."""
    LoggerFactory.reset()
    yield
    LoggerFactory.reset()
    LoggerFactory.configure()


@pytest.fixture
def diagnostics(tree, ctx):
    """Capture appender on the diagnostic logger of a private tree/context."""
    sink = CaptureAppender()
    attach(tree, ctx, "hierlog", sink, additive=False)
    tree.get_or_create("hierlog").state(ctx).level = Level.DEBUG
    return sink


def test_default_configuration():
    """Test logger factory with default configuration."""
    logger = LoggerFactory.get_logger()

    assert LoggerFactory.is_configured()
    assert hasattr(logger, "info")
    assert hasattr(logger, "warning")

    config = LoggerFactory.get_config()
    assert config.format == "console"
    assert config.hierarchy_context == 0
    assert config.show_callsite is False


def test_auto_configure_on_first_use():
    """Test that logger auto-configures with defaults on first use."""
    assert not LoggerFactory.is_configured()

    LoggerFactory.get_logger("hierlog.test")

    assert LoggerFactory.is_configured()


def test_console_events_reach_diagnostic_appenders(tree, ctx, diagnostics):
    # Arrange
    LoggerFactory.configure(LoggingConfig(hierarchy_context=ctx), tree=tree)
    logger = LoggerFactory.get_logger("hierlog.watch")

    # Act
    logger.warning("watch.reload_failed", path="x.properties", error="boom")

    # Assert
    assert diagnostics.lines == ["WARN [hierlog.watch] watch.reload_failed | error=boom path=x.properties"]


def test_level_filtering_applies_to_diagnostics(tree, ctx, diagnostics):
    LoggerFactory.configure(LoggingConfig(hierarchy_context=ctx), tree=tree)
    tree.get_or_create("hierlog").state(ctx).level = Level.ERROR
    logger = LoggerFactory.get_logger("hierlog.config")

    logger.info("config.applied")
    logger.error("config.failed")

    assert [event.message for event in diagnostics.events] == ["config.failed"]


def test_json_format(tree, ctx, diagnostics):
    LoggerFactory.configure(LoggingConfig(format="json", hierarchy_context=ctx), tree=tree)

    LoggerFactory.get_logger("hierlog.config").info("config.applied", target="app")

    payload = json.loads(diagnostics.events[0].message)
    assert payload == {"event": "config.applied", "level": "info", "target": "app"}


def test_callsite_suffix(tree, ctx, diagnostics):
    LoggerFactory.configure(LoggingConfig(show_callsite=True, hierarchy_context=ctx), tree=tree)

    LoggerFactory.get_logger("hierlog.config").debug("config.applied")

    message = diagnostics.events[0].message
    assert message.startswith("config.applied (test_log_system:")


def test_name_defaults_to_calling_module(tree, ctx):
    # Arrange: this module's logger sits under the root, not the diagnostic logger
    sink = CaptureAppender()
    attach(tree, ctx, "", sink)
    LoggerFactory.configure(LoggingConfig(hierarchy_context=ctx), tree=tree)

    # Act
    LoggerFactory.get_logger().warning("hello")

    # Assert
    assert sink.events[0].logger_name == __name__


def test_exception_is_rendered(tree, ctx, diagnostics):
    LoggerFactory.configure(LoggingConfig(hierarchy_context=ctx), tree=tree)
    logger = LoggerFactory.get_logger("hierlog.watch")

    try:
        raise RuntimeError("disk gone")
    except RuntimeError:
        logger.exception("watch.poll_failed")

    event = diagnostics.events[0]
    assert event.level is Level.ERROR
    assert "RuntimeError: disk gone" in event.message


def test_invalid_format_rejected():
    with pytest.raises(ValueError):
        LoggingConfig(format="xml")
