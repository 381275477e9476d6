"""Unit tests for core/emit.py - level filtering, additivity and the Logger facade."""

from datetime import datetime

import pytest

from conftest import CaptureAppender, attach
from hierlog.core.emit import Logger, emit, resolve_logger
from hierlog.core.errors import LoggerTypeError
from hierlog.core.levels import Level


class TestResolveLogger:
    def test_accepts_nodes_and_facades(self, tree):
        node = tree.get_or_create("a")

        assert resolve_logger(node) is node
        assert resolve_logger(Logger(node, tree=tree)) is node

    @pytest.mark.parametrize("value", ["a", ["a"], 42, None])
    def test_rejects_anything_else(self, value):
        with pytest.raises(LoggerTypeError):
            resolve_logger(value)

    def test_logger_type_error_is_a_type_error(self):
        with pytest.raises(TypeError):
            resolve_logger(object())


class TestEmit:
    def test_walks_ancestors_until_non_additive(self, tree, ctx):
        # Arrange
        root_sink = CaptureAppender()
        app_sink = CaptureAppender()
        db_sink = CaptureAppender()
        attach(tree, ctx, "", root_sink)
        attach(tree, ctx, "app", app_sink, additive=False)
        db = attach(tree, ctx, "app.db", db_sink)

        # Act
        reached = emit(db, Level.INFO, "hello", ctx=ctx, tree=tree)

        # Assert
        assert reached == 2
        assert db_sink.lines == ["INFO [app.db] hello"]
        assert app_sink.lines == ["INFO [app.db] hello"]
        assert root_sink.lines == []

    def test_filters_below_effective_level(self, tree, ctx):
        sink = CaptureAppender()
        node = attach(tree, ctx, "app", sink)
        node.state(ctx).level = Level.WARN

        assert emit(node, Level.INFO, "dropped", ctx=ctx, tree=tree) == 0
        assert emit(node, Level.ERROR, "kept", ctx=ctx, tree=tree) == 1
        assert sink.lines == ["ERROR [app] kept"]

    def test_off_silences_everything(self, tree, ctx):
        sink = CaptureAppender()
        node = attach(tree, ctx, "app", sink)
        node.state(ctx).level = Level.OFF

        assert emit(node, Level.FATAL, "nothing", ctx=ctx, tree=tree) == 0

    @pytest.mark.parametrize("level", [Level.ALL, Level.OFF])
    def test_thresholds_are_not_event_levels(self, tree, ctx, level):
        with pytest.raises(ValueError):
            emit(tree.root, level, "x", ctx=ctx, tree=tree)

    def test_formats_arguments_and_uses_clock(self, tree, ctx):
        # Arrange
        sink = CaptureAppender()
        node = attach(tree, ctx, "app", sink)
        stamp = datetime(2024, 5, 6, 7, 8, 9)

        # Act
        emit(node, "warn", "%s=%d", "answer", 42, ctx=ctx, tree=tree, clock=lambda: stamp)

        # Assert
        event = sink.events[0]
        assert event.message == "answer=42"
        assert event.level is Level.WARN
        assert event.timestamp == stamp

    def test_root_category(self, tree, ctx):
        sink = CaptureAppender()
        attach(tree, ctx, "", sink)

        emit(tree.root, Level.INFO, "m", ctx=ctx, tree=tree)

        assert sink.lines == ["INFO [ROOT] m"]


class TestLoggerFacade:
    def test_level_methods(self, tree, ctx):
        # Arrange
        sink = CaptureAppender()
        attach(tree, ctx, "", sink)
        tree.root.state(ctx).level = Level.DEBUG
        log = Logger(tree.get_or_create("svc"), ctx, tree)

        # Act
        log.debug("d")
        log.info("i")
        log.warning("w")
        log.error("e")
        log.critical("c")

        # Assert
        assert [event.level for event in sink.events] == [
            Level.DEBUG,
            Level.INFO,
            Level.WARN,
            Level.ERROR,
            Level.FATAL,
        ]

    def test_child_and_enabled(self, tree, ctx):
        log = Logger(tree.get_or_create("svc"), ctx, tree)
        child = log.child("worker")

        assert child.name == "svc.worker"
        assert child.effective_level is Level.INFO
        assert child.is_enabled_for("warn")
        assert not child.is_enabled_for(Level.DEBUG)
