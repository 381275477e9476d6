"""Unit tests for config/watcher.py - polling, reload and error reporting."""

import os
import time

import pytest

from hierlog.config.properties import parse_properties
from hierlog.config.watcher import FileWatcher, active_watchers, start_watching, stop_all_watchers, stop_watching
from hierlog.core.errors import PropertyParseError


def touch_later(path, seconds=5):
    """Move the modification time forward so the change is always visible."""
    stat = path.stat()
    os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns + seconds * 1_000_000_000))


@pytest.fixture
def watched(tmp_path):
    path = tmp_path / "logging.properties"
    path.write_text("rootLogger = INFO\n")
    return path


class TestPollOnce:
    def test_unchanged_file_is_not_reapplied(self, watched):
        applied = []
        watcher = FileWatcher(watched, applied.append)

        assert watcher.poll_once() is False
        assert applied == []

    def test_changed_file_is_parsed_and_applied(self, watched):
        # Arrange
        applied = []
        watcher = FileWatcher(watched, applied.append)
        watched.write_text("rootLogger = ERROR\n")
        touch_later(watched)

        # Act
        changed = watcher.poll_once()

        # Assert
        assert changed
        assert applied[0].loggers[0].level.name == "ERROR"
        assert watcher.reload_count == 1
        assert watcher.poll_once() is False

    def test_parse_error_is_reported_and_polling_continues(self, watched):
        # Arrange
        applied = []
        watcher = FileWatcher(watched, applied.append)
        watched.write_text("rootLogger = LOUD\n")
        touch_later(watched)

        # Act
        assert watcher.poll_once() is False
        watched.write_text("rootLogger = WARN\n")
        touch_later(watched, seconds=10)
        recovered = watcher.poll_once()

        # Assert
        assert watcher.error_count == 1
        assert recovered
        assert len(applied) == 1

    def test_apply_failure_is_reported(self, watched):
        def failing_apply(config):
            raise PropertyParseError(watched, "boom")

        watcher = FileWatcher(watched, failing_apply)
        touch_later(watched)

        assert watcher.poll_once() is False
        assert watcher.error_count == 1

    def test_missing_file_is_reported(self, watched):
        watcher = FileWatcher(watched, lambda config: None)
        watched.unlink()

        assert watcher.poll_once() is False
        assert watcher.poll_once() is False
        assert watcher.error_count == 2

    def test_custom_loader(self, watched):
        applied = []
        watcher = FileWatcher(
            watched,
            applied.append,
            loader=lambda path: parse_properties({"rootLogger": "FATAL"}, source=path),
            initial_mtime=0,
        )

        assert watcher.poll_once()
        assert applied[0].loggers[0].level.name == "FATAL"

    def test_poll_interval_must_be_positive(self, watched):
        with pytest.raises(ValueError):
            FileWatcher(watched, lambda config: None, poll_interval=0)


class TestThread:
    def test_start_and_stop(self, watched):
        # Arrange
        applied = []
        watcher = FileWatcher(watched, applied.append, poll_interval=0.01)

        # Act
        watcher.start()
        watched.write_text("rootLogger = DEBUG\n")
        touch_later(watched)
        deadline = time.monotonic() + 5
        while not applied and time.monotonic() < deadline:
            time.sleep(0.01)
        watcher.stop(timeout=2)

        # Assert
        assert applied
        assert not watcher.running


class TestRegistry:
    def test_second_watch_replaces_first(self, watched):
        # Arrange
        first = start_watching(watched, lambda config: None, ctx=901, poll_interval=10)

        # Act
        second = start_watching(watched, lambda config: None, ctx=901, poll_interval=10)

        # Assert
        assert active_watchers(901) == [second]
        assert not first.running
        assert stop_all_watchers(901) == 1
        assert not second.running

    def test_stop_watching(self, watched):
        start_watching(watched, lambda config: None, ctx=902, poll_interval=10)

        assert stop_watching(watched, 902)
        assert not stop_watching(watched, 902)
        assert active_watchers(902) == []
