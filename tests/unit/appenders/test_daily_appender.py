"""Unit tests for appenders/daily.py - midnight rollover and restart behaviour."""

import os
from datetime import datetime

from hierlog.appenders.daily import DailyFileAppender
from hierlog.appenders.layouts import PatternLayout
from hierlog.core.events import LogEvent
from hierlog.core.levels import Level


class FakeClock:
    """Settable clock."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


def make_event(message):
    return LogEvent(Level.INFO, "app", message, datetime(2020, 1, 1), "main")


def make_appender(tmp_path, clock, backup=".%Y%m%d"):
    active = str(tmp_path / "app.log")
    return DailyFileAppender(
        active,
        active + backup if backup is not None else None,
        layout=PatternLayout("%m%n"),
        clock=clock,
    )


class TestRollover:
    def test_midnight_crossing_rolls_over_exactly_once(self, tmp_path):
        # Arrange
        clock = FakeClock(datetime(2020, 3, 1, 23, 59, 0))
        appender = make_appender(tmp_path, clock)

        # Act
        appender.append(make_event("before-1"))
        appender.append(make_event("before-2"))
        clock.now = datetime(2020, 3, 2, 0, 0, 1)
        appender.append(make_event("after-1"))
        appender.append(make_event("after-2"))
        appender.close()

        # Assert
        assert appender.rollover_count == 1
        assert (tmp_path / "app.log.20200301").read_text() == "before-1\nbefore-2\n"
        assert (tmp_path / "app.log").read_text() == "after-1\nafter-2\n"

    def test_no_rollover_within_a_day(self, tmp_path):
        clock = FakeClock(datetime(2020, 3, 1, 0, 0, 1))
        appender = make_appender(tmp_path, clock)

        appender.append(make_event("a"))
        clock.now = datetime(2020, 3, 1, 23, 59, 59)
        appender.append(make_event("b"))
        appender.close()

        assert appender.rollover_count == 0
        assert sorted(path.name for path in tmp_path.iterdir()) == ["app.log"]

    def test_dated_active_name(self, tmp_path):
        # Arrange: the active name itself carries the date, so no rename happens
        clock = FakeClock(datetime(2020, 3, 1, 12, 0))
        pattern = str(tmp_path / "app-%Y-%m-%d.log")
        appender = DailyFileAppender(pattern, pattern, layout=PatternLayout("%m%n"), clock=clock)

        # Act
        appender.append(make_event("a"))
        clock.now = datetime(2020, 3, 2, 12, 0)
        appender.append(make_event("b"))
        appender.close()

        # Assert
        assert (tmp_path / "app-2020-03-01.log").read_text() == "a\n"
        assert (tmp_path / "app-2020-03-02.log").read_text() == "b\n"
        assert appender.active_path == tmp_path / "app-2020-03-02.log"

    def test_existing_backup_is_not_overwritten(self, tmp_path):
        (tmp_path / "app.log.20200301").write_text("earlier\n")
        clock = FakeClock(datetime(2020, 3, 1, 23, 0))
        appender = make_appender(tmp_path, clock)

        appender.append(make_event("a"))
        clock.now = datetime(2020, 3, 2, 1, 0)
        appender.append(make_event("b"))
        appender.close()

        assert (tmp_path / "app.log.20200301").read_text() == "earlier\n"
        assert (tmp_path / "app.log.20200301.1").read_text() == "a\n"


class TestRestart:
    def test_restart_same_day_appends(self, tmp_path):
        # Arrange: a file written earlier today by a previous process
        active = tmp_path / "app.log"
        active.write_text("from previous run\n")
        appender = make_appender(tmp_path, datetime.now)

        # Act
        appender.append(make_event("after restart"))
        appender.close()

        # Assert
        assert active.read_text() == "from previous run\nafter restart\n"
        assert appender.rollover_count == 0

    def test_restart_after_midnight_rolls_stale_file(self, tmp_path):
        # Arrange: active file last written on an earlier day
        active = tmp_path / "app.log"
        active.write_text("stale\n")
        stale = datetime(2020, 3, 1, 22, 0).timestamp()
        os.utime(active, (stale, stale))
        clock = FakeClock(datetime(2020, 3, 2, 9, 0))
        appender = make_appender(tmp_path, clock)

        # Act
        appender.append(make_event("fresh"))
        appender.close()

        # Assert
        assert (tmp_path / "app.log.20200301").read_text() == "stale\n"
        assert active.read_text() == "fresh\n"


class TestProperties:
    def test_properties_before_and_after_open(self, tmp_path):
        clock = FakeClock(datetime(2020, 3, 1, 12, 0))
        appender = make_appender(tmp_path, clock)
        names = [name for name, _ in appender.properties()]
        assert "file" not in names

        appender.append(make_event("a"))

        props = dict(appender.properties())
        assert props["file"] == str(tmp_path / "app.log")
        assert props["backup_name_format"] == str(tmp_path / "app.log") + ".%Y%m%d"
        appender.close()
