"""Daily rotating file appender."""

from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable

from hierlog.appenders.base import FileAppender
from hierlog.appenders.layouts import Layout
from hierlog.core.events import LogEvent


class DailyFileAppender(FileAppender):
    """
    File appender that rolls over at local midnight.

    The active file name is ``name_format`` expanded with strftime at the
    current time. When the date changes, the open file is closed and renamed
    to ``backup_name_format`` expanded with the date of the period just
    closed, then a fresh active file is opened.

    A process restarted mid-day reopens the same active file in append mode.
    If the active file left behind was last written in an earlier period, it
    is rolled over first, under that period's date.

    Args:
        name_format: strftime template of the active file.
        backup_name_format: strftime template of rolled-over files. No rename
            happens when it is None or expands to the active name.
        layout: Formatting strategy.
        immediate_flush: Flush after every event.
        clock: Source of "now" (injectable for tests).

    Example:
        >>> DailyFileAppender("logs/app.log", "logs/app.log.%Y%m%d")
    """

    def __init__(
        self,
        name_format: str | Path,
        backup_name_format: str | Path | None = None,
        layout: Layout | None = None,
        immediate_flush: bool = False,
        clock: Callable[[], datetime] = datetime.now,
    ):
        super().__init__(name_format, layout, immediate_flush)
        self.name_format = str(name_format)
        self.backup_name_format = str(backup_name_format) if backup_name_format is not None else None
        self.clock = clock
        self.rollover_count = 0
        self._active_path: Path | None = None
        self._period: date | None = None

    @property
    def active_path(self) -> Path | None:
        """Path of the currently open file, None before the first event."""
        return self._active_path

    def properties(self) -> list[tuple[str, Any]]:
        props: list[tuple[str, Any]] = [
            ("name_format", self.name_format),
            ("backup_name_format", self.backup_name_format),
        ]
        if self._active_path is not None:
            props.append(("file", str(self._active_path)))
        props.append(("immediate_flush", self.immediate_flush))
        return props

    def _write(self, text: str, event: LogEvent) -> None:
        now = self.clock()
        if self._stream is None:
            self._open_for(now)
        elif now.date() != self._period:
            self._rollover(now)
        assert self._stream is not None
        self._stream.write(text)

    def _open_for(self, now: datetime) -> None:
        path = Path(now.strftime(self.name_format))
        if path.exists():
            modified = datetime.fromtimestamp(path.stat().st_mtime).date()
            if modified < now.date():
                self._rename_to_backup(path, modified)
        self._stream = self._open(path)
        self._active_path = path
        self._period = now.date()

    def _rollover(self, now: datetime) -> None:
        assert self._stream is not None and self._active_path is not None and self._period is not None
        self._stream.close()
        self._stream = None
        self._rename_to_backup(self._active_path, self._period)
        self.rollover_count += 1
        self._open_for(now)

    def _rename_to_backup(self, path: Path, period: date) -> None:
        if self.backup_name_format is None or not path.exists():
            return
        backup = Path(period.strftime(self.backup_name_format))
        if backup == path:
            return
        backup = _unused_name(backup)
        backup.parent.mkdir(parents=True, exist_ok=True)
        path.rename(backup)


def _unused_name(path: Path) -> Path:
    """Return ``path``, or ``path.1``, ``path.2``... if it already exists."""
    if not path.exists():
        return path
    counter = 1
    while True:
        candidate = path.with_name(f"{path.name}.{counter}")
        if not candidate.exists():
            return candidate
        counter += 1
