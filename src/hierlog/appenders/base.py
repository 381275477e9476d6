"""
Appenders: output sinks for log events.

An appender belongs to exactly one logger state. Writing goes through the
appender's own lock and never through the configuration lock, so slow I/O in
one sink does not block reconfiguration. Write failures are reported on
stderr and never propagate into the logging call.
"""

import sys
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import IO, Any, Literal

from hierlog.appenders.layouts import Layout, PatternLayout
from hierlog.core.events import LogEvent

StreamName = Literal["stdout", "stderr"]


class Appender(ABC):
    """
    Base class for appenders.

    Subclasses implement ``_write`` (and ``_flush``/``_close`` if they hold a
    resource); locking, immediate flush and error reporting live here.

    Args:
        layout: Formatting strategy (a single-line PatternLayout by default).
        immediate_flush: Flush after every event.
    """

    def __init__(self, layout: Layout | None = None, immediate_flush: bool = False):
        self.layout = layout if layout is not None else PatternLayout()
        self.immediate_flush = immediate_flush
        self._lock = threading.Lock()
        self._closed = False

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.layout!r})"

    @property
    def closed(self) -> bool:
        return self._closed

    def append(self, event: LogEvent) -> None:
        """Format and write one event. Any failure goes to ``handle_error``."""
        try:
            text = self.layout.format(event)
            with self._lock:
                if self._closed:
                    return
                self._write(text, event)
                if self.immediate_flush:
                    self._flush()
        except Exception as exc:
            self.handle_error(event, exc)

    def flush(self) -> None:
        with self._lock:
            if not self._closed:
                self._flush()

    def close(self) -> None:
        """Release the sink. Events appended afterwards are dropped."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._close()

    def handle_error(self, event: LogEvent, exc: BaseException) -> None:
        message = f"hierlog: {type(self).__name__} failed to write event from {event.category}: {exc!r}\n"
        try:
            sys.stderr.write(message)
        except (OSError, ValueError):
            # stderr itself is unusable; nowhere left to report
            pass

    def properties(self) -> list[tuple[str, Any]]:
        """Configured properties as name/value pairs (used by the tree renderer)."""
        return [("immediate_flush", self.immediate_flush)]

    @abstractmethod
    def _write(self, text: str, event: LogEvent) -> None: ...

    def _flush(self) -> None:
        pass

    def _close(self) -> None:
        pass


class ConsoleAppender(Appender):
    """
    Writes to standard output or standard error.

    The stream is looked up on every write, so redirecting ``sys.stdout``
    after configuration is honoured.
    """

    def __init__(
        self,
        layout: Layout | None = None,
        immediate_flush: bool = False,
        stream: StreamName = "stdout",
    ):
        super().__init__(layout, immediate_flush)
        if stream not in ("stdout", "stderr"):
            raise ValueError(f"stream must be 'stdout' or 'stderr', got {stream!r}")
        self.stream = stream

    def properties(self) -> list[tuple[str, Any]]:
        return [("stream", self.stream)] + super().properties()

    def _target(self) -> IO[str]:
        return sys.stdout if self.stream == "stdout" else sys.stderr

    def _write(self, text: str, event: LogEvent) -> None:
        self._target().write(text)

    def _flush(self) -> None:
        self._target().flush()


class FileAppender(Appender):
    """
    Appends to a single file.

    The file is opened lazily on the first event, in append mode, with parent
    directories created as needed.
    """

    def __init__(
        self,
        file: str | Path,
        layout: Layout | None = None,
        immediate_flush: bool = False,
    ):
        super().__init__(layout, immediate_flush)
        self.file = Path(file)
        self._stream: IO[str] | None = None

    def properties(self) -> list[tuple[str, Any]]:
        return [("file", str(self.file))] + super().properties()

    def _open(self, path: Path) -> IO[str]:
        path.parent.mkdir(parents=True, exist_ok=True)
        return open(path, "a", encoding="utf-8")

    def _write(self, text: str, event: LogEvent) -> None:
        if self._stream is None:
            self._stream = self._open(self.file)
        self._stream.write(text)

    def _flush(self) -> None:
        if self._stream is not None:
            self._stream.flush()

    def _close(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None
