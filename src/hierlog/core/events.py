"""Log event record handed to appenders and layouts."""

import threading
from dataclasses import dataclass, field
from datetime import datetime

from hierlog.core.levels import Level


@dataclass(frozen=True)
class LogEvent:
    """A single, already-accepted logging event."""

    level: Level
    logger_name: str
    message: str
    timestamp: datetime = field(default_factory=datetime.now)
    thread_name: str = field(default_factory=lambda: threading.current_thread().name)

    @property
    def category(self) -> str:
        """Logger name as shown by layouts (``ROOT`` for the root logger)."""
        return self.logger_name or "ROOT"
