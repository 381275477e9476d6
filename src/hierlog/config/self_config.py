"""
Remembered configuration of the diagnostic logger.

A SELF call that installs appenders (SANE or DAILY) is remembered. Later,
narrower SELF calls, such as one that only changes the level, are merged with
the remembered record so the appender setup survives. The record is also
used to re-establish the diagnostic logger after a reset that wiped it.
"""

import threading
from dataclasses import dataclass

from hierlog.config.directives import Directive, PendingDirectiveSet
from hierlog.core.levels import Level
from hierlog.core.tree import HierarchyContext


@dataclass(frozen=True)
class SelfConfig:
    """Appender-relevant part of a SELF configure() call."""

    use_sane: bool = False
    daily_path: str | None = None
    pattern: str | None = None
    twoline: bool = False
    own: bool = False
    console: bool = False
    immediate_flush: bool = False
    level: Level | None = None

    @classmethod
    def from_directives(cls, pending: PendingDirectiveSet) -> "SelfConfig":
        return cls(
            use_sane=pending.sane,
            daily_path=pending.daily,
            pattern=pending.pattern,
            twoline=pending.has(Directive.TWOLINE),
            own=pending.has(Directive.OWN),
            console=pending.has(Directive.CONSOLE),
            immediate_flush=pending.has(Directive.IMMEDIATE_FLUSH),
            level=pending.level,
        )

    @property
    def installs_appenders(self) -> bool:
        return self.use_sane or self.daily_path is not None

    def to_directives(self) -> PendingDirectiveSet:
        """Directive set that re-applies this record to the diagnostic logger."""
        flags = {Directive.SELF}
        if self.use_sane:
            flags.add(Directive.SANE)
        if self.twoline:
            flags.add(Directive.TWOLINE)
        if self.own:
            flags.add(Directive.OWN)
        if self.console:
            flags.add(Directive.CONSOLE)
        if self.immediate_flush:
            flags.add(Directive.IMMEDIATE_FLUSH)
        return PendingDirectiveSet(
            level=self.level,
            flags=frozenset(flags),
            daily=self.daily_path,
            pattern=self.pattern,
        )


def merge(remembered: SelfConfig | None, new: SelfConfig) -> SelfConfig:
    """
    Fold a new SELF call into the remembered record.

    A call that installs appenders replaces the record outright. Otherwise the
    remembered SANE, DAILY path, own/console/immediate-flush flags and level
    are carried over; the remembered pattern and TWOLINE are carried over only
    if the new call gives no pattern of its own.
    """
    if remembered is None or new.installs_appenders:
        return new
    keep_layout = new.pattern is None
    return SelfConfig(
        use_sane=remembered.use_sane,
        daily_path=remembered.daily_path,
        pattern=remembered.pattern if keep_layout else new.pattern,
        twoline=new.twoline or (remembered.twoline and keep_layout),
        own=new.own or remembered.own,
        console=new.console or remembered.console,
        immediate_flush=new.immediate_flush or remembered.immediate_flush,
        level=new.level if new.level is not None else remembered.level,
    )


def fold(pending: PendingDirectiveSet, merged: SelfConfig) -> PendingDirectiveSet:
    """Return ``pending`` with the merged record's directives added."""
    folded = merged.to_directives()
    return PendingDirectiveSet(
        target=pending.target,
        level=pending.level if pending.level is not None else folded.level,
        flags=pending.flags | folded.flags,
        daily=pending.daily if pending.daily is not None else folded.daily,
        properties=pending.properties,
        pattern=pending.pattern if pending.pattern is not None else folded.pattern,
    )


class SelfConfigStore:
    """Remembered SelfConfig per hierarchy context."""

    def __init__(self) -> None:
        self._records: dict[HierarchyContext, SelfConfig] = {}
        self._lock = threading.Lock()

    def get(self, ctx: HierarchyContext) -> SelfConfig | None:
        with self._lock:
            return self._records.get(ctx)

    def remember(self, ctx: HierarchyContext, record: SelfConfig) -> None:
        with self._lock:
            self._records[ctx] = record

    def forget(self, ctx: HierarchyContext) -> None:
        with self._lock:
            self._records.pop(ctx, None)
