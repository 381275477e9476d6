"""
Emission path.

A logging call resolves its target, checks the effective level, then hands the
event to the appenders of the target and of its ancestors, stopping after the
first non-additive logger. The appender chain is snapshotted under the
context lock; the writes themselves happen after the lock is released.
"""

from datetime import datetime
from typing import Any, Callable

from hierlog.core.errors import LoggerTypeError
from hierlog.core.events import LogEvent
from hierlog.core.levels import Level, resolve
from hierlog.core.tree import DEFAULT_CONTEXT, HierarchyContext, LoggerNode, LoggerTree, get_tree


class Logger:
    """
    Logger facade: a tree node bound to a hierarchy context.

    Example:
        >>> log = Logger(get_tree().get_or_create("app.db"))
        >>> log.info("connected to %s", "primary")
    """

    def __init__(
        self,
        node: LoggerNode,
        ctx: HierarchyContext = DEFAULT_CONTEXT,
        tree: LoggerTree | None = None,
    ):
        self.node = node
        self.ctx = ctx
        self.tree = tree or get_tree()

    def __repr__(self) -> str:
        return f"Logger({self.node.display_name!r}, ctx={self.ctx})"

    @property
    def name(self) -> str:
        return self.node.name

    @property
    def effective_level(self) -> Level:
        return self.tree.effective_level(self.node, self.ctx)

    def child(self, name: str) -> "Logger":
        """Return the logger for ``<this name>.<name>``."""
        full = f"{self.node.name}.{name}" if self.node.name else name
        return Logger(self.tree.get_or_create(full), self.ctx, self.tree)

    def is_enabled_for(self, level: Level | str) -> bool:
        return _is_enabled(resolve(level), self.effective_level)

    def log(self, level: Level | str, message: Any, *args: Any) -> int:
        """Log ``message % args`` at ``level``. Returns the number of appenders reached."""
        return emit(self, level, message, *args, ctx=self.ctx, tree=self.tree)

    def debug(self, message: Any, *args: Any) -> int:
        return self.log(Level.DEBUG, message, *args)

    def info(self, message: Any, *args: Any) -> int:
        return self.log(Level.INFO, message, *args)

    def warn(self, message: Any, *args: Any) -> int:
        return self.log(Level.WARN, message, *args)

    warning = warn

    def error(self, message: Any, *args: Any) -> int:
        return self.log(Level.ERROR, message, *args)

    def fatal(self, message: Any, *args: Any) -> int:
        return self.log(Level.FATAL, message, *args)

    critical = fatal


def resolve_logger(target: Any) -> LoggerNode:
    """
    Validate that a runtime value is a logger reference.

    Raises:
        LoggerTypeError: If ``target`` is neither a LoggerNode nor a Logger.
    """
    if isinstance(target, Logger):
        return target.node
    if isinstance(target, LoggerNode):
        return target
    raise LoggerTypeError(f"Expected a logger, got {type(target).__name__}: {target!r}")


def _is_enabled(level: Level, effective: Level) -> bool:
    return effective is not Level.OFF and level >= effective


def emit(
    target: Any,
    level: Level | str,
    message: Any,
    *args: Any,
    ctx: HierarchyContext = DEFAULT_CONTEXT,
    tree: LoggerTree | None = None,
    clock: Callable[[], datetime] = datetime.now,
) -> int:
    """
    Send one event through the hierarchy.

    Args:
        target: Logger or LoggerNode the event is logged against.
        level: Event level (ALL and OFF are not event levels).
        message: Message, %-formatted with ``args`` when args are given.
        ctx: Hierarchy context whose configuration applies.
        tree: Logger tree (process-wide tree by default).
        clock: Timestamp source.

    Returns:
        Number of appenders the event was handed to.

    Raises:
        LoggerTypeError: If ``target`` is not a logger.
        ValueError: If ``level`` is ALL or OFF.
    """
    node = resolve_logger(target)
    event_level = resolve(level)
    if event_level in (Level.ALL, Level.OFF):
        raise ValueError(f"{event_level.name} is a threshold, not an event level")
    tree = tree or get_tree()

    with tree.lock(ctx):
        if not _is_enabled(event_level, tree.effective_level(node, ctx)):
            return 0
        chain = []
        for ancestor in node.ancestors():
            state = ancestor.peek_state(ctx)
            if state is None:
                continue
            chain.extend(state.appenders)
            if not state.additive:
                break

    text = str(message) % args if args else str(message)
    event = LogEvent(level=event_level, logger_name=node.name, message=text, timestamp=clock())
    for appender in chain:
        appender.append(event)
    return len(chain)
