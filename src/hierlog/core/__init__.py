"""Core model: levels, logger tree, events and the emission path."""

from hierlog.core.emit import Logger, emit, resolve_logger
from hierlog.core.events import LogEvent
from hierlog.core.levels import Level, resolve
from hierlog.core.tree import DEFAULT_CONTEXT, HierarchyContext, LoggerNode, LoggerState, LoggerTree, get_tree

__all__ = [
    "DEFAULT_CONTEXT",
    "HierarchyContext",
    "Level",
    "LogEvent",
    "Logger",
    "LoggerNode",
    "LoggerState",
    "LoggerTree",
    "emit",
    "get_tree",
    "resolve",
    "resolve_logger",
]
