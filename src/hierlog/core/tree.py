"""
Logger tree and per-context logger state.

The tree of named nodes is process-wide and append-only: nodes are created on
demand by ``get_or_create`` and never removed. Configuration lives beside the
tree, in one ``LoggerState`` per (node, hierarchy context). Contexts are plain
integers; context 0 is the default, others are allocated with
``new_context()`` and mostly serve to isolate tests from one another.

Locking:
- ``LoggerTree._insert_lock`` guards node insertion.
- ``LoggerNode._state_lock`` guards growth of a node's state list.
- ``LoggerTree.lock(ctx)`` is the per-context configuration lock. Every
  mutation of a LoggerState happens under it, and readers that look at more
  than one node (effective level, rendering, emission snapshots) take it too
  so they never see a half-applied configuration.
"""

import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Iterator, Sequence

from hierlog.core.levels import Level

if TYPE_CHECKING:  # pragma: no cover - only for type checkers
    from hierlog.appenders.base import Appender

HierarchyContext = int

DEFAULT_CONTEXT: HierarchyContext = 0
SELF_LOGGER_NAME = "hierlog"


@dataclass
class LoggerState:
    """Mutable configuration of one logger in one hierarchy context."""

    level: Level = Level.UNSET
    additive: bool = True
    appenders: list["Appender"] = field(default_factory=list)
    effective: Level | None = None  # cache, see LoggerTree.refresh_cache

    @property
    def is_default(self) -> bool:
        return self.level is Level.UNSET and self.additive and not self.appenders


class LoggerNode:
    """
    A named node in the logger tree.

    Identity is global: the same name always maps to the same node, whatever
    the hierarchy context.
    """

    def __init__(self, name: str, parent: "LoggerNode | None"):
        self.name = name
        self.segment = name.rsplit(".", 1)[-1] if name else ""
        self.parent = parent
        self._children: dict[str, LoggerNode] = {}
        self._states: list[LoggerState | None] = []
        self._state_lock = threading.Lock()

    def __repr__(self) -> str:
        return f"LoggerNode({self.display_name!r})"

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def display_name(self) -> str:
        return self.name if self.name else "ROOT"

    @property
    def children(self) -> list["LoggerNode"]:
        """Children sorted by segment name (snapshot)."""
        return [self._children[key] for key in sorted(self._children)]

    def child(self, segment: str) -> "LoggerNode | None":
        return self._children.get(segment)

    def ancestors(self) -> Iterator["LoggerNode"]:
        """Yield this node, then its parent, up to and including the root."""
        node: LoggerNode | None = self
        while node is not None:
            yield node
            node = node.parent

    def is_ancestor_of(self, other: "LoggerNode") -> bool:
        """True if ``other`` is a strict descendant of this node."""
        parent = other.parent
        while parent is not None:
            if parent is self:
                return True
            parent = parent.parent
        return False

    def state(self, ctx: HierarchyContext) -> LoggerState:
        """Return the state for ``ctx``, creating it (and growing the list) on demand."""
        states = self._states
        if ctx < len(states):
            existing = states[ctx]
            if existing is not None:
                return existing
        with self._state_lock:
            if ctx >= len(self._states):
                self._states.extend([None] * (ctx + 1 - len(self._states)))
            current = self._states[ctx]
            if current is None:
                current = LoggerState()
                self._states[ctx] = current
            return current

    def peek_state(self, ctx: HierarchyContext) -> LoggerState | None:
        """Return the state for ``ctx`` without creating it."""
        states = self._states
        if ctx < len(states):
            return states[ctx]
        return None

    def drop_state(self, ctx: HierarchyContext) -> LoggerState | None:
        with self._state_lock:
            if ctx < len(self._states):
                dropped = self._states[ctx]
                self._states[ctx] = None
                return dropped
        return None


class LoggerTree:
    """
    Process-wide registry of logger nodes.

    Example:
        >>> tree = LoggerTree()
        >>> db = tree.get_or_create("app.db")
        >>> db.parent is tree.get_or_create(["app"])
        True
        >>> tree.effective_level(db, DEFAULT_CONTEXT)
        <Level.INFO: 20>
    """

    def __init__(self, fallback_level: Level = Level.INFO):
        if not fallback_level.is_set:
            raise ValueError("fallback level must be a concrete level")
        self.fallback_level = fallback_level
        self.root = LoggerNode("", None)
        self._nodes: dict[str, LoggerNode] = {"": self.root}
        self._insert_lock = threading.Lock()
        self._context_locks: dict[HierarchyContext, threading.RLock] = {}
        self._contexts_lock = threading.Lock()
        self._next_context = DEFAULT_CONTEXT + 1

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    @property
    def self_logger(self) -> LoggerNode:
        """The framework's internal diagnostic logger."""
        return self.get_or_create(SELF_LOGGER_NAME)

    def get_or_create(self, name: str | Sequence[str]) -> LoggerNode:
        """
        Return the node for ``name``, creating it and any missing ancestors.

        Args:
            name: Dotted name ("app.db"), or a sequence of segments
                (["app", "db"]). The empty string and empty sequence name the root.

        Raises:
            ValueError: If a segment is empty or contains a dot.
            TypeError: If a segment is not a string.
        """
        segments = self._segments(name)
        full_name = ".".join(segments)
        node = self._nodes.get(full_name)
        if node is not None:
            return node

        with self._insert_lock:
            node = self.root
            for index, segment in enumerate(segments):
                child = node._children.get(segment)
                if child is None:
                    child = LoggerNode(".".join(segments[: index + 1]), node)
                    node._children[segment] = child
                    self._nodes[child.name] = child
                node = child
            return node

    def find(self, name: str | Sequence[str]) -> LoggerNode | None:
        """Return the node for ``name`` if it exists."""
        return self._nodes.get(".".join(self._segments(name)))

    def iter_nodes(self) -> Iterator[LoggerNode]:
        """Pre-order iteration over every node, root first."""
        yield self.root
        yield from self._iter_descendants(self.root)

    def visit_descendants(self, node: LoggerNode, fn: Callable[[LoggerNode], None]) -> None:
        """Call ``fn`` on every strict descendant of ``node``, pre-order."""
        for descendant in self._iter_descendants(node):
            fn(descendant)

    def _iter_descendants(self, node: LoggerNode) -> Iterator[LoggerNode]:
        for child in node.children:
            yield child
            yield from self._iter_descendants(child)

    @staticmethod
    def _segments(name: str | Sequence[str]) -> list[str]:
        if isinstance(name, str):
            if name == "":
                return []
            segments = name.split(".")
        else:
            segments = list(name)
        for segment in segments:
            if not isinstance(segment, str):
                raise TypeError(f"Logger name segment must be a string, got {type(segment).__name__}")
            if not segment or "." in segment:
                raise ValueError(f"Invalid logger name segment {segment!r} in {name!r}")
        return segments

    # ------------------------------------------------------------------
    # Contexts
    # ------------------------------------------------------------------

    def lock(self, ctx: HierarchyContext) -> threading.RLock:
        """Return the configuration lock of ``ctx``."""
        lock = self._context_locks.get(ctx)
        if lock is not None:
            return lock
        with self._contexts_lock:
            return self._context_locks.setdefault(ctx, threading.RLock())

    def new_context(self) -> HierarchyContext:
        """Allocate a fresh, empty hierarchy context."""
        with self._contexts_lock:
            ctx = self._next_context
            self._next_context += 1
        return ctx

    def release_context(self, ctx: HierarchyContext) -> None:
        """Drop every state held for ``ctx``, close its appenders and forget its lock."""
        removed: list[Appender] = []
        with self.lock(ctx):
            for node in list(self.iter_nodes()):
                state = node.drop_state(ctx)
                if state is not None:
                    removed.extend(state.appenders)
        with self._contexts_lock:
            self._context_locks.pop(ctx, None)
        _close_all(removed)

    def has_context_lock(self, ctx: HierarchyContext) -> bool:
        """True if a configuration lock has been allocated for ``ctx``."""
        return ctx in self._context_locks

    # ------------------------------------------------------------------
    # Levels
    # ------------------------------------------------------------------

    def effective_level(self, node: LoggerNode, ctx: HierarchyContext) -> Level:
        """
        Level used to filter events sent to ``node``.

        The nearest concrete level on ``node -> parent -> ... -> root``, or the
        tree's fallback level if none is set.
        """
        with self.lock(ctx):
            state = node.peek_state(ctx)
            if state is not None and state.effective is not None:
                return state.effective
            return self._walk_effective(node, ctx)

    def _walk_effective(self, node: LoggerNode, ctx: HierarchyContext) -> Level:
        for ancestor in node.ancestors():
            state = ancestor.peek_state(ctx)
            if state is not None and state.level.is_set:
                return state.level
        return self.fallback_level

    def refresh_cache(self, node: LoggerNode, ctx: HierarchyContext) -> None:
        """Recompute the cached effective level of ``node`` and its subtree."""
        with self.lock(ctx):
            inherited = self._walk_effective(node.parent, ctx) if node.parent is not None else self.fallback_level
            self._refresh(node, ctx, inherited)

    def _refresh(self, node: LoggerNode, ctx: HierarchyContext, inherited: Level) -> None:
        state = node.peek_state(ctx)
        effective = inherited
        if state is not None:
            if state.level.is_set:
                effective = state.level
            state.effective = effective
        for child in node.children:
            self._refresh(child, ctx, effective)

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    def reset_subtree(self, node: LoggerNode, ctx: HierarchyContext, recursive: bool = True) -> None:
        """
        Reset ``node`` (and, if ``recursive``, all its descendants) to defaults.

        Level becomes UNSET, additivity True, and every appender is removed
        and closed. The whole reset happens under the context lock.
        """
        with self.lock(ctx):
            removed = self.reset_states(node, ctx, recursive)
            self.refresh_cache(node, ctx)
        _close_all(removed)

    def reset_all(self, ctx: HierarchyContext) -> None:
        """Reset every logger in ``ctx``."""
        self.reset_subtree(self.root, ctx, recursive=True)

    def reset_states(self, node: LoggerNode, ctx: HierarchyContext, recursive: bool) -> list["Appender"]:
        """
        Reset states without closing appenders.

        Caller must hold ``lock(ctx)`` and close the returned appenders once
        the lock is released.
        """
        removed: list[Appender] = []
        targets = [node]
        if recursive:
            targets.extend(self._iter_descendants(node))
        for target in targets:
            state = target.peek_state(ctx)
            if state is None:
                continue
            removed.extend(state.appenders)
            state.level = Level.UNSET
            state.additive = True
            state.appenders = []
        return removed


def _close_all(appenders: list["Appender"]) -> None:
    for appender in appenders:
        appender.close()


_tree: LoggerTree | None = None
_tree_lock = threading.Lock()


def get_tree() -> LoggerTree:
    """Return the process-wide logger tree, creating it on first use."""
    global _tree
    if _tree is None:
        with _tree_lock:
            if _tree is None:
                from hierlog.system.config import get_system_config

                _tree = LoggerTree(fallback_level=get_system_config().fallback_level)
    return _tree
