"""
Tree diagram of a logger configuration.

Only "interesting" loggers are drawn: the render root, and any logger with a
level, non-default additivity, appenders, or an interesting descendant.
Everything else is pruned, including the branch lines that would lead to it.

Example output::

    ROOT, INFO
        [1] ConsoleAppender
            layout: PatternLayout conversion_pattern="%d{%H:%M:%S} %-5p [%c] - %m%n"
            stream: "stdout"
            immediate_flush: True
    +-app
    | +-db, DEBUG
    | `-web (non-additive)
    |       [1] FileAppender
    |           ...
    `-hierlog, WARN
"""

from typing import Any

from hierlog.appenders.base import Appender
from hierlog.core.tree import DEFAULT_CONTEXT, HierarchyContext, LoggerNode, LoggerTree, get_tree

BRANCH = "+-"
LAST_BRANCH = "`-"
CONTINUATION = "| "
BLANK = "  "
APPENDER_INDENT = "    "
PROPERTY_INDENT = "        "


def render(node: LoggerNode, ctx: HierarchyContext = DEFAULT_CONTEXT, tree: LoggerTree | None = None) -> str:
    """
    Render the configuration of ``node`` and its interesting descendants.

    The context lock is held while the tree is read, so the diagram shows a
    configuration as it was before or after any concurrent configure() call.

    Args:
        node: Render root (always drawn).
        ctx: Hierarchy context to show.
        tree: Logger tree (process-wide tree by default).

    Returns:
        The diagram, newline-terminated.
    """
    tree = tree or get_tree()
    lines: list[str] = []
    with tree.lock(ctx):
        interesting: dict[LoggerNode, bool] = {}
        _mark_interesting(node, ctx, interesting)
        interesting[node] = True
        _render_node(node, ctx, interesting, depth=0, pending=[0], lines=lines)
    return "\n".join(lines) + "\n"


def _mark_interesting(node: LoggerNode, ctx: HierarchyContext, memo: dict[LoggerNode, bool]) -> bool:
    """Bottom-up pass: every node is evaluated exactly once."""
    any_child = False
    for child in node.children:
        if _mark_interesting(child, ctx, memo):
            any_child = True
    state = node.peek_state(ctx)
    result = any_child or (state is not None and not state.is_default)
    memo[node] = result
    return result


def _render_node(
    node: LoggerNode,
    ctx: HierarchyContext,
    interesting: dict[LoggerNode, bool],
    depth: int,
    pending: list[int],
    lines: list[str],
) -> None:
    ancestors = "".join(CONTINUATION if pending[level] > 0 else BLANK for level in range(1, depth))
    if depth == 0:
        branch = ""
    else:
        branch = BRANCH if pending[depth] > 0 else LAST_BRANCH
    lines.append(f"{ancestors}{branch}{_label(node, ctx, depth)}")

    column = "".join(CONTINUATION if pending[level] > 0 else BLANK for level in range(1, depth + 1))
    state = node.peek_state(ctx)
    if state is not None:
        for index, appender in enumerate(state.appenders, start=1):
            lines.extend(_appender_lines(appender, index, column))

    children = [child for child in node.children if interesting[child]]
    child_depth = depth + 1
    if len(pending) <= child_depth:
        pending.append(0)
    pending[child_depth] = len(children)
    for child in children:
        pending[child_depth] -= 1
        _render_node(child, ctx, interesting, child_depth, pending, lines)


def _label(node: LoggerNode, ctx: HierarchyContext, depth: int) -> str:
    if node.is_root:
        name = "ROOT"
    elif depth == 0:
        name = node.name
    else:
        name = node.segment
    state = node.peek_state(ctx)
    if state is None:
        return name
    if not state.additive:
        name = f"{name} (non-additive)"
    if state.level.is_set:
        name = f"{name}, {state.level.name}"
    return name


def _appender_lines(appender: Appender, index: int, column: str) -> list[str]:
    lines = [f"{column}{APPENDER_INDENT}[{index}] {type(appender).__name__}"]
    layout = appender.layout
    layout_props = "".join(f" {name}={_format_value(value)}" for name, value in layout.properties())
    lines.append(f"{column}{PROPERTY_INDENT}layout: {type(layout).__name__}{layout_props}")
    for name, value in appender.properties():
        lines.append(f"{column}{PROPERTY_INDENT}{name}: {_format_value(value)}")
    return lines


def _format_value(value: Any) -> str:
    if isinstance(value, str):
        return f'"{value}"'
    return str(value)
