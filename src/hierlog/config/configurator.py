"""
Configuration directive interpreter.

``configure()`` applies one directive list to one logger in one hierarchy
context. A call runs in three phases:

1. parse and validate the argument list (``directives``)
2. prepare: compile layouts, build appenders, read the property file.
   Anything that can fail happens here, before the first mutation.
3. commit: apply the prepared changes under the context lock, in order:
   level, CLEAR, OWN, appenders, PROPERTIES, diagnostic-logger
   re-establishment, effective-level cache refresh

Appenders removed by the commit are closed after the lock is released, and
watchers are started after the commit.

Usage:
    >>> configure(Level.INFO, Directive.SANE)                     # root: INFO to console
    >>> configure(["app", "db"], "debug", "daily", "db.log")      # app.db: DEBUG to a daily file
    >>> configure(Directive.SELF, Directive.SANE, Directive.OWN, "warn")
    >>> print(configure())                                         # show the tree
"""

import functools
import weakref
from dataclasses import dataclass, field, replace
from pathlib import Path

from hierlog.appenders.base import Appender, ConsoleAppender, FileAppender
from hierlog.appenders.daily import DailyFileAppender
from hierlog.appenders.layouts import PatternLayout
from hierlog.config.directives import Directive, PendingDirectiveSet, parse_directives, validate
from hierlog.config.properties import LoggerSpec, PropertyConfiguration, load_properties
from hierlog.config.self_config import SelfConfig, SelfConfigStore, fold, merge
from hierlog.config.watcher import start_watching, stop_all_watchers
from hierlog.core.emit import resolve_logger
from hierlog.core.levels import Level
from hierlog.core.tree import DEFAULT_CONTEXT, HierarchyContext, LoggerNode, LoggerTree, get_tree
from hierlog.render.tree_renderer import render
from hierlog.system.config import SystemConfig, get_system_config
from hierlog.system.log_system import LoggerFactory

logger = LoggerFactory.get_logger("hierlog.config")

_self_configs: "weakref.WeakKeyDictionary[LoggerTree, SelfConfigStore]" = weakref.WeakKeyDictionary()

# modifier -> directives it modifies
_MODIFIES: dict[Directive, tuple[Directive, ...]] = {
    Directive.WATCH: (Directive.PROPERTIES,),
    Directive.ALL: (Directive.CLEAR,),
    Directive.CONSOLE: (Directive.SANE, Directive.DAILY),
    Directive.TWOLINE: (Directive.SANE, Directive.DAILY),
    Directive.IMMEDIATE_FLUSH: (Directive.SANE, Directive.DAILY),
}


def _self_config_store(tree: LoggerTree) -> SelfConfigStore:
    store = _self_configs.get(tree)
    if store is None:
        store = _self_configs.setdefault(tree, SelfConfigStore())
    return store


@dataclass
class _Plan:
    """Everything one call will install, built before the first mutation."""

    pending: PendingDirectiveSet
    level: Level | None = None
    appenders: list[Appender] = field(default_factory=list)
    properties: PropertyConfiguration | None = None
    property_entries: list[tuple[LoggerSpec, list[Appender]]] = field(default_factory=list)
    properties_mtime: int | None = None
    self_plan: "_Plan | None" = None


class Configurator:
    """
    Applies directive lists against one tree and hierarchy context.

    Args:
        tree: Logger tree (process-wide tree by default).
        ctx: Hierarchy context to configure.
    """

    def __init__(self, tree: LoggerTree | None = None, ctx: HierarchyContext = DEFAULT_CONTEXT):
        self.tree = tree or get_tree()
        self.ctx = ctx
        self.self_configs = _self_config_store(self.tree)

    def configure(self, *args: object) -> str | None:
        """
        Parse, validate and apply one directive list.

        Returns:
            The rendered tree for a read-only call (no directives), else None.

        Raises:
            ConfigurationError: Any validation failure. Nothing was changed.
        """
        pending = parse_directives(args)
        validate(pending)
        target = self.resolve_target(pending)
        if pending.is_read_only:
            return render(target, self.ctx, self.tree)
        self.apply(target, pending)
        return None

    def resolve_target(self, pending: PendingDirectiveSet) -> LoggerNode:
        if pending.target is None:
            return self.tree.self_logger if pending.is_self else self.tree.root
        if isinstance(pending.target, tuple):
            return self.tree.get_or_create(pending.target)
        return resolve_logger(pending.target)

    def apply(
        self,
        target: LoggerNode,
        pending: PendingDirectiveSet,
        loaded: PropertyConfiguration | None = None,
    ) -> None:
        """Prepare and commit a validated directive set."""
        remember: SelfConfig | None = None
        if target is self.tree.self_logger and pending.properties is None:
            pending, remember = self._merge_self_config(pending)

        settings = get_system_config()
        plan = self._prepare(target, pending, settings, loaded)

        with self.tree.lock(self.ctx):
            removed = self._commit(target, plan)
            self.tree.refresh_cache(target, self.ctx)
            if remember is not None:
                self.self_configs.remember(self.ctx, remember)

        _close(removed)
        self._after_commit(target, plan, settings)

    def reset(self) -> None:
        """Reset every logger of the context, then re-establish the diagnostic logger."""
        stop_all_watchers(self.ctx)
        settings = get_system_config()
        self_logger = self.tree.self_logger
        record = self.self_configs.get(self.ctx)
        self_plan = self._prepare(self_logger, record.to_directives(), settings) if record is not None else None

        with self.tree.lock(self.ctx):
            removed = self.tree.reset_states(self.tree.root, self.ctx, recursive=True)
            if self_plan is not None:
                removed.extend(self._commit(self_logger, self_plan))
            self.tree.refresh_cache(self.tree.root, self.ctx)

        _close(removed)
        logger.debug("config.reset", context=self.ctx)

    # ------------------------------------------------------------------
    # Diagnostic logger
    # ------------------------------------------------------------------

    def _merge_self_config(self, pending: PendingDirectiveSet) -> tuple[PendingDirectiveSet, SelfConfig | None]:
        """Fold the remembered record into a narrow call; return the record to remember, if any."""
        new = SelfConfig.from_directives(pending)
        if new.installs_appenders:
            return pending, new
        remembered = self.self_configs.get(self.ctx)
        if remembered is None:
            return pending, None
        return fold(pending, merge(remembered, new)), None

    # ------------------------------------------------------------------
    # Prepare
    # ------------------------------------------------------------------

    def _prepare(
        self,
        target: LoggerNode,
        pending: PendingDirectiveSet,
        settings: SystemConfig,
        loaded: PropertyConfiguration | None = None,
    ) -> _Plan:
        plan = _Plan(pending=pending)

        if pending.level is not None:
            plan.level = pending.level
        elif pending.sane:
            plan.level = settings.sane_level

        if pending.installs_appenders:
            plan.appenders = self._build_appenders(pending, settings)

        if pending.properties is not None:
            if loaded is None:
                plan.properties_mtime = _mtime(pending.properties)
                loaded = load_properties(pending.properties)
            plan.properties = loaded
            plan.property_entries = [
                (spec, loaded.build_appenders(spec, settings.single_line_pattern)) for spec in loaded.loggers
            ]

        self_logger = self.tree.self_logger
        resets_self = pending.clear or pending.properties is not None
        if resets_self and target.is_ancestor_of(self_logger):
            record = self.self_configs.get(self.ctx)
            if record is not None:
                plan.self_plan = self._prepare(self_logger, record.to_directives(), settings)

        return plan

    @staticmethod
    def _build_appenders(pending: PendingDirectiveSet, settings: SystemConfig) -> list[Appender]:
        def layout() -> PatternLayout:
            if pending.pattern is not None:
                return PatternLayout(pending.pattern)
            if pending.has(Directive.TWOLINE):
                return PatternLayout(settings.two_line_pattern)
            return PatternLayout(settings.single_line_pattern)

        flush = pending.has(Directive.IMMEDIATE_FLUSH)
        appenders: list[Appender] = []
        if pending.daily is not None:
            appenders.append(
                DailyFileAppender(
                    pending.daily,
                    pending.daily + settings.daily_backup_suffix,
                    layout=layout(),
                    immediate_flush=flush,
                )
            )
        if pending.has(Directive.CONSOLE) or (pending.sane and pending.daily is None):
            appenders.append(ConsoleAppender(layout=layout(), immediate_flush=flush, stream=settings.console_stream))
        return appenders

    # ------------------------------------------------------------------
    # Commit (caller holds the context lock)
    # ------------------------------------------------------------------

    def _commit(self, target: LoggerNode, plan: _Plan) -> list[Appender]:
        pending = plan.pending
        own = pending.has(Directive.OWN)
        state = target.state(self.ctx)
        removed: list[Appender] = []

        if plan.level is not None:
            state.level = plan.level

        if pending.clear:
            strip_all = pending.has(Directive.ALL)
            descendants: list[LoggerNode] = []
            self.tree.visit_descendants(target, descendants.append)
            for node in descendants:
                node_state = node.peek_state(self.ctx)
                if node_state is None:
                    continue
                if strip_all or node_state.additive:
                    removed.extend(node_state.appenders)
                    node_state.appenders = []
                node_state.level = Level.UNSET
                node_state.additive = True

        if own:
            state.additive = False

        if pending.installs_appenders:
            if pending.sane:
                removed.extend(state.appenders)
                state.appenders = []
            else:
                strip_console = pending.has(Directive.CONSOLE)
                kept = []
                for appender in state.appenders:
                    if isinstance(appender, FileAppender) or (strip_console and isinstance(appender, ConsoleAppender)):
                        removed.append(appender)
                    else:
                        kept.append(appender)
                state.appenders = kept
            state.appenders.extend(plan.appenders)
            state.additive = not own

        if plan.properties is not None:
            removed.extend(self.tree.reset_states(target, self.ctx, recursive=True))
            for spec, appenders in plan.property_entries:
                node = self.tree.get_or_create(".".join(part for part in (target.name, spec.name) if part))
                node_state = node.state(self.ctx)
                if spec.level is not None:
                    node_state.level = spec.level
                if spec.additive is not None:
                    node_state.additive = spec.additive
                node_state.appenders.extend(appenders)
            if own:
                state.additive = False

        if plan.self_plan is not None:
            removed.extend(self._commit(self.tree.self_logger, plan.self_plan))

        return removed

    # ------------------------------------------------------------------
    # After commit
    # ------------------------------------------------------------------

    def _after_commit(self, target: LoggerNode, plan: _Plan, settings: SystemConfig) -> None:
        pending = plan.pending
        if pending.properties is not None and pending.has(Directive.WATCH):
            reload_pending = replace(pending, flags=pending.flags - {Directive.WATCH})
            start_watching(
                pending.properties,
                functools.partial(self.apply, target, reload_pending),
                self.ctx,
                poll_interval=settings.watch_poll_interval,
                initial_mtime=plan.properties_mtime,
            )

        for modifier, modified in _MODIFIES.items():
            if pending.has(modifier) and not any(_given(pending, directive) for directive in modified):
                logger.debug("config.modifier_ignored", directive=modifier.value, target=target.display_name)
        if pending.pattern is not None and not pending.installs_appenders:
            logger.debug("config.modifier_ignored", directive=Directive.PATTERN.value, target=target.display_name)

        logger.debug(
            "config.applied",
            target=target.display_name,
            context=self.ctx,
            level=plan.level.name if plan.level is not None else None,
            directives=sorted(directive.value for directive in pending.flags),
            appenders=len(plan.appenders),
        )


def _given(pending: PendingDirectiveSet, directive: Directive) -> bool:
    if directive is Directive.DAILY:
        return pending.daily is not None
    if directive is Directive.PROPERTIES:
        return pending.properties is not None
    return pending.has(directive)


def _mtime(path: Path) -> int | None:
    try:
        return path.stat().st_mtime_ns
    except OSError:
        return None


def _close(appenders: list[Appender]) -> None:
    for appender in appenders:
        appender.close()


def configure(*args: object, ctx: HierarchyContext = DEFAULT_CONTEXT, tree: LoggerTree | None = None) -> str | None:
    """
    Configure a logger from a directive list.

    The first positional argument may name the target: a Logger, a LoggerNode
    or a list of name segments. Without one, the target is the root logger,
    or the diagnostic logger if SELF is given.

    With no directives the call changes nothing and returns the rendered
    tree of the target.

    Raises:
        ConfigurationError: On any validation failure. Nothing was changed.
    """
    return Configurator(tree, ctx).configure(*args)


def reset_configuration(ctx: HierarchyContext = DEFAULT_CONTEXT, tree: LoggerTree | None = None) -> None:
    """Reset every logger of ``ctx``; the diagnostic logger's remembered setup is re-applied."""
    Configurator(tree, ctx).reset()


def new_context(tree: LoggerTree | None = None) -> HierarchyContext:
    """Allocate a fresh hierarchy context."""
    return (tree or get_tree()).new_context()


def release_context(ctx: HierarchyContext, tree: LoggerTree | None = None) -> None:
    """Stop the context's watchers, forget its diagnostic setup and drop its state."""
    tree = tree or get_tree()
    stop_all_watchers(ctx)
    _self_config_store(tree).forget(ctx)
    tree.release_context(ctx)
