"""Diagnostic logging for hierlog itself."""

import inspect
from typing import Any, Callable, Literal

import structlog
from pydantic import BaseModel, Field

from hierlog.core.emit import Logger
from hierlog.core.levels import Level
from hierlog.core.tree import DEFAULT_CONTEXT, SELF_LOGGER_NAME, HierarchyContext, LoggerTree, get_tree

LogFormat = Literal["console", "json"]

# structlog method name -> event level
_METHOD_LEVELS: dict[str, Level] = {
    "debug": Level.DEBUG,
    "info": Level.INFO,
    "msg": Level.INFO,
    "warn": Level.WARN,
    "warning": Level.WARN,
    "error": Level.ERROR,
    "exception": Level.ERROR,
    "critical": Level.FATAL,
    "fatal": Level.FATAL,
}


class LoggingConfig(BaseModel):
    """Configuration of hierlog's own diagnostic output.

    Diagnostics are structured (structlog) events emitted by hierlog modules,
    e.g. ``watch.reload_failed`` or ``config.applied``. They are rendered to a
    single line and handed to the logger named after the emitting module
    (``hierlog.watch``, ``hierlog.config.configurator``...), all of which sit
    under the diagnostic logger ``hierlog``. Where they end up is therefore
    controlled like any other logger::

        configure(Directive.SELF, Directive.SANE, Directive.OWN, Level.DEBUG)

    Format Options:
    - "console": ``watch.reload_failed | error=... path=...``
    - "json": one JSON object per event
    """

    format: LogFormat = Field(
        default="console",
        description="Rendering of diagnostic events: console (key=value) or json",
    )
    hierarchy_context: int = Field(
        default=DEFAULT_CONTEXT,
        ge=0,
        description="Hierarchy context whose configuration routes diagnostics",
    )
    show_callsite: bool = Field(
        default=False,
        description="Append (module:lineno) of the emitting call",
    )


class TreeLogger:
    """structlog-facing logger that hands rendered lines to a node of the logger tree."""

    def __init__(self, logger: Logger):
        self._logger = logger

    def __repr__(self) -> str:
        return f"TreeLogger({self._logger.node.display_name!r})"

    def _emit(self, method_name: str, message: str) -> None:
        self._logger.log(_METHOD_LEVELS.get(method_name, Level.INFO), message)

    def msg(self, message: str) -> None:
        self._emit("msg", message)

    def debug(self, message: str) -> None:
        self._emit("debug", message)

    def info(self, message: str) -> None:
        self._emit("info", message)

    def warning(self, message: str) -> None:
        self._emit("warning", message)

    warn = warning

    def error(self, message: str) -> None:
        self._emit("error", message)

    def exception(self, message: str) -> None:
        self._emit("exception", message)

    def critical(self, message: str) -> None:
        self._emit("critical", message)

    fatal = critical


class TreeLoggerFactory:
    """structlog ``logger_factory`` producing TreeLoggers for one hierarchy context."""

    def __init__(self, ctx: HierarchyContext = DEFAULT_CONTEXT, tree: LoggerTree | None = None):
        self.ctx = ctx
        self._tree = tree

    def __call__(self, *args: Any) -> TreeLogger:
        name = args[0] if args and isinstance(args[0], str) and args[0] else SELF_LOGGER_NAME
        tree = self._tree or get_tree()
        return TreeLogger(Logger(tree.get_or_create(name), self.ctx, tree))


class LoggerFactory:
    """
    Factory for hierlog's structured diagnostic loggers.

    Call configure() to change how diagnostics are rendered or which
    hierarchy context routes them; get_logger() configures defaults on first
    use.

    Example:
        # In modules
        logger = LoggerFactory.get_logger("hierlog.watch")
        logger.info("watch.reloaded", path="logging.properties")

        # Route diagnostics of a test context
        LoggerFactory.configure(LoggingConfig(hierarchy_context=ctx))
    """

    _config: LoggingConfig | None = None
    _configured: bool = False
    _tree: LoggerTree | None = None

    @classmethod
    def configure(cls, config: LoggingConfig | None = None, tree: LoggerTree | None = None) -> None:
        """
        Configure diagnostic logging.

        Args:
            config: LoggingConfig instance. If None, uses default configuration.
            tree: Logger tree diagnostics are routed through (process-wide tree by default).
        """
        if config is None:
            config = LoggingConfig()

        cls._config = config
        cls._tree = tree

        processors: list[Any] = [
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.format_exc_info,
        ]
        if config.show_callsite:
            processors.append(
                structlog.processors.CallsiteParameterAdder(
                    [
                        structlog.processors.CallsiteParameter.MODULE,
                        structlog.processors.CallsiteParameter.LINENO,
                    ]
                )
            )
        if config.format == "console":
            processors.append(cls._console_renderer())
        else:
            processors.append(structlog.processors.JSONRenderer(sort_keys=True))

        structlog.configure(
            processors=processors,
            wrapper_class=structlog.BoundLogger,
            context_class=dict,
            logger_factory=TreeLoggerFactory(config.hierarchy_context, tree),
            cache_logger_on_first_use=False,
        )

        cls._configured = True

    @staticmethod
    def _console_renderer() -> Callable[[Any, str, dict[str, Any]], str]:
        """Render ``event | key=value ...`` with an optional (module:lineno) suffix.

        Level and timestamp are left to the appender's layout.
        """

        def renderer(logger: Any, name: str, event_dict: dict[str, Any]) -> str:
            event_dict.pop("level", None)
            event = str(event_dict.pop("event", ""))
            module = event_dict.pop("module", "")
            lineno = event_dict.pop("lineno", "")
            exception = event_dict.pop("exception", None)

            context_parts = []
            for key, value in sorted(event_dict.items()):
                if key.startswith("_"):
                    continue
                context_parts.append(f"{key}={value}")

            parts = [event]
            if context_parts:
                parts.append("| " + " ".join(context_parts))
            if module and lineno:
                parts.append(f"({module}:{lineno})")
            line = " ".join(parts)
            if exception:
                line = f"{line}\n{exception}"
            return line

        return renderer

    @classmethod
    def get_logger(cls, name: str | None = None):
        """
        Get a diagnostic logger.

        Args:
            name: Logger name. If None, uses the calling module's __name__.

        Returns:
            structlog BoundLogger (lazy proxy) routed into the logger tree.
        """
        if not cls._configured:
            cls.configure()

        if name is None:
            frame = inspect.currentframe()
            if frame and frame.f_back:
                name = frame.f_back.f_globals.get("__name__", SELF_LOGGER_NAME)
            else:
                name = SELF_LOGGER_NAME

        return structlog.get_logger(name)

    @classmethod
    def get_config(cls) -> LoggingConfig:
        """Get current diagnostic logging configuration."""
        if cls._config is None:
            return LoggingConfig()
        return cls._config

    @classmethod
    def is_configured(cls) -> bool:
        return cls._configured

    @classmethod
    def reset(cls) -> None:
        """Reset diagnostic logging configuration (mainly for testing)."""
        cls._config = None
        cls._configured = False
        cls._tree = None
        structlog.reset_defaults()
