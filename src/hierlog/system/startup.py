"""
Process-wide default configuration.

The first call to ``ensure_initialized()`` resets the default context (stopping
its watchers) and configures the root logger with INFO to the console,
flushing after every event. Later calls do nothing, so no background reload
task is ever started unless one is requested explicitly with WATCH.
"""

import threading

from hierlog.config.configurator import Configurator
from hierlog.config.directives import Directive
from hierlog.core.emit import Logger
from hierlog.core.levels import Level
from hierlog.core.tree import DEFAULT_CONTEXT, get_tree

_initialized = False
_init_lock = threading.Lock()


def ensure_initialized() -> bool:
    """
    Apply the default configuration once per process.

    Returns:
        True if this call performed the initialization.
    """
    global _initialized
    if _initialized:
        return False
    with _init_lock:
        if _initialized:
            return False
        configurator = Configurator(get_tree(), DEFAULT_CONTEXT)
        configurator.reset()
        configurator.configure(Level.INFO, Directive.SANE, Directive.IMMEDIATE_FLUSH)
        _initialized = True
    return True


def is_initialized() -> bool:
    return _initialized


def get_logger(name: str = "") -> Logger:
    """
    Return the logger named ``name`` in the default context.

    The default configuration is applied on first use.

    Example:
        >>> log = get_logger("app.db")
        >>> log.info("connected to %s", "primary")
    """
    ensure_initialized()
    tree = get_tree()
    return Logger(tree.get_or_create(name), DEFAULT_CONTEXT, tree)
