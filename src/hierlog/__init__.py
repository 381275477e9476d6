"""
hierlog - Hierarchical logging configuration

Public API for configuring logger trees and inspecting the result.
"""

from importlib.metadata import version

from hierlog.config.configurator import configure, new_context, release_context, reset_configuration
from hierlog.config.directives import Directive
from hierlog.core.emit import Logger
from hierlog.core.errors import ConfigurationError, HierlogError
from hierlog.core.levels import Level
from hierlog.core.tree import DEFAULT_CONTEXT, get_tree
from hierlog.render.tree_renderer import render
from hierlog.system.startup import ensure_initialized, get_logger

try:
    __version__ = version("hierlog")
except Exception:
    __version__ = "0.0.0.dev"  # Fallback for development


__all__ = [
    "__version__",
    "DEFAULT_CONTEXT",
    "ConfigurationError",
    "Directive",
    "HierlogError",
    "Level",
    "Logger",
    "configure",
    "ensure_initialized",
    "get_logger",
    "get_tree",
    "new_context",
    "release_context",
    "render",
    "reset_configuration",
]
