"""
Configuration package.

Exports:
    - configure: Apply a directive list to a logger
    - Directive: Configuration directives
    - load_properties: Read and validate a property file
    - FileWatcher: Property file reloader
"""

from hierlog.config.configurator import (
    Configurator,
    configure,
    new_context,
    release_context,
    reset_configuration,
)
from hierlog.config.directives import Directive, PendingDirectiveSet, parse_directives, validate
from hierlog.config.properties import PropertyConfiguration, load_properties
from hierlog.config.watcher import FileWatcher, stop_all_watchers

__all__ = [
    "Configurator",
    "Directive",
    "FileWatcher",
    "PendingDirectiveSet",
    "PropertyConfiguration",
    "configure",
    "load_properties",
    "new_context",
    "parse_directives",
    "release_context",
    "reset_configuration",
    "stop_all_watchers",
    "validate",
]
