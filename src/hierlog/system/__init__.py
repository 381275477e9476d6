"""
System configuration package.

Exports:
    - SystemConfig: Framework settings model
    - get_system_config: Get settings singleton
    - reload_system_config: Force reload settings
    - LoggerFactory: Factory for hierlog's own diagnostic loggers
    - LoggingConfig: Diagnostic logging configuration model
"""

from hierlog.system.config import SystemConfig, get_system_config, reload_system_config
from hierlog.system.log_system import LoggerFactory, LoggingConfig

__all__ = [
    "SystemConfig",
    "get_system_config",
    "reload_system_config",
    "LoggerFactory",
    "LoggingConfig",
]
