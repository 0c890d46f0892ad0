"""
System configuration package.

Provides consolidated system-level configuration for the engine.

Exports:
    - SystemConfig: Complete system configuration model
    - get_system_config: Get system config singleton
    - reload_system_config: Force reload system config
    - LoggerFactory: Factory for creating configured loggers
    - LoggingConfig: Logging configuration model
"""

from folio.system.config import SystemConfig, get_system_config, reload_system_config
from folio.system.log_system import LoggerFactory, LoggingConfig

__all__ = [
    "SystemConfig",
    "get_system_config",
    "reload_system_config",
    "LoggerFactory",
    "LoggingConfig",
]
