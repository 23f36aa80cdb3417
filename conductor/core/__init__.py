"""
Conductor Core Module

Provides centralized logging, configuration and the base error type.
"""

from conductor.core.logger import (
    setup_logging,
    get_logger,
    dev_log,
    truncate_for_log,
    IS_DEV,
)

from conductor.core.config import (
    Settings,
    ConfigError,
    load_settings,
)

from conductor.core.errors import ConductorError

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "dev_log",
    "truncate_for_log",
    "IS_DEV",
    # Config
    "Settings",
    "ConfigError",
    "load_settings",
    # Errors
    "ConductorError",
]
