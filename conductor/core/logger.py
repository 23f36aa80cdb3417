"""
Conductor Centralized Logging Configuration

Provides:
- Environment-based log levels (dev=DEBUG, prod=INFO)
- Namespaced loggers under 'conductor.*'
- Dev-only logging utilities
- Sensitive data redaction in production

Usage:
    from conductor.core.logger import get_logger, dev_log

    logger = get_logger("orchestrator")
    logger.info("[ORCHESTRATOR] Always visible")
    dev_log(logger, "Only in dev mode: %s", some_data)
"""

import logging
import os
import sys
from typing import Optional

ROOT_LOGGER_NAME = "conductor"


# ============================================================================
# ENVIRONMENT DETECTION
# ============================================================================

def is_dev_mode() -> bool:
    """Check if running in development mode."""
    env = os.getenv("CONDUCTOR_ENV", "development").lower()
    return env in ("development", "dev", "local", "test")

IS_DEV = is_dev_mode()


# ============================================================================
# LOGGING CONFIGURATION
# ============================================================================

class SensitiveDataFilter(logging.Filter):
    """
    Filter to prevent sensitive data from appearing in production logs.

    Agent configs and checkpoint payloads are logged as JSON and may carry
    credentials for deploy targets.
    """

    SENSITIVE_PATTERNS = [
        "api_key",
        "apikey",
        "secret",
        "password",
        "token",
        "bearer",
        "authorization",
    ]

    def __init__(self, enabled: bool = True):
        super().__init__()
        self.enabled = enabled

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.enabled:
            return True

        msg = record.getMessage().lower()
        for pattern in self.SENSITIVE_PATTERNS:
            if pattern in msg:
                record.msg = "[REDACTED - contains sensitive data]"
                record.args = ()
                return True

        return True


def setup_logging(level: Optional[str] = None, dev_mode: Optional[bool] = None) -> logging.Logger:
    """
    Configure centralized logging for Conductor.

    Call this ONCE at application startup.

    Args:
        level: Explicit level name (e.g. "INFO"); defaults by environment
        dev_mode: Override environment detection

    Returns:
        Root Conductor logger
    """
    dev = IS_DEV if dev_mode is None else dev_mode
    if level:
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            resolved = logging.INFO
    else:
        resolved = logging.DEBUG if dev else logging.INFO

    logging.basicConfig(
        level=resolved,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True
    )

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(resolved)

    # Logger filters do not apply to records propagated from child loggers;
    # handler filters do.
    for handler in logging.getLogger().handlers:
        for existing in list(handler.filters):
            if isinstance(existing, SensitiveDataFilter):
                handler.removeFilter(existing)
        if not dev:
            handler.addFilter(SensitiveDataFilter())

    logging.getLogger("asyncio").setLevel(logging.WARNING)

    mode = "DEVELOPMENT" if dev else "PRODUCTION"
    root.info(f"🔧 Logging initialized ({mode} mode, level={logging.getLevelName(resolved)})")

    return root


def get_logger(name: str) -> logging.Logger:
    """
    Get a namespaced logger under conductor.*.

    Args:
        name: Module name (e.g., "orchestrator", "events", "agents")

    Returns:
        Logger instance

    Example:
        logger = get_logger("retry")
        logger.info("[RETRY] Re-running implementation")
    """
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


# ============================================================================
# DEV-ONLY LOGGING UTILITIES
# ============================================================================

def dev_log(logger: logging.Logger, message: str, *args, level: int = logging.DEBUG):
    """
    Log a message ONLY in development mode.

    Use this for verbose payload dumps that should never reach production.
    """
    if IS_DEV:
        logger.log(level, message, *args)


def truncate_for_log(content: str, max_length: int = 200) -> str:
    """
    Truncate content for safe logging.

    Args:
        content: String to truncate
        max_length: Max length (default 200)

    Returns:
        Truncated string with ... suffix if needed
    """
    if len(content) <= max_length:
        return content
    return content[:max_length] + "..."
