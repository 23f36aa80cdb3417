"""
Conductor Settings

Environment-driven configuration. Values are read from the process
environment after loading an optional .env file.

Variables:
    CONDUCTOR_ENV                 development | production
    CONDUCTOR_LOG_LEVEL           explicit log level (DEBUG, INFO, ...)
    CONDUCTOR_MAX_RETRIES         default QA retry budget (2)
    CONDUCTOR_MAX_WORKFLOWS       retained workflow history (1000, 0 = keep all)
    CONDUCTOR_DEFAULT_ENVIRONMENT deploy target when a task names none (production)
    CONDUCTOR_AGENT_LIST_LIMIT    page size used by agent monitoring (1000)
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from conductor.core.errors import ConductorError


class ConfigError(ConductorError):
    """Raised when an environment variable holds an invalid value."""

    def __init__(self, variable: str, value: str, reason: str):
        self.variable = variable
        self.value = value
        super().__init__(f"Invalid value for {variable}={value!r}: {reason}")


@dataclass(frozen=True)
class Settings:
    """Resolved orchestrator settings."""
    env: str = "development"
    log_level: Optional[str] = None
    max_retries: int = 2
    max_workflows: int = 1000
    default_environment: str = "production"
    agent_list_limit: int = 1000

    @property
    def is_dev(self) -> bool:
        return self.env.lower() in ("development", "dev", "local", "test")


def _read_int(env: Mapping[str, str], name: str, default: int, minimum: int = 0) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(name, raw, "expected an integer") from None
    if value < minimum:
        raise ConfigError(name, raw, f"must be >= {minimum}")
    return value


def load_settings(env: Optional[Mapping[str, str]] = None, dotenv: bool = True) -> Settings:
    """
    Build Settings from environment variables.

    Args:
        env: Mapping to read instead of os.environ (used by tests)
        dotenv: Load a .env file into os.environ first

    Returns:
        Settings instance
    """
    if env is None:
        if dotenv:
            load_dotenv()
        env = os.environ

    return Settings(
        env=env.get("CONDUCTOR_ENV", "development"),
        log_level=env.get("CONDUCTOR_LOG_LEVEL") or None,
        max_retries=_read_int(env, "CONDUCTOR_MAX_RETRIES", 2),
        max_workflows=_read_int(env, "CONDUCTOR_MAX_WORKFLOWS", 1000),
        default_environment=env.get("CONDUCTOR_DEFAULT_ENVIRONMENT") or "production",
        agent_list_limit=_read_int(env, "CONDUCTOR_AGENT_LIST_LIMIT", 1000, minimum=1),
    )
