"""
Best-Effort Collaborator Calls

Context checkpointing and agent termination must never change a
workflow's outcome. Instead of suppressing exceptions at every call site,
the call is wrapped once: the outcome (value or error) is returned, the
error is logged, and the caller decides whether to look at it.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Generic, Optional, TypeVar
import logging

logger = logging.getLogger("conductor.orchestrator")

T = TypeVar("T")


@dataclass
class CallOutcome(Generic[T]):
    """Result of a best-effort call."""
    ok: bool
    value: Optional[T] = None
    error: Optional[BaseException] = None


async def best_effort(call: Awaitable[T], description: str) -> CallOutcome[T]:
    """
    Await a collaborator call, capturing any failure.

    Args:
        call: The awaitable to run
        description: Human-readable label used in the warning

    Returns:
        CallOutcome with either `value` or `error` set
    """
    try:
        value = await call
    except Exception as e:
        logger.warning(f"[ORCHESTRATOR] ⚠️ Failed to {description}: {e}")
        return CallOutcome(ok=False, error=e)
    return CallOutcome(ok=True, value=value)
