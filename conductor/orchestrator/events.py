"""
Conductor Workflow Events

Typed lifecycle notifications for workflow runs:
- WorkflowEvent: immutable event record
- EventBus: fan-out to subscribers (sync or async callables)
- LoggingSubscriber / InMemoryEventRecorder: built-in subscribers
- WorkflowEventEmitter: convenience methods bound to one workflow

Emission is fire-and-forget from the workflow's point of view: a failing
subscriber is logged and skipped, never surfaced to the orchestrator.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union
import inspect
import json
import logging
import uuid

from pydantic import BaseModel, ConfigDict, Field

from conductor.core.logger import truncate_for_log
from conductor.orchestrator.state_machine import WorkflowPhase

logger = logging.getLogger("conductor.events")


class WorkflowEventType(str, Enum):
    """Fixed vocabulary of lifecycle events."""
    WORKFLOW_STARTED = "workflow.started"
    PHASE_STARTED = "workflow.phase.started"
    PHASE_COMPLETED = "workflow.phase.completed"
    PHASE_FAILED = "workflow.phase.failed"
    AGENT_SPAWNED = "workflow.agent.spawned"
    AGENT_COMPLETED = "workflow.agent.completed"
    WORKFLOW_COMPLETED = "workflow.completed"
    WORKFLOW_FAILED = "workflow.failed"


class WorkflowEvent(BaseModel):
    """Single workflow lifecycle notification."""
    model_config = ConfigDict(frozen=True)

    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    type: WorkflowEventType
    workflow_id: str
    phase: Optional[WorkflowPhase] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    data: Dict[str, Any] = Field(default_factory=dict)


Subscriber = Callable[[WorkflowEvent], Union[None, Awaitable[None]]]


# ============================================================================
# BUS
# ============================================================================

class EventBus:
    """
    Publishes workflow events to subscribers in subscription order.

    Usage:
        bus = EventBus()
        bus.subscribe(LoggingSubscriber())
        await bus.publish(event)
    """

    def __init__(self, subscribers: Optional[List[Subscriber]] = None):
        self._subscribers: List[Subscriber] = list(subscribers or [])

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        """
        Register a subscriber.

        Returns:
            A callable that removes the subscriber again
        """
        self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def publish(self, event: WorkflowEvent) -> None:
        """Deliver an event to every subscriber; subscriber errors are swallowed."""
        for subscriber in list(self._subscribers):
            try:
                outcome = subscriber(event)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                logger.warning(
                    f"[EVENTS] Subscriber {getattr(subscriber, '__name__', type(subscriber).__name__)} "
                    f"failed on {event.type.value}: {e}"
                )


# ============================================================================
# SUBSCRIBERS
# ============================================================================

class LoggingSubscriber:
    """Writes each event as a structured log line."""

    def __init__(self, log: Optional[logging.Logger] = None, level: int = logging.INFO):
        self.log = log or logger
        self.level = level

    def __call__(self, event: WorkflowEvent) -> None:
        payload = dict(event.data)
        if event.phase is not None and "phase" not in payload:
            payload["phase"] = event.phase.value
        rendered = truncate_for_log(json.dumps(payload, default=str), 500)
        self.log.log(self.level, f"[Workflow {event.workflow_id}] {event.type.value}: {rendered}")


class InMemoryEventRecorder:
    """Keeps every published event, in order."""

    def __init__(self):
        self.events: List[WorkflowEvent] = []

    def __call__(self, event: WorkflowEvent) -> None:
        self.events.append(event)

    def for_workflow(self, workflow_id: str) -> List[WorkflowEvent]:
        return [e for e in self.events if e.workflow_id == workflow_id]

    def types(self, workflow_id: Optional[str] = None) -> List[str]:
        """Event type values, optionally filtered to one workflow."""
        events = self.events if workflow_id is None else self.for_workflow(workflow_id)
        return [e.type.value for e in events]

    def clear(self) -> None:
        self.events.clear()


# ============================================================================
# EMITTER
# ============================================================================

class WorkflowEventEmitter:
    """
    Emits workflow events to a bus.

    Provides convenience methods for the lifecycle vocabulary, handling
    event ids and timestamps.
    """

    def __init__(self, bus: EventBus, workflow_id: str):
        self._bus = bus
        self._workflow_id = workflow_id

    async def _emit(
        self,
        event_type: WorkflowEventType,
        phase: Optional[WorkflowPhase] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        await self._bus.publish(
            WorkflowEvent(
                type=event_type,
                workflow_id=self._workflow_id,
                phase=phase,
                data=data or {},
            )
        )

    async def workflow_started(self, task_type: str) -> None:
        await self._emit(WorkflowEventType.WORKFLOW_STARTED, data={"type": task_type})

    async def phase_started(self, phase: WorkflowPhase) -> None:
        await self._emit(WorkflowEventType.PHASE_STARTED, phase, {"phase": phase.value})

    async def phase_completed(self, phase: WorkflowPhase) -> None:
        await self._emit(WorkflowEventType.PHASE_COMPLETED, phase, {"phase": phase.value})

    async def phase_failed(self, phase: WorkflowPhase, **details: Any) -> None:
        await self._emit(WorkflowEventType.PHASE_FAILED, phase, {"phase": phase.value, **details})

    async def agent_spawned(self, phase: WorkflowPhase, agent_type: str, agent_id: str) -> None:
        await self._emit(
            WorkflowEventType.AGENT_SPAWNED,
            phase,
            {"agentType": agent_type, "agentId": agent_id},
        )

    async def agent_completed(
        self, phase: WorkflowPhase, agent_type: str, agent_id: str, **details: Any
    ) -> None:
        await self._emit(
            WorkflowEventType.AGENT_COMPLETED,
            phase,
            {"agentType": agent_type, "agentId": agent_id, **details},
        )

    async def workflow_completed(self, task_type: str) -> None:
        await self._emit(WorkflowEventType.WORKFLOW_COMPLETED, data={"type": task_type})

    async def workflow_failed(self, **details: Any) -> None:
        await self._emit(WorkflowEventType.WORKFLOW_FAILED, data=details)
