"""
Conductor Orchestrator Package

Drives software-delivery workflows through planning, implementation, QA
and deployment phases:
- WorkflowOrchestrator: public entry point
- WorkflowStateMachine: phase transitions
- WorkflowStore: workflow registry with retention
- EventBus: lifecycle notifications
"""

from conductor.orchestrator.state_machine import (
    WorkflowPhase,
    TransitionReason,
    StateTransition,
    TransitionError,
    WorkflowStateMachine,
)

from conductor.orchestrator.models import (
    TaskType,
    AutonomyMode,
    OrchestratorStatus,
    OrchestratorTask,
    WorkflowState,
    AgentHistoryEntry,
    ApprovalGateRecord,
    OrchestratorResult,
    CancellationResult,
)

from conductor.orchestrator.errors import (
    UnknownTaskTypeError,
    WorkflowNotFoundError,
)

from conductor.orchestrator.events import (
    WorkflowEventType,
    WorkflowEvent,
    EventBus,
    LoggingSubscriber,
    InMemoryEventRecorder,
    WorkflowEventEmitter,
)

from conductor.orchestrator.workflow_store import (
    RetentionPolicy,
    KeepAllRetention,
    MaxHistoryRetention,
    WorkflowStore,
)

from conductor.orchestrator.router import Stage, WorkflowRouter
from conductor.orchestrator.orchestrator import WorkflowOrchestrator

__all__ = [
    # State machine
    "WorkflowPhase",
    "TransitionReason",
    "StateTransition",
    "TransitionError",
    "WorkflowStateMachine",
    # Models
    "TaskType",
    "AutonomyMode",
    "OrchestratorStatus",
    "OrchestratorTask",
    "WorkflowState",
    "AgentHistoryEntry",
    "ApprovalGateRecord",
    "OrchestratorResult",
    "CancellationResult",
    # Errors
    "UnknownTaskTypeError",
    "WorkflowNotFoundError",
    # Events
    "WorkflowEventType",
    "WorkflowEvent",
    "EventBus",
    "LoggingSubscriber",
    "InMemoryEventRecorder",
    "WorkflowEventEmitter",
    # Store
    "RetentionPolicy",
    "KeepAllRetention",
    "MaxHistoryRetention",
    "WorkflowStore",
    # Routing
    "Stage",
    "WorkflowRouter",
    # Orchestrator
    "WorkflowOrchestrator",
]
