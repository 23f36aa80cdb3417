"""
Conductor Workflow State Machine

This module provides:
1. WorkflowPhase enum - the phases a workflow moves through
2. TransitionReason enum - kept for audit logging
3. StateTransition record - audit trail of every phase change
4. WorkflowStateMachine - validates and applies phase changes

Phases only move forward (planning -> implementation -> qa -> deployment
-> completed) or sideways into failed. The single backward move is
qa -> implementation, used by the QA retry loop. completed and failed are
terminal.
"""

from enum import Enum
from datetime import datetime, timezone
from typing import Dict, FrozenSet, Optional, TYPE_CHECKING
import logging
import uuid

from pydantic import BaseModel, Field

from conductor.core.errors import ConductorError

if TYPE_CHECKING:
    from conductor.orchestrator.models import WorkflowState

logger = logging.getLogger("conductor.state_machine")


# ============================================================================
# PHASES
# ============================================================================

class WorkflowPhase(str, Enum):
    """Phases of a workflow, in forward order."""
    PLANNING = "planning"
    IMPLEMENTATION = "implementation"
    QA = "qa"
    DEPLOYMENT = "deployment"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_PHASES


TERMINAL_PHASES: FrozenSet[WorkflowPhase] = frozenset({
    WorkflowPhase.COMPLETED,
    WorkflowPhase.FAILED,
})

FORWARD_ORDER = (
    WorkflowPhase.PLANNING,
    WorkflowPhase.IMPLEMENTATION,
    WorkflowPhase.QA,
    WorkflowPhase.DEPLOYMENT,
    WorkflowPhase.COMPLETED,
)


# ============================================================================
# TRANSITION REASONS
# ============================================================================

class TransitionReason(str, Enum):
    """Reasons for phase transitions. Useful for audit trails."""
    PHASE_STARTED = "phase_started"
    QA_RETRY = "qa_retry"
    WORKFLOW_COMPLETED = "workflow_completed"
    RETRIES_EXHAUSTED = "retries_exhausted"
    SMOKE_TESTS_FAILED = "smoke_tests_failed"
    AGENT_ERROR = "agent_error"
    USER_CANCELLED = "user_cancelled"


# ============================================================================
# TRANSITION RECORD
# ============================================================================

class StateTransition(BaseModel):
    """Record of a single phase transition for audit logging."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    from_phase: WorkflowPhase
    to_phase: WorkflowPhase
    reason: str = TransitionReason.PHASE_STARTED.value


class TransitionError(ConductorError):
    """Raised when a phase transition is not permitted."""
    def __init__(self, from_phase: WorkflowPhase, to_phase: WorkflowPhase, reason: str):
        self.from_phase = from_phase
        self.to_phase = to_phase
        self.reason = reason
        super().__init__(
            f"Cannot transition from {from_phase.value} to {to_phase.value}: {reason}"
        )


# ============================================================================
# STATE MACHINE
# ============================================================================

class WorkflowStateMachine:
    """
    Validates and applies phase transitions on a WorkflowState.

    The machine is stateless; the workflow record carries the current phase
    and the transition history. This keeps a single owner (the record) for
    everything a status poll needs to see.
    """

    # Backward moves permitted in addition to forward ones
    RETRY_EDGES: Dict[WorkflowPhase, FrozenSet[WorkflowPhase]] = {
        WorkflowPhase.QA: frozenset({WorkflowPhase.IMPLEMENTATION}),
    }

    @classmethod
    def can_transition(cls, from_phase: WorkflowPhase, to_phase: WorkflowPhase) -> bool:
        """Check if a transition is valid."""
        if from_phase.is_terminal:
            return False
        if to_phase == WorkflowPhase.FAILED:
            return True
        if to_phase == from_phase:
            return True
        if to_phase in cls.RETRY_EDGES.get(from_phase, frozenset()):
            return True
        return FORWARD_ORDER.index(to_phase) > FORWARD_ORDER.index(from_phase)

    def transition(
        self,
        state: "WorkflowState",
        to_phase: WorkflowPhase,
        reason: TransitionReason = TransitionReason.PHASE_STARTED,
    ) -> StateTransition:
        """
        Move a workflow to `to_phase`.

        Args:
            state: Workflow record to mutate
            to_phase: Target phase
            reason: Why we're transitioning

        Returns:
            StateTransition record appended to the workflow's history

        Raises:
            TransitionError: If the move is not permitted
        """
        from_phase = state.phase
        if not self.can_transition(from_phase, to_phase):
            raise TransitionError(
                from_phase,
                to_phase,
                "workflow is terminal" if from_phase.is_terminal else "phases only move forward",
            )

        now = datetime.now(timezone.utc)
        record = StateTransition(
            timestamp=now,
            from_phase=from_phase,
            to_phase=to_phase,
            reason=reason.value,
        )
        state.phase = to_phase
        state.updated_at = now
        if to_phase.is_terminal:
            state.completed_at = now
        state.transitions.append(record)

        if from_phase != to_phase:
            logger.debug(
                f"[STATE] {state.id}: {from_phase.value} -> {to_phase.value} ({reason.value})"
            )
        return record

    def fail(
        self,
        state: "WorkflowState",
        error: str,
        reason: TransitionReason = TransitionReason.AGENT_ERROR,
    ) -> Optional[StateTransition]:
        """
        Move a workflow into FAILED and record its terminal error.

        The error is written once; a workflow that is already terminal is
        left untouched and None is returned.
        """
        if state.phase.is_terminal:
            logger.warning(
                f"[STATE] {state.id} already {state.phase.value}, ignoring failure: {error}"
            )
            return None
        state.error = error
        return self.transition(state, WorkflowPhase.FAILED, reason)

    def complete(self, state: "WorkflowState") -> StateTransition:
        """Move a workflow into COMPLETED."""
        return self.transition(state, WorkflowPhase.COMPLETED, TransitionReason.WORKFLOW_COMPLETED)
