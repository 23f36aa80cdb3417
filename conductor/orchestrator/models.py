"""
Conductor Orchestrator - Pydantic Models

Input, state and output records of the orchestrator:
- OrchestratorTask: caller-supplied work item
- WorkflowState: the mutable record of one workflow run
- OrchestratorResult: what execute_task returns
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
import uuid

from pydantic import BaseModel, ConfigDict, Field, SerializeAsAny, computed_field

from conductor.agents.models import AgentResult
from conductor.orchestrator.state_machine import StateTransition, WorkflowPhase


# =============================================================================
# ENUMS
# =============================================================================

class TaskType(str, Enum):
    """Task types the workflow router knows how to run."""
    IMPLEMENT_FEATURE = "implement-feature"
    FIX_BUG = "fix-bug"
    DEPLOY = "deploy"
    FULL_LIFECYCLE = "full-lifecycle"
    CUSTOM = "custom"


class AutonomyMode(str, Enum):
    """How much human sign-off a workflow expects."""
    FULL = "full"
    SEMI = "semi"


class OrchestratorStatus(str, Enum):
    """Final status reported by execute_task."""
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


# =============================================================================
# INPUT
# =============================================================================

class OrchestratorTask(BaseModel):
    """
    A unit of software-delivery work submitted to the orchestrator.

    `type` stays a plain string so an unrecognised value reaches the router
    and is rejected there with a descriptive error.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    type: str
    description: str = ""
    workspace_id: str = Field(alias="workspaceId")
    user_id: str = Field(alias="userId")
    project_id: Optional[str] = Field(default=None, alias="projectId")
    config: Dict[str, Any] = Field(default_factory=dict)
    autonomy_mode: AutonomyMode = Field(default=AutonomyMode.FULL, alias="autonomyMode")
    approval_gates: List[str] = Field(default_factory=list, alias="approvalGates")


# =============================================================================
# WORKFLOW STATE
# =============================================================================

class AgentHistoryEntry(BaseModel):
    """One agent spawn, kept for audit."""
    model_config = ConfigDict(frozen=True)

    agent_type: str
    agent_id: str
    phase: WorkflowPhase


class ApprovalGateRecord(BaseModel):
    """A phase that was flagged for human sign-off when it started."""
    model_config = ConfigDict(frozen=True)

    phase: WorkflowPhase
    flagged_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    blocking: bool = False


class WorkflowState(BaseModel):
    """
    The orchestrator's record of one workflow run.

    Mutated in place by the phase executor, retry controller, deployment
    guard and cancellation controller. `agent_history` is append-only.
    """
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    task_id: str
    workspace_id: str
    phase: WorkflowPhase = WorkflowPhase.PLANNING
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None

    agents: Dict[str, str] = Field(default_factory=dict)
    agent_history: List[AgentHistoryEntry] = Field(default_factory=list)
    phase_results: Dict[str, SerializeAsAny[AgentResult]] = Field(default_factory=dict)

    retry_count: int = 0
    max_retries: int = 2
    error: Optional[str] = None

    autonomy_mode: AutonomyMode = AutonomyMode.FULL
    approval_gates: List[str] = Field(default_factory=list)
    approval_log: List[ApprovalGateRecord] = Field(default_factory=list)
    transitions: List[StateTransition] = Field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.phase.is_terminal

    def record_agent(self, agent_type: str, agent_id: str, phase: WorkflowPhase) -> None:
        """Track the active agent for a role and append to the audit history."""
        self.agents[agent_type] = agent_id
        self.agent_history.append(
            AgentHistoryEntry(agent_type=agent_type, agent_id=agent_id, phase=phase)
        )


# =============================================================================
# OUTPUT
# =============================================================================

class OrchestratorResult(BaseModel):
    """Outcome of execute_task; always carries the workflow record."""
    status: OrchestratorStatus
    workflow_state: WorkflowState

    @computed_field
    @property
    def phase_results(self) -> Dict[str, SerializeAsAny[AgentResult]]:
        return self.workflow_state.phase_results

    @computed_field
    @property
    def agents(self) -> Dict[str, str]:
        return self.workflow_state.agents

    @property
    def error(self) -> Optional[str]:
        return self.workflow_state.error


class CancellationResult(BaseModel):
    """Outcome of cancel_workflow."""
    cancelled: bool
    terminated_agents: List[str] = Field(default_factory=list)
    termination_failures: List[str] = Field(default_factory=list)
