"""
Conductor Agent Models - Pydantic Models

Data exchanged with the agent side of the system:
- Agent records and the request used to create them
- Per-role result variants returned by agent executors

Result payloads are opaque to the orchestrator except for the handful of
fields it inspects to decide retry and rollback. Every variant keeps
unknown fields so nothing an executor reports is lost.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Type, Union
import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS
# =============================================================================

class AgentType(str, Enum):
    """Agent roles the orchestrator delegates phases to."""
    PLANNER = "planner"
    DEV = "dev"
    QA = "qa"
    DEVOPS = "devops"


class AgentStatus(str, Enum):
    """Lifecycle status of an agent record."""
    CREATED = "created"
    INITIALIZING = "initializing"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    FAILED = "failed"
    TERMINATED = "terminated"


# =============================================================================
# AGENT RECORDS
# =============================================================================

class CreateAgentRequest(BaseModel):
    """Payload for AgentGateway.create_agent."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    type: AgentType
    workspace_id: str = Field(alias="workspaceId")
    project_id: Optional[str] = Field(default=None, alias="projectId")
    created_by: str = Field(alias="createdBy")
    config: Dict[str, Any] = Field(default_factory=dict)


class Agent(BaseModel):
    """An agent record as known to the agent gateway."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    type: AgentType
    status: AgentStatus = AgentStatus.RUNNING
    workspace_id: str = Field(alias="workspaceId")
    project_id: Optional[str] = Field(default=None, alias="projectId")
    created_by: Optional[str] = Field(default=None, alias="createdBy")
    config: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)


class AgentPage(BaseModel):
    """One page of AgentGateway.list_agents."""
    agents: List[Agent] = Field(default_factory=list)
    total: int = 0


class AgentMonitorReport(BaseModel):
    """Agents of a workspace partitioned by status."""
    active: List[Agent] = Field(default_factory=list)
    completed: List[Agent] = Field(default_factory=list)
    failed: List[Agent] = Field(default_factory=list)


# =============================================================================
# RESULT VARIANTS
# =============================================================================

class AgentResult(BaseModel):
    """Base for every per-role result; `kind` tags the variant."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    kind: str
    status: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        """Serialize for forwarding into another agent's config or a checkpoint."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class PlanResult(AgentResult):
    kind: Literal["plan"] = "plan"


def _as_count(value: Any) -> Optional[int]:
    """Test counts as int; None when absent or not a number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class ImplementationResult(AgentResult):
    kind: Literal["implementation"] = "implementation"
    files_generated: List[str] = Field(default_factory=list, alias="filesGenerated")

    @field_validator("files_generated", mode="before")
    @classmethod
    def _null_files(cls, v: Any) -> Any:
        return [] if v is None else v


class BugFixResult(AgentResult):
    kind: Literal["bug_fix"] = "bug_fix"
    files_modified: List[str] = Field(default_factory=list, alias="filesModified")

    @field_validator("files_modified", mode="before")
    @classmethod
    def _null_files(cls, v: Any) -> Any:
        return [] if v is None else v


class QAResult(AgentResult):
    """
    Test-run report from the QA agent.

    The failure count is read from `failed`, falling back to
    `testResults.failed` when the executor nests it. A report with
    neither carries no count, and does not count as passing.
    """
    kind: Literal["test_run"] = "test_run"
    passed: Optional[int] = None
    failed: Optional[int] = None
    test_results: Optional[Dict[str, Any]] = Field(default=None, alias="testResults")

    @field_validator("passed", "failed", mode="before")
    @classmethod
    def _lenient_count(cls, v: Any) -> Optional[int]:
        return _as_count(v)

    @property
    def failure_count(self) -> Optional[int]:
        if self.failed is not None:
            return self.failed
        return _as_count((self.test_results or {}).get("failed"))


class DeploymentResult(AgentResult):
    kind: Literal["deployment"] = "deployment"
    deployment_id: Optional[str] = Field(default=None, alias="deploymentId")
    smoke_tests_passed: bool = Field(default=False, alias="smokeTestsPassed")

    @field_validator("deployment_id", mode="before")
    @classmethod
    def _stringify_id(cls, v: Any) -> Any:
        if v is None or isinstance(v, str):
            return v
        return str(v)

    @field_validator("smoke_tests_passed", mode="before")
    @classmethod
    def _null_is_failed(cls, v: Any) -> Any:
        return False if v is None else v


class RollbackResult(AgentResult):
    kind: Literal["rollback"] = "rollback"
    error: Optional[str] = None


AnyAgentResult = Union[
    PlanResult,
    ImplementationResult,
    BugFixResult,
    QAResult,
    DeploymentResult,
    RollbackResult,
    AgentResult,
]

RESULT_TYPES: Dict[str, Type[AgentResult]] = {
    "plan": PlanResult,
    "implementation": ImplementationResult,
    "bug_fix": BugFixResult,
    "test_run": QAResult,
    "deployment": DeploymentResult,
    "rollback": RollbackResult,
}


def parse_result(kind: str, raw: Any) -> AgentResult:
    """
    Coerce an executor's return value into the variant for `kind`.

    Args:
        kind: Variant tag expected for the phase
        raw: Executor return value (variant instance, dict or None)

    Returns:
        The typed result

    Raises:
        TypeError: If the executor returned something that is not a mapping
    """
    result_type = RESULT_TYPES[kind]
    if isinstance(raw, result_type):
        return raw
    if isinstance(raw, AgentResult):
        raw = raw.model_dump(by_alias=True)
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise TypeError(
            f"Agent returned {type(raw).__name__} for a {kind} result, expected a mapping"
        )
    payload = dict(raw)
    payload["kind"] = kind
    return result_type.model_validate(payload)
