"""
Conductor Agents Package

The agent side of the orchestrator boundary:
- Models: agent records and per-role result variants
- Gateways: ports the orchestrator depends on
- Memory: in-memory reference collaborators
"""

from conductor.agents.models import (
    AgentType,
    AgentStatus,
    Agent,
    AgentPage,
    AgentMonitorReport,
    CreateAgentRequest,
    AgentResult,
    PlanResult,
    ImplementationResult,
    BugFixResult,
    QAResult,
    DeploymentResult,
    RollbackResult,
    parse_result,
)

from conductor.agents.gateways import (
    AgentGateway,
    AgentExecutor,
    ContextCheckpointGateway,
)

from conductor.agents.memory import (
    InMemoryAgentGateway,
    InMemoryContextStore,
    ScriptedExecutor,
    AgentNotFoundError,
)

__all__ = [
    # Models
    "AgentType",
    "AgentStatus",
    "Agent",
    "AgentPage",
    "AgentMonitorReport",
    "CreateAgentRequest",
    "AgentResult",
    "PlanResult",
    "ImplementationResult",
    "BugFixResult",
    "QAResult",
    "DeploymentResult",
    "RollbackResult",
    "parse_result",
    # Ports
    "AgentGateway",
    "AgentExecutor",
    "ContextCheckpointGateway",
    # In-memory collaborators
    "InMemoryAgentGateway",
    "InMemoryContextStore",
    "ScriptedExecutor",
    "AgentNotFoundError",
]
