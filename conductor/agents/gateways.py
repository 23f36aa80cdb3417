"""
Conductor Collaborator Ports

Abstract interfaces for the systems the orchestrator delegates to. The
orchestrator never implements agent logic or context storage itself; it
talks to these narrow contracts and receives concrete implementations
through its constructor.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from conductor.agents.models import Agent, AgentPage, CreateAgentRequest


class AgentGateway(ABC):
    """
    Port for agent record management.

    Implementations create, look up, list and terminate agent records.
    Every call is a suspension point (network or database bound).
    """

    @abstractmethod
    async def create_agent(self, request: CreateAgentRequest) -> Agent:
        """Create an agent record and return it with its assigned id."""
        pass

    @abstractmethod
    async def get_agent(self, agent_id: str, workspace_id: str) -> Optional[Agent]:
        """Return the agent, or None if it does not exist in the workspace."""
        pass

    @abstractmethod
    async def list_agents(self, workspace_id: str, limit: int = 50) -> AgentPage:
        """List agents of a workspace."""
        pass

    @abstractmethod
    async def terminate_agent(self, agent_id: str, workspace_id: str) -> None:
        """
        Terminate a running agent.

        Callers treat failures here as warnings; implementations may raise.
        """
        pass


class AgentExecutor(ABC):
    """
    Port for one agent role's task execution.

    `task["type"]` selects the sub-operation (create-plan, implement-story,
    fix-bug, run-tests, deploy, rollback, ...). The returned value is a
    mapping or an AgentResult variant.
    """

    @abstractmethod
    async def execute_task(self, agent: Agent, task: Dict[str, Any]) -> Any:
        """Run `task` on `agent` and return its result payload."""
        pass


class ContextCheckpointGateway(ABC):
    """
    Port for per-agent context snapshots.

    Used to seed a retried phase with the work of the previous attempt.
    Both operations are treated as best-effort by the orchestrator.
    """

    @abstractmethod
    async def save_context(self, key: str, context: Dict[str, Any]) -> None:
        """Save a context snapshot under `key`."""
        pass

    @abstractmethod
    async def recover_context(self, key: str) -> Optional[Dict[str, Any]]:
        """Return the latest snapshot for `key`, or None."""
        pass
