"""
In-Memory Collaborators

Reference implementations of the collaborator ports, useful for testing,
demos and ephemeral single-process deployments.

Design:
- Plain dicts keyed by id; no locking (single event loop).
- Keys for context snapshots are opaque strings (the orchestrator uses
  agent ids).
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple
import logging

from conductor.agents.gateways import AgentExecutor, AgentGateway, ContextCheckpointGateway
from conductor.agents.models import (
    Agent,
    AgentPage,
    AgentStatus,
    CreateAgentRequest,
    utcnow,
)

logger = logging.getLogger("conductor.agents.memory")


class AgentNotFoundError(LookupError):
    """Raised when terminating an agent that does not exist."""
    pass


class InMemoryAgentGateway(AgentGateway):
    """Agent records held in a dict."""

    def __init__(self):
        self._agents: Dict[str, Agent] = {}

    async def create_agent(self, request: CreateAgentRequest) -> Agent:
        agent = Agent(
            name=request.name,
            type=request.type,
            status=AgentStatus.RUNNING,
            workspace_id=request.workspace_id,
            project_id=request.project_id,
            created_by=request.created_by,
            config=dict(request.config),
        )
        self._agents[agent.id] = agent
        logger.debug(f"[AGENTS] Created {agent.type.value} agent {agent.id}")
        return agent

    async def get_agent(self, agent_id: str, workspace_id: str) -> Optional[Agent]:
        agent = self._agents.get(agent_id)
        if agent is None or agent.workspace_id != workspace_id:
            return None
        return agent

    async def list_agents(self, workspace_id: str, limit: int = 50) -> AgentPage:
        matching = [a for a in self._agents.values() if a.workspace_id == workspace_id]
        matching.sort(key=lambda a: a.created_at, reverse=True)
        return AgentPage(agents=matching[:limit], total=len(matching))

    async def terminate_agent(self, agent_id: str, workspace_id: str) -> None:
        agent = await self.get_agent(agent_id, workspace_id)
        if agent is None:
            raise AgentNotFoundError(f"Agent {agent_id} not found in workspace {workspace_id}")
        agent.status = AgentStatus.TERMINATED
        logger.debug(f"[AGENTS] Terminated agent {agent_id}")

    def set_status(self, agent_id: str, status: AgentStatus) -> None:
        """Update an agent's status (executors report completion through this)."""
        self._agents[agent_id].status = status


class InMemoryContextStore(ContextCheckpointGateway):
    """
    Versioned context snapshots held in memory.

    Every save appends a new version; recovery returns the latest.
    """

    def __init__(self):
        self._snapshots: Dict[str, List[Dict[str, Any]]] = {}

    async def save_context(self, key: str, context: Dict[str, Any]) -> None:
        versions = self._snapshots.setdefault(key, [])
        versions.append({
            "version": len(versions) + 1,
            "saved_at": utcnow().isoformat(),
            "context": dict(context),
        })

    async def recover_context(self, key: str) -> Optional[Dict[str, Any]]:
        versions = self._snapshots.get(key)
        if not versions:
            return None
        return dict(versions[-1]["context"])

    def version_count(self, key: str) -> int:
        return len(self._snapshots.get(key, []))


class ScriptedExecutor(AgentExecutor):
    """
    Returns predefined responses in sequence.

    A response that is an Exception instance is raised instead of returned.
    With `repeat_last`, the final response is reused once the script runs out.
    """

    def __init__(self, responses: Sequence[Any], repeat_last: bool = False):
        """
        Args:
            responses: Results (or exceptions) to produce in order
            repeat_last: Keep returning the last response when exhausted
        """
        self._responses = list(responses)
        self._repeat_last = repeat_last
        self.calls: List[Tuple[Agent, Dict[str, Any]]] = []

    async def execute_task(self, agent: Agent, task: Dict[str, Any]) -> Any:
        index = len(self.calls)
        self.calls.append((agent, dict(task)))

        if index >= len(self._responses):
            if not self._repeat_last or not self._responses:
                raise RuntimeError("ScriptedExecutor exhausted responses")
            index = len(self._responses) - 1

        response = self._responses[index]
        if isinstance(response, BaseException):
            raise response
        return response

    @property
    def call_count(self) -> int:
        """Number of times execute_task() has been called."""
        return len(self.calls)

    def calls_of(self, task_type: str) -> List[Dict[str, Any]]:
        """Tasks of a given `type` in call order."""
        return [task for _, task in self.calls if task.get("type") == task_type]
