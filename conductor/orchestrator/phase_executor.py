"""
Phase Executor

Runs exactly one phase of one workflow:
1. Flag approval gates and move the workflow into the phase
2. Create the phase's agent and record it (active role + history)
3. Invoke the agent's task through the executor for its role
4. Store the typed result, emit completion events, checkpoint context

Agent errors propagate to the caller (retry controller, deployment guard
or the workflow handler). Checkpoint failures are logged and ignored.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional
import json
import logging

from conductor.agents.gateways import AgentExecutor, AgentGateway, ContextCheckpointGateway
from conductor.agents.models import Agent, AgentResult, AgentType, CreateAgentRequest, parse_result
from conductor.core.logger import dev_log, truncate_for_log
from conductor.orchestrator.approval_gates import ApprovalGateChecker
from conductor.orchestrator.errors import WorkflowCancelledError
from conductor.orchestrator.events import EventBus, WorkflowEventEmitter
from conductor.orchestrator.models import OrchestratorTask, WorkflowState
from conductor.orchestrator.side_calls import CallOutcome, best_effort
from conductor.orchestrator.state_machine import TransitionReason, WorkflowPhase, WorkflowStateMachine

logger = logging.getLogger("conductor.phase_executor")


def _always(_result: AgentResult) -> bool:
    return True


@dataclass
class PhaseSpec:
    """
    Everything needed to run one phase.

    Attributes:
        phase: Workflow phase entered for this run
        role: Agent role that performs it
        result_kind: Result variant tag expected from the agent
        task: Role-specific task payload handed to execute_task
        agent_name: Display name of the created agent
        agent_config: Forwarded data placed in the agent's config
        result_key: Key in phase_results (defaults to the phase name)
        succeeded: Whether the result completes the phase; when False the
            caller is responsible for emitting the phase failure
    """
    phase: WorkflowPhase
    role: AgentType
    result_kind: str
    task: Dict[str, Any]
    agent_name: str = ""
    agent_config: Dict[str, Any] = field(default_factory=dict)
    result_key: Optional[str] = None
    succeeded: Callable[[AgentResult], bool] = _always

    @property
    def key(self) -> str:
        return self.result_key or self.phase.value


@dataclass
class PhaseOutcome:
    """The agent that ran a phase and the typed result it produced."""
    agent: Agent
    result: AgentResult
    succeeded: bool = True


class PhaseExecutor:
    """
    Executes single phases against the agent gateway.

    One executor is shared by all workflows of an orchestrator; it holds no
    per-workflow state.
    """

    def __init__(
        self,
        agent_gateway: AgentGateway,
        executors: Mapping[AgentType, AgentExecutor],
        context_gateway: ContextCheckpointGateway,
        event_bus: EventBus,
        state_machine: Optional[WorkflowStateMachine] = None,
        approvals: Optional[ApprovalGateChecker] = None,
    ):
        self.agents = agent_gateway
        self.executors = dict(executors)
        self.contexts = context_gateway
        self.bus = event_bus
        self.machine = state_machine or WorkflowStateMachine()
        self.approvals = approvals or ApprovalGateChecker()

    def emitter(self, state: WorkflowState) -> WorkflowEventEmitter:
        return WorkflowEventEmitter(self.bus, state.id)

    def executor_for(self, role: AgentType) -> AgentExecutor:
        try:
            return self.executors[role]
        except KeyError:
            raise LookupError(f"No executor registered for {role.value} agents") from None

    @staticmethod
    def ensure_active(state: WorkflowState) -> None:
        """Stop a run whose workflow was cancelled at a phase boundary."""
        if state.is_terminal:
            raise WorkflowCancelledError(state.id)

    # =========================================================================
    # PHASE EXECUTION
    # =========================================================================

    async def run(
        self,
        state: WorkflowState,
        task: OrchestratorTask,
        spec: PhaseSpec,
        recovered_context: Optional[Dict[str, Any]] = None,
    ) -> PhaseOutcome:
        """
        Run one phase to completion.

        Args:
            state: Workflow record (mutated in place)
            task: The originating task (workspace, project, user)
            spec: Phase definition
            recovered_context: Prior attempt's context, forwarded to the agent

        Returns:
            PhaseOutcome with the agent and its typed result

        Raises:
            WorkflowCancelledError: The workflow was cancelled before or
                during the phase
            Exception: Anything the agent gateway or executor raised
        """
        self.ensure_active(state)
        emitter = self.emitter(state)

        self.approvals.check(state, spec.phase)
        reason = (
            TransitionReason.QA_RETRY
            if state.phase == WorkflowPhase.QA and spec.phase == WorkflowPhase.IMPLEMENTATION
            else TransitionReason.PHASE_STARTED
        )
        self.machine.transition(state, spec.phase, reason)
        await emitter.phase_started(spec.phase)

        config = dict(spec.agent_config)
        if recovered_context:
            config["recoveredContext"] = recovered_context

        agent = await self.agents.create_agent(
            CreateAgentRequest(
                name=spec.agent_name,
                type=spec.role,
                workspace_id=task.workspace_id,
                project_id=task.project_id,
                created_by=task.user_id,
                config=config,
            )
        )
        if state.is_terminal:
            # Cancelled while the agent was being created; it was not recorded
            # in time for the cancellation to terminate it.
            await best_effort(
                self.agents.terminate_agent(agent.id, task.workspace_id),
                f"terminate {spec.role.value} agent {agent.id}",
            )
            raise WorkflowCancelledError(state.id)
        state.record_agent(spec.role.value, agent.id, spec.phase)
        await emitter.agent_spawned(spec.phase, spec.role.value, agent.id)

        dev_log(
            logger,
            "[PHASE] %s task for %s: %s",
            spec.phase.value,
            agent.id,
            truncate_for_log(json.dumps(spec.task, default=str)),
        )
        raw = await self.executor_for(spec.role).execute_task(agent, spec.task)
        result = parse_result(spec.result_kind, raw)
        state.phase_results[spec.key] = result
        await emitter.agent_completed(spec.phase, spec.role.value, agent.id)

        self.ensure_active(state)

        succeeded = spec.succeeded(result)
        if succeeded:
            await emitter.phase_completed(spec.phase)

        await self.checkpoint(agent.id, spec.phase, result, state.id)
        return PhaseOutcome(agent=agent, result=result, succeeded=succeeded)

    async def invoke_existing(
        self,
        state: WorkflowState,
        agent: Agent,
        spec: PhaseSpec,
    ) -> AgentResult:
        """
        Run a follow-up task on an agent that already ran a phase.

        No new agent is created and the workflow phase does not change.
        Used for rollback on the deploying agent.
        """
        emitter = self.emitter(state)
        raw = await self.executor_for(spec.role).execute_task(agent, spec.task)
        result = parse_result(spec.result_kind, raw)
        state.phase_results[spec.key] = result
        await emitter.agent_completed(
            spec.phase, spec.role.value, agent.id, task=spec.task.get("type")
        )
        return result

    # =========================================================================
    # CONTEXT CHECKPOINTS
    # =========================================================================

    async def checkpoint(
        self,
        agent_id: str,
        phase: WorkflowPhase,
        result: AgentResult,
        workflow_id: str,
    ) -> CallOutcome[None]:
        """Save agent context at a phase boundary. Failures are logged only."""
        return await best_effort(
            self.contexts.save_context(
                agent_id,
                {"phase": phase.value, "result": result.to_payload(), "workflowId": workflow_id},
            ),
            f"save context for agent {agent_id}",
        )

    async def recover_context(self, agent_id: str) -> Optional[Dict[str, Any]]:
        """Recover an agent's last context; None if absent or recovery failed."""
        outcome = await best_effort(
            self.contexts.recover_context(agent_id),
            f"recover context for agent {agent_id}",
        )
        return outcome.value if outcome.ok else None
