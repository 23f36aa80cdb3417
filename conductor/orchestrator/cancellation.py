"""
Cancellation Controller

Cooperative cancellation of a workflow. The in-flight agent call is not
interrupted; the controller terminates every agent currently recorded on
the workflow and forces the record into FAILED. The phase executor
notices the terminal phase at its next boundary and stops the run.
"""

import logging
from typing import Optional

from conductor.agents.gateways import AgentGateway
from conductor.orchestrator.events import EventBus, WorkflowEventEmitter
from conductor.orchestrator.models import CancellationResult
from conductor.orchestrator.side_calls import best_effort
from conductor.orchestrator.state_machine import TransitionReason, WorkflowStateMachine
from conductor.orchestrator.workflow_store import WorkflowStore

logger = logging.getLogger("conductor.cancellation")

CANCELLED_ERROR = "Workflow cancelled"


class CancellationController:
    """Terminates a workflow's agents and marks it cancelled."""

    def __init__(
        self,
        store: WorkflowStore,
        agent_gateway: AgentGateway,
        event_bus: EventBus,
        state_machine: Optional[WorkflowStateMachine] = None,
    ):
        self.store = store
        self.agents = agent_gateway
        self.bus = event_bus
        self.machine = state_machine or WorkflowStateMachine()

    async def cancel(self, workflow_id: str) -> CancellationResult:
        """
        Cancel a workflow.

        Unknown ids and workflows that already finished report
        cancelled=False. Termination failures are logged and collected;
        they never keep the workflow from becoming terminal.
        """
        state = self.store.get(workflow_id)
        if state is None:
            logger.info(f"[CANCEL] Workflow {workflow_id} not found")
            return CancellationResult(cancelled=False)

        if state.is_terminal:
            logger.info(f"[CANCEL] Workflow {workflow_id} already {state.phase.value}")
            return CancellationResult(cancelled=False)

        terminated = []
        failures = []
        for role, agent_id in list(state.agents.items()):
            outcome = await best_effort(
                self.agents.terminate_agent(agent_id, state.workspace_id),
                f"terminate {role} agent {agent_id}",
            )
            if outcome.ok:
                terminated.append(agent_id)
            else:
                failures.append(agent_id)

        if self.machine.fail(state, CANCELLED_ERROR, TransitionReason.USER_CANCELLED) is None:
            # Run finished while terminations were in flight
            return CancellationResult(
                cancelled=False,
                terminated_agents=terminated,
                termination_failures=failures,
            )
        await WorkflowEventEmitter(self.bus, state.id).workflow_failed(reason="cancelled")

        logger.info(
            f"[CANCEL] 🛑 Workflow {workflow_id} cancelled "
            f"({len(terminated)} agents terminated, {len(failures)} failed)"
        )
        return CancellationResult(
            cancelled=True,
            terminated_agents=terminated,
            termination_failures=failures,
        )
