"""
Workflow Orchestrator

Public surface of the conductor. Drives a software-delivery task through
its phases, delegating each phase to an agent:

    implement-feature   planning -> implementation <-> qa
    fix-bug             bug fix <-> qa verification
    deploy              deployment (rollback on failed smoke tests)
    full-lifecycle      planning -> implementation <-> qa -> deployment
    custom              completes immediately

Failure policy:
- Unknown task types raise UnknownTaskTypeError before any state exists
- QA failures are retried within the workflow's budget
- Agent exceptions fail the workflow; they are never retried
- Checkpoint and termination failures are logged and ignored

Every other failure is captured in the returned OrchestratorResult.
"""

from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Union
import asyncio
import logging

from conductor.agents.gateways import AgentExecutor, AgentGateway, ContextCheckpointGateway
from conductor.agents.models import AgentMonitorReport, AgentStatus, AgentType
from conductor.core.config import Settings
from conductor.orchestrator.approval_gates import ApprovalGateChecker
from conductor.orchestrator.cancellation import CANCELLED_ERROR, CancellationController
from conductor.orchestrator.deployment_guard import DeploymentGuard
from conductor.orchestrator.errors import WorkflowCancelledError, WorkflowNotFoundError
from conductor.orchestrator.events import EventBus, LoggingSubscriber, WorkflowEventEmitter
from conductor.orchestrator.models import (
    CancellationResult,
    OrchestratorResult,
    OrchestratorStatus,
    OrchestratorTask,
    WorkflowState,
)
from conductor.orchestrator.phase_executor import PhaseExecutor
from conductor.orchestrator.phases import (
    bug_fix_phase,
    deployment_phase,
    fix_verification_phase,
    implementation_phase,
    planning_phase,
    qa_phase,
)
from conductor.orchestrator.retry_controller import RetryController, RetryLoop
from conductor.orchestrator.router import Stage, WorkflowRouter
from conductor.orchestrator.state_machine import (
    TransitionReason,
    WorkflowPhase,
    WorkflowStateMachine,
)
from conductor.orchestrator.workflow_store import (
    KeepAllRetention,
    MaxHistoryRetention,
    WorkflowStore,
)

logger = logging.getLogger("conductor.orchestrator")

StageHandler = Callable[[WorkflowState, OrchestratorTask], Awaitable[bool]]


class WorkflowOrchestrator:
    """
    Coordinates planner, dev, QA and DevOps agents through workflow phases.

    Usage:
        orchestrator = WorkflowOrchestrator(gateway, executors, context_store)
        result = await orchestrator.execute_task({
            "id": "task-1",
            "type": "implement-feature",
            "description": "Add login",
            "workspaceId": "ws-1",
            "userId": "user-1",
        })
    """

    def __init__(
        self,
        agent_gateway: AgentGateway,
        executors: Mapping[AgentType, AgentExecutor],
        context_gateway: ContextCheckpointGateway,
        settings: Optional[Settings] = None,
        store: Optional[WorkflowStore] = None,
        event_bus: Optional[EventBus] = None,
        router: Optional[WorkflowRouter] = None,
    ):
        self.settings = settings or Settings()
        self.agents = agent_gateway
        self.store = store or WorkflowStore(self._retention_for(self.settings))
        self.bus = event_bus or EventBus([LoggingSubscriber()])
        self.router = router or WorkflowRouter()
        self.machine = WorkflowStateMachine()

        self.phases = PhaseExecutor(
            agent_gateway,
            executors,
            context_gateway,
            self.bus,
            state_machine=self.machine,
            approvals=ApprovalGateChecker(),
        )
        self.retries = RetryController(self.phases)
        self.deployments = DeploymentGuard(self.phases)
        self.cancellation = CancellationController(
            self.store, agent_gateway, self.bus, state_machine=self.machine
        )

        self._stage_handlers: Dict[Stage, StageHandler] = {
            Stage.PLANNING: self._run_planning,
            Stage.BUILD_AND_VERIFY: self._run_build_and_verify,
            Stage.FIX_AND_VERIFY: self._run_fix_and_verify,
            Stage.DEPLOY: self._run_deploy,
        }

    @staticmethod
    def _retention_for(settings: Settings):
        if settings.max_workflows == 0:
            return KeepAllRetention()
        return MaxHistoryRetention(settings.max_workflows)

    # =========================================================================
    # TASK EXECUTION
    # =========================================================================

    async def execute_task(self, task: Union[OrchestratorTask, Dict[str, Any]]) -> OrchestratorResult:
        """
        Run a task to a terminal phase.

        Args:
            task: OrchestratorTask or its camelCase dict form

        Returns:
            OrchestratorResult with status completed, failed or cancelled

        Raises:
            UnknownTaskTypeError: The task type has no route (no state is created)
            asyncio.CancelledError: The calling task was cancelled; the
                workflow is marked cancelled before the error propagates
        """
        if isinstance(task, dict):
            task = OrchestratorTask.model_validate(task)

        logger.info(f"[ORCHESTRATOR] 🚀 Executing task {task.id} ({task.type}) in workspace {task.workspace_id}")
        _, stages = self.router.resolve(task.type)

        state = self.create_workflow_state(task)
        emitter = WorkflowEventEmitter(self.bus, state.id)
        await emitter.workflow_started(task.type)

        try:
            for stage in stages:
                if not await self._stage_handlers[stage](state, task):
                    break
            else:
                self.phases.ensure_active(state)
                self.machine.complete(state)
                await emitter.workflow_completed(task.type)
                logger.info(f"[ORCHESTRATOR] ✅ Workflow {state.id} completed")

        except WorkflowCancelledError:
            logger.info(f"[ORCHESTRATOR] Workflow {state.id} stopped after cancellation")

        except asyncio.CancelledError:
            logger.warning(f"[ORCHESTRATOR] Workflow {state.id} interrupted in {state.phase.value}")
            if self.machine.fail(state, CANCELLED_ERROR, TransitionReason.USER_CANCELLED) is not None:
                await emitter.workflow_failed(reason="cancelled")
            raise

        except Exception as e:
            error = str(e)
            logger.error(f"[ORCHESTRATOR] ❌ Workflow {state.id} failed in {state.phase.value}: {error}")
            failed_phase = state.phase
            if self.machine.fail(state, error, TransitionReason.AGENT_ERROR) is not None:
                await emitter.phase_failed(failed_phase, error=error)
                await emitter.workflow_failed(error=error)

        return OrchestratorResult(status=self._status_of(state), workflow_state=state)

    @staticmethod
    def _status_of(state: WorkflowState) -> OrchestratorStatus:
        if state.phase == WorkflowPhase.COMPLETED:
            return OrchestratorStatus.COMPLETED
        last = state.transitions[-1] if state.transitions else None
        if last is not None and last.reason == TransitionReason.USER_CANCELLED.value:
            return OrchestratorStatus.CANCELLED
        return OrchestratorStatus.FAILED

    # =========================================================================
    # STAGES
    # =========================================================================

    async def _run_planning(self, state: WorkflowState, task: OrchestratorTask) -> bool:
        await self.phases.run(state, task, planning_phase(task))
        return True

    async def _run_build_and_verify(self, state: WorkflowState, task: OrchestratorTask) -> bool:
        plan = state.phase_results.get(WorkflowPhase.PLANNING.value)
        loop = RetryLoop(
            build_implementation=lambda config: implementation_phase(task, config),
            build_verification=lambda result: qa_phase(task, result),
            base_config={"plan": plan.to_payload()} if plan is not None else {},
            exhausted_message="QA failed",
        )
        return await self.retries.run(state, task, loop)

    async def _run_fix_and_verify(self, state: WorkflowState, task: OrchestratorTask) -> bool:
        loop = RetryLoop(
            build_implementation=lambda config: bug_fix_phase(task, config),
            build_verification=lambda result: fix_verification_phase(task, result),
            base_config={},
            exhausted_message="QA verification failed",
        )
        return await self.retries.run(state, task, loop)

    async def _run_deploy(self, state: WorkflowState, task: OrchestratorTask) -> bool:
        environment = task.config.get("environment") or self.settings.default_environment

        config = dict(task.config)
        implementation = state.phase_results.get(WorkflowPhase.IMPLEMENTATION.value)
        if implementation is not None:
            config["implementationResult"] = implementation.to_payload()
        qa = state.phase_results.get(WorkflowPhase.QA.value)
        if qa is not None:
            config["qaResult"] = qa.to_payload()

        return await self.deployments.run(
            state, task, deployment_phase(task, config, environment), environment
        )

    # =========================================================================
    # WORKFLOW STATE
    # =========================================================================

    def create_workflow_state(self, task: Union[OrchestratorTask, Dict[str, Any]]) -> WorkflowState:
        """Build and register a new workflow record for a task."""
        if isinstance(task, dict):
            task = OrchestratorTask.model_validate(task)

        max_retries = task.config.get("maxRetries")
        state = WorkflowState(
            task_id=task.id,
            workspace_id=task.workspace_id,
            max_retries=self.settings.max_retries if max_retries is None else int(max_retries),
            autonomy_mode=task.autonomy_mode,
            approval_gates=list(task.approval_gates),
        )
        self.store.add(state)
        logger.debug(f"[ORCHESTRATOR] Created workflow {state.id} for task {task.id}")
        return state

    def get_workflow_status(self, workflow_id: str) -> Optional[WorkflowState]:
        """Workflow record, or None if unknown."""
        return self.store.get(workflow_id)

    def require_workflow(self, workflow_id: str) -> WorkflowState:
        """Workflow record; raises WorkflowNotFoundError if unknown."""
        state = self.store.get(workflow_id)
        if state is None:
            raise WorkflowNotFoundError(workflow_id)
        return state

    def get_active_workflows(self, workspace_id: str) -> List[WorkflowState]:
        """Non-terminal workflows of a workspace."""
        return self.store.active_for(workspace_id)

    async def cancel_workflow(self, workflow_id: str) -> CancellationResult:
        return await self.cancellation.cancel(workflow_id)

    # =========================================================================
    # AGENT MONITORING
    # =========================================================================

    async def monitor_agents(self, workspace_id: str) -> AgentMonitorReport:
        """Partition a workspace's agents into active, completed and failed."""
        page = await self.agents.list_agents(workspace_id, limit=self.settings.agent_list_limit)
        return AgentMonitorReport(
            active=[a for a in page.agents if a.status == AgentStatus.RUNNING],
            completed=[a for a in page.agents if a.status == AgentStatus.COMPLETED],
            failed=[a for a in page.agents if a.status == AgentStatus.FAILED],
        )
