"""
Deployment Guard

Runs the deployment phase and enforces the rollback policy: when the
DevOps agent reports failed smoke tests, the same agent is asked to roll
back the failed deployment and the workflow fails regardless of how the
rollback went. The rollback result is kept in phase_results["rollback"].
"""

from typing import Any, Dict
import logging

from conductor.agents.models import AgentResult, AgentType, DeploymentResult, RollbackResult
from conductor.orchestrator.models import OrchestratorTask, WorkflowState
from conductor.orchestrator.phase_executor import PhaseExecutor, PhaseSpec
from conductor.orchestrator.state_machine import TransitionReason, WorkflowPhase

logger = logging.getLogger("conductor.deployment_guard")

SMOKE_TEST_FAILURE = "Deployment smoke tests failed, rollback executed"


def smoke_tests_passed(result: AgentResult) -> bool:
    return isinstance(result, DeploymentResult) and result.smoke_tests_passed


class DeploymentGuard:
    """Deploys, and rolls back on smoke-test failure."""

    def __init__(self, phase_executor: PhaseExecutor):
        self.phases = phase_executor

    async def run(
        self,
        state: WorkflowState,
        task: OrchestratorTask,
        spec: PhaseSpec,
        environment: str,
    ) -> bool:
        """
        Run the deployment phase.

        Returns:
            True when smoke tests passed; False when a rollback was issued
            (the workflow has been moved to FAILED)
        """
        spec.succeeded = smoke_tests_passed
        deployment = await self.phases.run(state, task, spec)
        if deployment.succeeded:
            return True

        deployment_id = getattr(deployment.result, "deployment_id", None)
        logger.warning(
            f"[DEPLOY] Smoke tests failed for workflow {state.id}, initiating rollback "
            f"of deployment {deployment_id}"
        )

        rollback_spec = PhaseSpec(
            phase=WorkflowPhase.DEPLOYMENT,
            role=AgentType.DEVOPS,
            result_kind="rollback",
            result_key="rollback",
            task=self.rollback_task(task, environment, deployment_id),
        )
        try:
            await self.phases.invoke_existing(state, deployment.agent, rollback_spec)
        except Exception as e:
            logger.error(f"[DEPLOY] Rollback failed for workflow {state.id}: {e}")
            state.phase_results["rollback"] = RollbackResult(status="rollback_failed", error=str(e))

        emitter = self.phases.emitter(state)
        await emitter.phase_failed(
            WorkflowPhase.DEPLOYMENT,
            reason="Smoke tests failed, rollback executed",
        )
        if self.phases.machine.fail(state, SMOKE_TEST_FAILURE, TransitionReason.SMOKE_TESTS_FAILED):
            await emitter.workflow_failed(error=SMOKE_TEST_FAILURE)
        return False

    @staticmethod
    def rollback_task(task: OrchestratorTask, environment: str, deployment_id: Any) -> Dict[str, Any]:
        return {
            "type": "rollback",
            "description": f"Rollback deployment for: {task.description}",
            "environment": environment,
            "previousDeploymentId": deployment_id,
        }
