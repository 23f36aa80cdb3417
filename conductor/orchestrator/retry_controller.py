"""
Retry Controller

Drives the coupled implementation -> QA loop. QA verifies the preceding
implementation (or bug fix); a QA-reported test failure triggers another
implementation attempt seeded with the previous attempt's context and the
QA report.

Budget: `retry_count` is incremented after each failed QA run and the loop
gives up once `retry_count > max_retries`, i.e. after max_retries + 1
implementation/QA pairs.

Errors raised by an agent call are not retried; they propagate to the
workflow handler and fail the workflow immediately.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional
import logging

from conductor.agents.models import AgentResult, QAResult
from conductor.orchestrator.models import OrchestratorTask, WorkflowState
from conductor.orchestrator.phase_executor import PhaseExecutor, PhaseSpec
from conductor.orchestrator.state_machine import TransitionReason, WorkflowPhase

logger = logging.getLogger("conductor.retry")

# (dev agent config) -> implementation phase spec
ImplementationBuilder = Callable[[Dict[str, Any]], PhaseSpec]
# (implementation result) -> QA phase spec
VerificationBuilder = Callable[[AgentResult], PhaseSpec]


def qa_passed(result: AgentResult) -> bool:
    """A QA result passes only when it explicitly reports zero failed tests."""
    return isinstance(result, QAResult) and result.failure_count == 0


@dataclass
class RetryLoop:
    """
    One implementation/QA loop definition.

    Attributes:
        build_implementation: Builds the dev phase from the agent config
        build_verification: Builds the QA phase from the dev result
        base_config: Config every dev attempt starts from (e.g. the plan)
        exhausted_message: Error prefix once the budget is spent
    """
    build_implementation: ImplementationBuilder
    build_verification: VerificationBuilder
    base_config: Dict[str, Any]
    exhausted_message: str = "QA failed"


class RetryController:
    """Runs implementation/QA loops until QA passes or the budget is spent."""

    def __init__(self, phase_executor: PhaseExecutor):
        self.phases = phase_executor

    async def run(self, state: WorkflowState, task: OrchestratorTask, loop: RetryLoop) -> bool:
        """
        Run the loop.

        Returns:
            True when QA passed; False when retries were exhausted (the
            workflow has been moved to FAILED with a descriptive error)
        """
        emitter = self.phases.emitter(state)

        while True:
            dev_config = dict(loop.base_config)
            recovered: Optional[Dict[str, Any]] = None

            if state.retry_count > 0:
                previous_dev = state.agents.get("dev")
                if previous_dev:
                    recovered = await self.phases.recover_context(previous_dev)
                previous_qa = state.phase_results.get(WorkflowPhase.QA.value)
                if previous_qa is not None:
                    dev_config["qaFeedback"] = previous_qa.to_payload()
                logger.info(
                    f"[RETRY] Workflow {state.id} attempt {state.retry_count + 1}"
                    f"/{state.max_retries + 1} (recovered context: {recovered is not None})"
                )

            implementation = await self.phases.run(
                state,
                task,
                loop.build_implementation(dev_config),
                recovered_context=recovered,
            )

            verification_spec = loop.build_verification(implementation.result)
            verification_spec.succeeded = qa_passed
            verification = await self.phases.run(state, task, verification_spec)

            if verification.succeeded:
                return True

            failed = verification.result.failure_count if isinstance(verification.result, QAResult) else None
            if failed is None:
                logger.warning(f"[RETRY] Workflow {state.id} QA reported no failure count, treating as failed")
            await emitter.phase_failed(WorkflowPhase.QA, failed=failed)

            state.retry_count += 1
            if state.retry_count > state.max_retries:
                error = (
                    f"{loop.exhausted_message} after {state.max_retries} retries. "
                    f"Failed tests: {'unknown' if failed is None else failed}"
                )
                if self.phases.machine.fail(state, error, TransitionReason.RETRIES_EXHAUSTED):
                    await emitter.workflow_failed(error=error)
                logger.warning(f"[RETRY] Workflow {state.id} exhausted retries: {error}")
                return False
