"""
Approval Gate Checker

In semi-autonomous mode, phases named in `approval_gates` are flagged for
human sign-off when they start. The flag is recorded on the workflow and
logged; execution is not paused.
"""

import logging
from typing import Optional

from conductor.orchestrator.models import ApprovalGateRecord, AutonomyMode, WorkflowState
from conductor.orchestrator.state_machine import WorkflowPhase

logger = logging.getLogger("conductor.approval_gates")


class ApprovalGateChecker:
    """Flags gated phases of semi-autonomous workflows."""

    @staticmethod
    def is_gated(state: WorkflowState, phase: WorkflowPhase) -> bool:
        """Check if a phase requires approval in semi-autonomous mode."""
        return (
            state.autonomy_mode == AutonomyMode.SEMI
            and phase.value in state.approval_gates
        )

    def check(self, state: WorkflowState, phase: WorkflowPhase) -> Optional[ApprovalGateRecord]:
        """
        Record an approval gate for `phase` if one applies.

        Returns:
            The record appended to `state.approval_log`, or None
        """
        if not self.is_gated(state, phase):
            return None

        record = ApprovalGateRecord(phase=phase)
        state.approval_log.append(record)
        logger.info(
            f"[Workflow {state.id}] Approval gate: {phase.value} phase requires approval "
            f"(proceeding without blocking)"
        )
        return record
