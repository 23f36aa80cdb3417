"""
Phase Definitions

Builders for the PhaseSpec of each phase a workflow can run. They decide
which agent role performs the phase, what the agent is configured with
and the role-specific task payload handed to execute_task.
"""

from typing import Any, Dict

from conductor.agents.models import AgentResult, AgentType, BugFixResult, ImplementationResult
from conductor.orchestrator.models import OrchestratorTask
from conductor.orchestrator.phase_executor import PhaseSpec
from conductor.orchestrator.state_machine import WorkflowPhase


def planning_phase(task: OrchestratorTask) -> PhaseSpec:
    return PhaseSpec(
        phase=WorkflowPhase.PLANNING,
        role=AgentType.PLANNER,
        result_kind="plan",
        agent_name=f"Planner for {task.description}",
        agent_config={"task": task.description},
        task={
            "type": "create-plan",
            "description": task.description,
            "projectDescription": task.description,
        },
    )


def implementation_phase(task: OrchestratorTask, config: Dict[str, Any]) -> PhaseSpec:
    return PhaseSpec(
        phase=WorkflowPhase.IMPLEMENTATION,
        role=AgentType.DEV,
        result_kind="implementation",
        agent_name=f"Dev for {task.description}",
        agent_config=config,
        task={
            "type": "implement-story",
            "storyId": task.id,
            "description": task.description,
        },
    )


def bug_fix_phase(task: OrchestratorTask, config: Dict[str, Any]) -> PhaseSpec:
    return PhaseSpec(
        phase=WorkflowPhase.IMPLEMENTATION,
        role=AgentType.DEV,
        result_kind="bug_fix",
        agent_name=f"Dev fix for {task.description}",
        agent_config=config,
        task={
            "type": "fix-bug",
            "description": task.description,
        },
    )


def qa_phase(task: OrchestratorTask, implementation: AgentResult) -> PhaseSpec:
    """QA run over the files an implementation generated."""
    files = implementation.files_generated if isinstance(implementation, ImplementationResult) else []
    return PhaseSpec(
        phase=WorkflowPhase.QA,
        role=AgentType.QA,
        result_kind="test_run",
        agent_name=f"QA for {task.description}",
        agent_config={"implementation": implementation.to_payload()},
        task={
            "type": "run-tests",
            "storyId": task.id,
            "description": f"Run tests for: {task.description}",
            "files": list(files),
        },
    )


def fix_verification_phase(task: OrchestratorTask, fix: AgentResult) -> PhaseSpec:
    """QA run over the files a bug fix modified."""
    files = fix.files_modified if isinstance(fix, BugFixResult) else []
    return PhaseSpec(
        phase=WorkflowPhase.QA,
        role=AgentType.QA,
        result_kind="test_run",
        agent_name=f"QA verify for {task.description}",
        agent_config={"fix": fix.to_payload()},
        task={
            "type": "run-tests",
            "description": f"Verify fix for: {task.description}",
            "files": list(files),
        },
    )


def deployment_phase(task: OrchestratorTask, config: Dict[str, Any], environment: str) -> PhaseSpec:
    return PhaseSpec(
        phase=WorkflowPhase.DEPLOYMENT,
        role=AgentType.DEVOPS,
        result_kind="deployment",
        agent_name=f"Deploy {task.description}",
        agent_config=config,
        task={
            "type": "deploy",
            "description": task.description,
            "environment": environment,
            "config": dict(task.config),
        },
    )
