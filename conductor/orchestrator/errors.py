"""
Conductor Orchestrator Errors

Only UnknownTaskTypeError crosses the public execute_task boundary; every
other failure is captured into the returned workflow record.
"""

from conductor.core.errors import ConductorError


class UnknownTaskTypeError(ConductorError, ValueError):
    """Task type has no route. Raised before any workflow state exists."""

    def __init__(self, task_type: str):
        self.task_type = task_type
        super().__init__(f"Unknown task type: {task_type}")


class WorkflowNotFoundError(ConductorError, LookupError):
    """Workflow id is not (or no longer) in the store."""

    def __init__(self, workflow_id: str):
        self.workflow_id = workflow_id
        super().__init__(f"Workflow {workflow_id} not found")


class WorkflowCancelledError(ConductorError):
    """
    A phase boundary observed that the workflow was cancelled.

    Internal: stops the remaining phases of a cancelled run.
    """

    def __init__(self, workflow_id: str):
        self.workflow_id = workflow_id
        super().__init__(f"Workflow {workflow_id} was cancelled")
