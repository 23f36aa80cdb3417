"""
Workflow Router

Maps a task's declared type to the ordered stages to run. Resolution is
pure: an unknown type is rejected before any workflow state or agent
exists.
"""

from enum import Enum
from typing import Dict, Mapping, Optional, Tuple

from conductor.orchestrator.errors import UnknownTaskTypeError
from conductor.orchestrator.models import TaskType


class Stage(str, Enum):
    """Units of work a route is composed of."""
    PLANNING = "planning"
    BUILD_AND_VERIFY = "build-and-verify"   # implementation -> QA loop
    FIX_AND_VERIFY = "fix-and-verify"       # bug fix -> QA loop
    DEPLOY = "deploy"                       # deployment with rollback policy


ROUTES: Dict[TaskType, Tuple[Stage, ...]] = {
    TaskType.IMPLEMENT_FEATURE: (Stage.PLANNING, Stage.BUILD_AND_VERIFY),
    TaskType.FIX_BUG: (Stage.FIX_AND_VERIFY,),
    TaskType.DEPLOY: (Stage.DEPLOY,),
    TaskType.FULL_LIFECYCLE: (Stage.PLANNING, Stage.BUILD_AND_VERIFY, Stage.DEPLOY),
    # Pass-through: completes immediately, work happens outside the orchestrator
    TaskType.CUSTOM: (),
}


class WorkflowRouter:
    """Resolves task types to stage sequences."""

    def __init__(self, routes: Optional[Mapping[TaskType, Tuple[Stage, ...]]] = None):
        self.routes: Dict[TaskType, Tuple[Stage, ...]] = dict(ROUTES if routes is None else routes)

    def resolve(self, task_type: str) -> Tuple[TaskType, Tuple[Stage, ...]]:
        """
        Look up the route for a task type.

        Raises:
            UnknownTaskTypeError: If the type has no route
        """
        try:
            key = TaskType(task_type)
        except ValueError:
            raise UnknownTaskTypeError(task_type) from None
        if key not in self.routes:
            raise UnknownTaskTypeError(task_type)
        return key, self.routes[key]
