"""
WorkflowStore

In-memory registry of workflow records keyed by workflow id.

Design:
- One store per orchestrator, injected through its constructor.
- Single writer per workflow id; different ids may be mutated by
  interleaved coroutines on the same event loop.
- Retention is an explicit policy applied after every insert. The default
  keeps at most `max_workflows` records by evicting the oldest terminal
  ones; running workflows are never evicted.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Iterator, List, Optional
import logging

from conductor.orchestrator.models import WorkflowState

logger = logging.getLogger("conductor.workflow_store")


class RetentionPolicy(ABC):
    """Decides which workflow ids to evict from a store."""

    @abstractmethod
    def select_evictions(self, workflows: Dict[str, WorkflowState]) -> List[str]:
        """Return the ids to evict, given the current contents."""
        pass


class KeepAllRetention(RetentionPolicy):
    """Never evict anything; the store grows for the life of the process."""

    def select_evictions(self, workflows: Dict[str, WorkflowState]) -> List[str]:
        return []


class MaxHistoryRetention(RetentionPolicy):
    """Evict the oldest terminal workflows once the store exceeds a bound."""

    def __init__(self, max_workflows: int = 1000):
        if max_workflows < 1:
            raise ValueError("max_workflows must be >= 1")
        self.max_workflows = max_workflows

    def select_evictions(self, workflows: Dict[str, WorkflowState]) -> List[str]:
        excess = len(workflows) - self.max_workflows
        if excess <= 0:
            return []

        oldest = datetime.min.replace(tzinfo=timezone.utc)
        terminal = [
            wf for wf in workflows.values()
            if wf.is_terminal and wf.completed_at is not None
        ]
        terminal.sort(key=lambda wf: wf.completed_at or oldest)
        return [wf.id for wf in terminal[:excess]]


class WorkflowStore:
    """Registry of WorkflowState records for one orchestrator."""

    def __init__(self, retention: Optional[RetentionPolicy] = None):
        self._workflows: Dict[str, WorkflowState] = {}
        self.retention = retention or MaxHistoryRetention()

    def add(self, state: WorkflowState) -> WorkflowState:
        """Register a workflow and apply the retention policy."""
        self._workflows[state.id] = state
        self._apply_retention()
        return state

    def get(self, workflow_id: str) -> Optional[WorkflowState]:
        """Return the workflow, or None if unknown (or evicted)."""
        return self._workflows.get(workflow_id)

    def active_for(self, workspace_id: str) -> List[WorkflowState]:
        """Non-terminal workflows of a workspace, in insertion order."""
        return [
            wf for wf in self._workflows.values()
            if wf.workspace_id == workspace_id and not wf.is_terminal
        ]

    def find_by_task(self, task_id: str) -> List[WorkflowState]:
        """All workflows created for a caller task id."""
        return [wf for wf in self._workflows.values() if wf.task_id == task_id]

    def all(self) -> List[WorkflowState]:
        return list(self._workflows.values())

    def _apply_retention(self) -> None:
        evicted = self.retention.select_evictions(self._workflows)
        for workflow_id in evicted:
            self._workflows.pop(workflow_id, None)
        if evicted:
            logger.info(f"[STORE] 🧹 Evicted {len(evicted)} terminal workflows")

    def __len__(self) -> int:
        return len(self._workflows)

    def __contains__(self, workflow_id: object) -> bool:
        return workflow_id in self._workflows

    def __iter__(self) -> Iterator[WorkflowState]:
        return iter(list(self._workflows.values()))
