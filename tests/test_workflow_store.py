"""
Tests for WorkflowStore and retention policies
"""

from datetime import datetime, timedelta, timezone

import pytest

from conductor.core.config import Settings
from conductor.orchestrator import (
    KeepAllRetention,
    MaxHistoryRetention,
    WorkflowPhase,
    WorkflowState,
    WorkflowStore,
)


def make_state(workspace_id="ws-1", task_id="task-1", phase=WorkflowPhase.PLANNING, finished_minutes_ago=None):
    state = WorkflowState(task_id=task_id, workspace_id=workspace_id, phase=phase)
    if finished_minutes_ago is not None:
        state.completed_at = datetime.now(timezone.utc) - timedelta(minutes=finished_minutes_ago)
    return state


class TestWorkflowStore:
    """Registry operations."""

    def test_add_and_get(self):
        """Added workflows are retrievable by id."""
        store = WorkflowStore()
        state = store.add(make_state())

        assert store.get(state.id) is state
        assert state.id in store
        assert len(store) == 1

    def test_get_unknown_returns_none(self):
        """Unknown ids return None rather than raising."""
        assert WorkflowStore().get("missing") is None

    def test_active_for_filters_workspace_and_terminal(self):
        """Only non-terminal workflows of the workspace are active."""
        store = WorkflowStore()
        running = store.add(make_state(phase=WorkflowPhase.QA))
        store.add(make_state(phase=WorkflowPhase.COMPLETED, finished_minutes_ago=1))
        store.add(make_state(phase=WorkflowPhase.FAILED, finished_minutes_ago=1))
        store.add(make_state(workspace_id="ws-2"))

        assert store.active_for("ws-1") == [running]

    def test_find_by_task(self):
        """Workflows are found by the caller's task id."""
        store = WorkflowStore()
        a = store.add(make_state(task_id="a"))
        store.add(make_state(task_id="b"))

        assert store.find_by_task("a") == [a]
        assert store.find_by_task("c") == []


class TestRetention:
    """Eviction policies."""

    def test_max_history_evicts_oldest_terminal(self):
        """Once over the bound the oldest finished workflows go first."""
        store = WorkflowStore(MaxHistoryRetention(max_workflows=2))
        oldest = store.add(make_state(phase=WorkflowPhase.COMPLETED, finished_minutes_ago=10))
        newer = store.add(make_state(phase=WorkflowPhase.FAILED, finished_minutes_ago=5))
        running = store.add(make_state())

        assert oldest.id not in store
        assert newer.id in store
        assert running.id in store

    def test_running_workflows_never_evicted(self):
        """The bound may be exceeded while workflows are still running."""
        store = WorkflowStore(MaxHistoryRetention(max_workflows=1))
        first = store.add(make_state())
        second = store.add(make_state())

        assert len(store) == 2
        assert {first.id, second.id} == {wf.id for wf in store}

    def test_keep_all(self):
        """KeepAllRetention never evicts."""
        store = WorkflowStore(KeepAllRetention())
        for minutes in range(5):
            store.add(make_state(phase=WorkflowPhase.COMPLETED, finished_minutes_ago=minutes))

        assert len(store) == 5

    def test_max_history_requires_positive_bound(self):
        """A zero bound is rejected."""
        with pytest.raises(ValueError):
            MaxHistoryRetention(max_workflows=0)

    def test_settings_zero_keeps_everything(self, make_orchestrator, executors):
        """max_workflows=0 in settings selects KeepAllRetention."""
        orchestrator = make_orchestrator(executors, settings=Settings(max_workflows=0))

        assert isinstance(orchestrator.store.retention, KeepAllRetention)
