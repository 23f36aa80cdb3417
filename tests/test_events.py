"""
Tests for the workflow event bus
"""

import logging

import pytest

from conductor.orchestrator import (
    EventBus,
    InMemoryEventRecorder,
    LoggingSubscriber,
    WorkflowEvent,
    WorkflowEventEmitter,
    WorkflowEventType,
    WorkflowPhase,
)
from tests.factories import make_task


class TestEventBus:
    """Publishing and subscriber handling."""

    @pytest.mark.asyncio
    async def test_sync_and_async_subscribers(self):
        """Both plain and coroutine subscribers receive events."""
        seen = []

        async def async_subscriber(event):
            seen.append(("async", event.type))

        bus = EventBus([lambda event: seen.append(("sync", event.type))])
        bus.subscribe(async_subscriber)

        await bus.publish(WorkflowEvent(type=WorkflowEventType.WORKFLOW_STARTED, workflow_id="wf-1"))

        assert seen == [
            ("sync", WorkflowEventType.WORKFLOW_STARTED),
            ("async", WorkflowEventType.WORKFLOW_STARTED),
        ]

    @pytest.mark.asyncio
    async def test_failing_subscriber_is_skipped(self):
        """A subscriber error never reaches the publisher or later subscribers."""
        recorder = InMemoryEventRecorder()

        def broken(event):
            raise RuntimeError("metrics backend down")

        bus = EventBus([broken, recorder])
        await bus.publish(WorkflowEvent(type=WorkflowEventType.WORKFLOW_FAILED, workflow_id="wf-1"))

        assert len(recorder.events) == 1

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        """The callable returned by subscribe removes the subscriber."""
        recorder = InMemoryEventRecorder()
        bus = EventBus()
        unsubscribe = bus.subscribe(recorder)
        unsubscribe()

        await bus.publish(WorkflowEvent(type=WorkflowEventType.WORKFLOW_STARTED, workflow_id="wf-1"))

        assert recorder.events == []
        assert bus.subscriber_count == 0


class TestWorkflowEventEmitter:
    """Lifecycle vocabulary."""

    @pytest.mark.asyncio
    async def test_emitter_payloads(self):
        """Emitted events carry workflow id, phase and data."""
        recorder = InMemoryEventRecorder()
        emitter = WorkflowEventEmitter(EventBus([recorder]), "wf-1")

        await emitter.workflow_started("deploy")
        await emitter.phase_started(WorkflowPhase.DEPLOYMENT)
        await emitter.agent_spawned(WorkflowPhase.DEPLOYMENT, "devops", "agent-1")
        await emitter.phase_failed(WorkflowPhase.DEPLOYMENT, reason="Smoke tests failed, rollback executed")

        started, phase, spawned, failed = recorder.events
        assert started.data == {"type": "deploy"}
        assert started.phase is None
        assert phase.phase == WorkflowPhase.DEPLOYMENT
        assert spawned.data == {"agentType": "devops", "agentId": "agent-1"}
        assert failed.type == WorkflowEventType.PHASE_FAILED
        assert failed.data["reason"] == "Smoke tests failed, rollback executed"
        assert {e.workflow_id for e in recorder.events} == {"wf-1"}

    @pytest.mark.asyncio
    async def test_orchestrator_event_order(self, orchestrator, recorder):
        """A deploy workflow emits events in lifecycle order."""
        result = await orchestrator.execute_task(make_task("deploy"))

        assert recorder.types(result.workflow_state.id) == [
            "workflow.started",
            "workflow.phase.started",
            "workflow.agent.spawned",
            "workflow.agent.completed",
            "workflow.phase.completed",
            "workflow.completed",
        ]


class TestLoggingSubscriber:
    """Structured log lines."""

    def test_log_line_format(self, caplog):
        """Events are logged as [Workflow id] type: json."""
        subscriber = LoggingSubscriber(logging.getLogger("conductor.test_events"))
        event = WorkflowEvent(
            type=WorkflowEventType.PHASE_STARTED,
            workflow_id="wf-1",
            phase=WorkflowPhase.QA,
            data={"phase": "qa"},
        )

        with caplog.at_level(logging.INFO, logger="conductor.test_events"):
            subscriber(event)

        assert '[Workflow wf-1] workflow.phase.started: {"phase": "qa"}' in caplog.text
