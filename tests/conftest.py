"""
Shared fixtures: in-memory collaborators and an orchestrator wired to them.
"""

import pytest

from conductor.agents import AgentType, InMemoryAgentGateway, InMemoryContextStore, ScriptedExecutor
from conductor.core.config import Settings
from conductor.orchestrator import EventBus, InMemoryEventRecorder, WorkflowOrchestrator
from tests.factories import DEPLOYED, IMPLEMENTED, PLAN, QA_PASS


@pytest.fixture
def gateway():
    return InMemoryAgentGateway()


@pytest.fixture
def contexts():
    return InMemoryContextStore()


@pytest.fixture
def recorder():
    return InMemoryEventRecorder()


@pytest.fixture
def executors():
    """Happy-path script per role; tests replace the ones they need."""
    return {
        AgentType.PLANNER: ScriptedExecutor([PLAN], repeat_last=True),
        AgentType.DEV: ScriptedExecutor([IMPLEMENTED], repeat_last=True),
        AgentType.QA: ScriptedExecutor([QA_PASS], repeat_last=True),
        AgentType.DEVOPS: ScriptedExecutor([DEPLOYED], repeat_last=True),
    }


@pytest.fixture
def make_orchestrator(gateway, contexts, recorder):
    def factory(executors, settings: Settings = None, **kwargs) -> WorkflowOrchestrator:
        return WorkflowOrchestrator(
            gateway,
            executors,
            contexts,
            settings=settings,
            event_bus=EventBus([recorder]),
            **kwargs,
        )
    return factory


@pytest.fixture
def orchestrator(make_orchestrator, executors):
    return make_orchestrator(executors)
