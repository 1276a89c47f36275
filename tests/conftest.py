"""Shared fixtures: a scripted planner standing in for the LLM."""

import os
from collections import (
    defaultdict,
    deque,
)
from typing import (
    Deque,
    Dict,
    Iterable,
    List,
)

# Keep the suite independent of a developer's .env / shell
os.environ.setdefault("PLANNER", "anthropic")
os.environ.setdefault("MAX_TOOL_STEPS", "8")

import pytest  # noqa: E402

from booking_planner.agent.planner_interface import BasePlanner  # noqa: E402
from booking_planner.agent.runner import Runner  # noqa: E402
from booking_planner.core.schema import (  # noqa: E402
    Decision,
    DelegationDecision,
    PromptContext,
    TextDecision,
    ToolCall,
    ToolCallDecision,
)
from booking_planner.memory.session_store import InMemorySessionStore  # noqa: E402
from booking_planner.team import build_team  # noqa: E402


class ScriptedPlanner(BasePlanner):
    """Returns pre-recorded decisions per agent name and records every prompt context."""

    def __init__(self, script: Dict[str, Iterable[Decision]] | None = None):
        self.queues: Dict[str, Deque[Decision]] = defaultdict(deque)
        self.contexts: List[PromptContext] = []
        for agent, decisions in (script or {}).items():
            self.queues[agent].extend(decisions)

    def push(self, agent: str, *decisions: Decision) -> None:
        self.queues[agent].extend(decisions)

    def calls_for(self, agent: str) -> List[PromptContext]:
        return [c for c in self.contexts if c.agent_name == agent]

    def complete(self, context: PromptContext) -> Decision:
        self.contexts.append(context)
        queue = self.queues[context.agent_name]
        if not queue:
            raise AssertionError(f"No scripted decision left for agent '{context.agent_name}'")
        return queue.popleft()


def hotel_script() -> Dict[str, List[Decision]]:
    """Coordinator routes to Booker, Booker books London and reports the confirmation."""
    return {
        "Coordinator": [DelegationDecision(agent="Booker")],
        "Booker": [
            ToolCallDecision(
                call=ToolCall(name="bookHotel", args={"location": "London", "date": "2025-11-14"})
            ),
            TextDecision(text="Your hotel in London is booked. Confirmation: CONF_HOTEL_98765"),
        ],
    }


@pytest.fixture
def planner() -> ScriptedPlanner:
    return ScriptedPlanner()


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def runner(planner: ScriptedPlanner, store: InMemorySessionStore) -> Runner:
    return Runner(
        app_name="booking_planner", agent=build_team(planner, max_steps=3), session_store=store
    )


@pytest.fixture
def session_id(runner: Runner) -> str:
    return runner.session_store.create(runner.app_name, "user1234")
