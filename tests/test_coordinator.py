"""Routing behaviour of the coordinator and the end-to-end booking scenarios."""

import pytest
from conftest import (
    ScriptedPlanner,
    hotel_script,
)

from booking_planner.agent.agent_loop import Agent
from booking_planner.agent.coordinator import Coordinator
from booking_planner.agent.runner import Runner
from booking_planner.core.errors import (
    ConfigurationError,
    StepLimitExceeded,
    UnknownTool,
)
from booking_planner.core.schema import (
    ClarificationDecision,
    DelegationDecision,
    DelegationEvent,
    TextDecision,
    TextEvent,
    ToolCall,
    ToolCallDecision,
    ToolCallEvent,
    Turn,
)
from booking_planner.team import build_team
from booking_planner.tools.booking import booking_tools


def test_booking_request_is_routed_to_booker(planner: ScriptedPlanner) -> None:
    """An unambiguous booking request produces a delegation naming Booker, not Info."""

    for agent, decisions in hotel_script().items():
        planner.push(agent, *decisions)
    team = build_team(planner)

    events = list(team.respond([], Turn.user("book a hotel in London on 2025-11-14")))

    delegations = [e for e in events if isinstance(e, DelegationEvent)]
    assert [d.target for d in delegations] == ["Booker"]
    assert planner.calls_for("Info") == []


def test_router_prompt_lists_sub_agents(planner: ScriptedPlanner) -> None:
    planner.push("Coordinator", DelegationDecision(agent="Info"))
    planner.push("Info", TextDecision(text="London is the capital of the UK."))

    list(build_team(planner).respond([], Turn.user("what is london?")))

    context = planner.calls_for("Coordinator")[0]
    assert context.router
    assert context.tools == []
    assert [(a.name, a.description) for a in context.sub_agents] == [
        ("Booker", "Handles flight and hotel bookings. Use your tools for any booking request."),
        ("Info", "Provides general information and answers questions."),
    ]
    assert "Delegate booking tasks to Booker" in context.instruction


def test_ambiguous_request_asks_for_clarification(planner: ScriptedPlanner) -> None:
    """The coordinator surfaces ambiguity instead of guessing an owner."""

    planner.push(
        "Coordinator",
        ClarificationDecision(
            question="Would you like me to book a trip to London or tell you about it?",
            candidates=["Booker", "Info"],
        ),
    )

    (event,) = list(build_team(planner).respond([], Turn.user("i want to visit in london?")))

    assert isinstance(event, TextEvent)
    assert event.clarification
    assert event.author == "Coordinator"
    assert planner.calls_for("Booker") == [] and planner.calls_for("Info") == []


def test_plain_answer_from_router_is_a_clarification(planner: ScriptedPlanner) -> None:
    planner.push("Coordinator", TextDecision(text="What dates are you thinking of?"))

    (event,) = list(build_team(planner).respond([], Turn.user("london")))

    assert event.clarification
    assert event.text == "What dates are you thinking of?"


def test_router_owns_no_tools(planner: ScriptedPlanner) -> None:
    planner.push("Coordinator", ToolCallDecision(call=ToolCall(name="bookHotel")))

    with pytest.raises(UnknownTool):
        list(build_team(planner).respond([], Turn.user("book")))


def test_coordinator_configuration(planner: ScriptedPlanner) -> None:
    with pytest.raises(ConfigurationError):
        Coordinator(name="Lonely", description="", planner=planner)
    with pytest.raises(ConfigurationError):
        Coordinator(
            name="Busy",
            description="",
            planner=planner,
            tools=booking_tools(),
            sub_agents=[Agent(name="Info", description="", planner=planner)],
        )


# ---------------------------------------------------------------------------
# End-to-end through the runner
# ---------------------------------------------------------------------------
def test_hotel_booking_end_to_end(
    planner: ScriptedPlanner, runner: Runner, session_id: str
) -> None:
    for agent, decisions in hotel_script().items():
        planner.push(agent, *decisions)

    events = list(runner.run("user1234", session_id, "book a hotel in London on 2025-11-14"))

    tool_events = [e for e in events if isinstance(e, ToolCallEvent)]
    assert len(tool_events) == 1
    assert tool_events[0].tool == "bookHotel"
    assert tool_events[0].args == {"location": "London", "date": "2025-11-14"}

    tool_index = events.index(tool_events[0])
    later_text = [e for e in events[tool_index + 1 :] if isinstance(e, TextEvent)]
    assert later_text and "CONF_HOTEL_98765" in later_text[0].text


def test_scripted_demo_conversation(
    planner: ScriptedPlanner, runner: Runner, session_id: str
) -> None:
    """The three demo prompts build on each other through the session history."""

    planner.push(
        "Coordinator",
        ClarificationDecision(question="When would you like to visit London?"),
        ClarificationDecision(question="Shall I book something for 2025-11-14?"),
        DelegationDecision(agent="Booker"),
    )
    planner.push(
        "Booker",
        ToolCallDecision(
            call=ToolCall(name="bookHotel", args={"location": "London", "date": "2025-11-14"})
        ),
        TextDecision(text="Hotel booked in London on 2025-11-14. Confirmation: CONF_HOTEL_98765"),
    )

    runner.run_text("user1234", session_id, "i want to visit in london?")
    runner.run_text("user1234", session_id, "on 2025-11-14")
    texts = runner.run_text("user1234", session_id, "also book a hotel for me ")

    assert "CONF_HOTEL_98765" in texts[-1]
    booker_context = planner.calls_for("Booker")[0]
    assert [t.text for t in booker_context.history if t.author == "user"] == [
        "i want to visit in london?",
        "on 2025-11-14",
    ]
    assert booker_context.new_turn.text == "also book a hotel for me "


def test_step_limit_end_to_end(planner: ScriptedPlanner, runner: Runner, session_id: str) -> None:
    """A tool re-invoked forever ends with StepLimitExceeded, recorded in the session."""

    planner.push("Coordinator", DelegationDecision(agent="Booker"))
    planner.push(
        "Booker",
        *[
            ToolCallDecision(
                call=ToolCall(name="bookHotel", args={"location": "London", "date": "2025-11-14"})
            )
        ]
        * 20,
    )

    with pytest.raises(StepLimitExceeded):
        list(runner.run("user1234", session_id, "book a hotel in London on 2025-11-14"))

    history = runner.session_store.history(session_id)
    # user turn, delegation, 3 tool calls (runner fixture allows 3 steps), error diagnostic
    assert len(history) == 6
    assert "step_limit_exceeded" in history[-1].text
