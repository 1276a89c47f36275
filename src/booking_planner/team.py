"""
The booking team: a ``Coordinator`` routing to ``Booker`` (owns the booking tools) and ``Info``.

``build_runner`` is what the CLI and the HTTP API use to get a ready-to-run application.
"""

from booking_planner.agent.agent_loop import Agent
from booking_planner.agent.coordinator import Coordinator
from booking_planner.agent.planner_interface import (
    BasePlanner,
    load_planner,
)
from booking_planner.agent.runner import Runner
from booking_planner.config import (
    Settings,
    settings,
)
from booking_planner.memory.session_store import InMemorySessionStore
from booking_planner.tools.booking import booking_tools

COORDINATOR_INSTRUCTION = (
    "You are an assistant. Delegate booking tasks to Booker and info requests to Info."
)


def build_team(planner: BasePlanner, max_steps: int | None = None) -> Coordinator:
    """Create the coordinator with its two sub-agents, all sharing *planner*."""
    booker = Agent(
        name="Booker",
        description="Handles flight and hotel bookings. Use your tools for any booking request.",
        planner=planner,
        tools=booking_tools(),
        max_steps=max_steps,
    )
    info = Agent(
        name="Info",
        description="Provides general information and answers questions.",
        planner=planner,
        max_steps=max_steps,
    )
    return Coordinator(
        name="Coordinator",
        description="Main coordinator.",
        planner=planner,
        instruction=COORDINATOR_INSTRUCTION,
        sub_agents=[booker, info],
        max_steps=max_steps,
    )


def build_runner(
    planner: BasePlanner | None = None,
    session_store: InMemorySessionStore | None = None,
    config: Settings | None = None,
) -> Runner:
    """
    Wire planner, team and session store into a :class:`Runner`.

    Raises ``ConfigurationError`` when no planner is given and the configured one cannot be built.
    """
    config = config or settings
    planner = planner or load_planner(config=config)
    session_store = session_store or InMemorySessionStore(log_path=config.TURN_LOG_PATH)
    return Runner(
        app_name=config.APP_NAME,
        agent=build_team(planner, max_steps=config.MAX_TOOL_STEPS),
        session_store=session_store,
    )
