"""Coordinator: an agent whose only job is picking which sub-agent owns a request."""

import logging

from booking_planner.agent.agent_loop import (
    Agent,
    RunContext,
)
from booking_planner.core.errors import ConfigurationError
from booking_planner.core.schema import (
    TextDecision,
    TextEvent,
)

logger = logging.getLogger(__name__)


class Coordinator(Agent):
    """
    Router agent with sub-agents and no tools.

    When the planner cannot name a single owner, the coordinator asks the user a clarifying
    question instead of guessing.  A plain answer from the planner is treated the same way, since a
    router has no business answering on its own.
    """

    router = True

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if len(self.tools):
            raise ConfigurationError(f"Coordinator '{self.name}' must not own tools.")
        if not self.sub_agents:
            raise ConfigurationError(f"Coordinator '{self.name}' needs at least one sub-agent.")

    def _on_text(self, decision: TextDecision, ctx: RunContext) -> TextEvent:
        logger.info("Coordinator '%s' did not route; asking the user instead", self.name)
        return TextEvent(
            author=self.name,
            invocation_id=ctx.invocation_id,
            text=decision.text,
            clarification=True,
        )
