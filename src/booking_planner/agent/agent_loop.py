"""
Agent loop for booking_planner.

An :class:`Agent` binds a planner, an instruction, a tool registry and a list of sub-agents.  For
each user turn it repeatedly asks the planner for the next decision and acts on it:

* **tool call**  - invoke the tool, feed the result back, ask again (bounded by ``max_steps``)
* **delegation** - hand the same turn to a direct child and relay its events unchanged
* **text**       - emit the answer and stop
* **clarify**    - emit the clarifying question and stop

Agents form a tree; :meth:`Agent.add_sub_agent` rejects anything that would create a cycle or give
an agent two parents.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import (
    dataclass,
    field,
)
from typing import (
    Iterable,
    Iterator,
    List,
)

from booking_planner.agent.planner_interface import BasePlanner
from booking_planner.agent.tool_executor import execute_tool
from booking_planner.config import settings
from booking_planner.core.errors import (
    AgentTreeError,
    ConfigurationError,
    StepLimitExceeded,
    UnknownSubAgent,
)
from booking_planner.core.schema import (
    AgentCard,
    ClarificationDecision,
    DelegationDecision,
    DelegationEvent,
    ErrorEvent,
    PromptContext,
    RunEvent,
    TextDecision,
    TextEvent,
    ToolCall,
    ToolCallDecision,
    ToolCallEvent,
    Turn,
)
from booking_planner.tools import ToolRegistry

logger = logging.getLogger(__name__)


@dataclass
class RunContext:
    """Per-run state shared by every agent taking part in one run."""

    invocation_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    cancel_event: threading.Event | None = None

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()


class Agent:
    """A unit combining instructions, tools and optional sub-agents."""

    router: bool = False

    def __init__(
        self,
        name: str,
        description: str,
        planner: BasePlanner,
        instruction: str = "",
        tools: ToolRegistry | None = None,
        sub_agents: Iterable["Agent"] = (),
        max_steps: int | None = None,
    ):
        if not name or not name.strip():
            raise ConfigurationError("Agent name must not be empty.")
        self.name = name
        self.description = description
        self.planner = planner
        self.instruction = instruction
        self.tools = tools if tools is not None else ToolRegistry()
        self.max_steps = settings.MAX_TOOL_STEPS if max_steps is None else max_steps
        if self.max_steps < 1:
            raise ConfigurationError(f"Agent '{name}' needs max_steps >= 1, got {self.max_steps}.")

        self.parent: Agent | None = None
        self.sub_agents: List[Agent] = []
        for sub_agent in sub_agents:
            self.add_sub_agent(sub_agent)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"

    # ------------------------------------------------------------------ #
    # Tree
    # ------------------------------------------------------------------ #
    def ancestors(self) -> Iterator["Agent"]:
        """Yield the parent, grand-parent, ... up to the root."""
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    @property
    def root_agent(self) -> "Agent":
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    def add_sub_agent(self, agent: "Agent") -> None:
        """
        Attach *agent* as a direct child.

        Raises
        ------
        AgentTreeError
            If *agent* is this agent or one of its ancestors, already has a parent, or shares its
            name with an existing child.
        """
        if agent is self or any(agent is a for a in self.ancestors()):
            raise AgentTreeError(f"Agent '{agent.name}' cannot be a sub-agent of its descendant.")
        if agent.parent is not None:
            raise AgentTreeError(
                f"Agent '{agent.name}' already belongs to '{agent.parent.name}'."
            )
        if any(child.name == agent.name for child in self.sub_agents):
            raise AgentTreeError(f"Agent '{self.name}' already has a sub-agent '{agent.name}'.")
        agent.parent = self
        self.sub_agents.append(agent)

    def get_sub_agent(self, name: str) -> "Agent":
        """Return the direct child called *name*."""
        for child in self.sub_agents:
            if child.name == name:
                return child
        raise UnknownSubAgent(f"Agent '{self.name}' has no sub-agent '{name}'.")

    def find_agent(self, name: str) -> "Agent | None":
        """Depth-first search of this subtree."""
        if self.name == name:
            return self
        for child in self.sub_agents:
            found = child.find_agent(name)
            if found is not None:
                return found
        return None

    # ------------------------------------------------------------------ #
    # Run
    # ------------------------------------------------------------------ #
    def _context(self, history: List[Turn], new_turn: Turn, scratch: List[Turn]) -> PromptContext:
        return PromptContext(
            agent_name=self.name,
            instruction=self.instruction,
            history=history,
            new_turn=new_turn,
            scratch=list(scratch),
            tools=self.tools.descriptors(),
            sub_agents=[AgentCard(name=a.name, description=a.description) for a in self.sub_agents],
            router=self.router,
        )

    def _call_tool(self, call: ToolCall, ctx: RunContext) -> ToolCallEvent:
        return execute_tool(self.tools, call, author=self.name, invocation_id=ctx.invocation_id)

    def _on_text(self, decision: TextDecision, ctx: RunContext) -> TextEvent:
        return TextEvent(author=self.name, invocation_id=ctx.invocation_id, text=decision.text)

    def respond(
        self, history: Iterable[Turn], new_turn: Turn, ctx: RunContext | None = None
    ) -> Iterator[RunEvent]:
        """
        Answer *new_turn* given the prior *history*.

        Returns a lazy, finite, non-restartable iterator of run events in production order.

        Raises
        ------
        StepLimitExceeded
            After emitting an ``ErrorEvent`` when the planner keeps calling tools.
        UnknownTool, UnknownSubAgent
            When the planner names a tool or agent this agent does not own.
        """
        ctx = ctx or RunContext()
        history = list(history)
        scratch: List[Turn] = []
        steps = 0

        while True:
            if ctx.cancelled:
                logger.info("Run %s cancelled in agent '%s'", ctx.invocation_id, self.name)
                return

            decision = self.planner.complete(self._context(history, new_turn, scratch))
            logger.debug("Agent '%s' decision: %s", self.name, decision)

            if isinstance(decision, ToolCallDecision):
                if steps >= self.max_steps:
                    error = StepLimitExceeded(self.name, self.max_steps)
                    logger.error("%s", error)
                    yield ErrorEvent(
                        author=self.name,
                        invocation_id=ctx.invocation_id,
                        code="step_limit_exceeded",
                        message=str(error),
                    )
                    raise error
                steps += 1
                event = self._call_tool(decision.call, ctx)
                scratch.append(event.to_turn())
                yield event
            elif isinstance(decision, DelegationDecision):
                child = self.get_sub_agent(decision.agent)
                logger.info("Agent '%s' delegates to '%s'", self.name, child.name)
                yield DelegationEvent(
                    author=self.name, invocation_id=ctx.invocation_id, target=child.name
                )
                if ctx.cancelled:
                    logger.info(
                        "Run %s cancelled before '%s' started", ctx.invocation_id, child.name
                    )
                    return
                yield from child.respond(history, new_turn, ctx)
                return
            elif isinstance(decision, TextDecision):
                yield self._on_text(decision, ctx)
                return
            elif isinstance(decision, ClarificationDecision):
                logger.info(
                    "Agent '%s' asks for clarification between %s", self.name, decision.candidates
                )
                yield TextEvent(
                    author=self.name,
                    invocation_id=ctx.invocation_id,
                    text=decision.question,
                    clarification=True,
                )
                return
            else:
                raise TypeError(f"Unsupported planner decision: {decision!r}")
