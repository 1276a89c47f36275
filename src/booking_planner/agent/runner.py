"""Runs an agent tree against a session store for one application."""

import logging
import threading
from typing import (
    Dict,
    Iterator,
    List,
)

from booking_planner.agent.agent_loop import (
    Agent,
    RunContext,
)
from booking_planner.core.errors import (
    SessionBusy,
    UnknownSession,
)
from booking_planner.core.schema import (
    RunEvent,
    TextEvent,
    Turn,
)
from booking_planner.memory.session_store import InMemorySessionStore

logger = logging.getLogger(__name__)


class Runner:
    """
    Binds a root agent to a session store.

    Every event produced by the agent is appended to the session before it is handed to the
    caller, so the stored history always matches what the caller has seen.  Only one run may be
    active per session at a time.
    """

    def __init__(self, app_name: str, agent: Agent, session_store: InMemorySessionStore):
        self.app_name = app_name
        self.agent = agent
        self.session_store = session_store
        self._run_locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _run_lock(self, session_id: str) -> threading.Lock:
        with self._guard:
            return self._run_locks.setdefault(session_id, threading.Lock())

    def run(
        self,
        user_id: str,
        session_id: str,
        prompt: str,
        cancel_event: threading.Event | None = None,
    ) -> Iterator[RunEvent]:
        """
        Submit *prompt* to the root agent and stream the resulting events.

        The run starts when the iterator is first advanced; errors surface from iteration.

        Raises
        ------
        UnknownSession
            If the session does not exist or belongs to another application or user.
        SessionBusy
            If another run on the same session has not finished yet.
        """
        session = self.session_store.get(session_id)
        if session.app_name != self.app_name or session.user_id != user_id:
            raise UnknownSession(
                f"Session '{session_id}' does not belong to {self.app_name}/{user_id}."
            )

        lock = self._run_lock(session_id)
        if not lock.acquire(blocking=False):
            raise SessionBusy(f"Session '{session_id}' already has a run in progress.")
        try:
            history = self.session_store.history(session_id)
            new_turn = Turn.user(prompt)
            self.session_store.append(session_id, new_turn)

            ctx = RunContext(cancel_event=cancel_event)
            logger.info("Run %s started on session %s", ctx.invocation_id, session_id)
            for event in self.agent.respond(history, new_turn, ctx):
                self.session_store.append(session_id, event.to_turn())
                yield event
            logger.info("Run %s finished", ctx.invocation_id)
        finally:
            lock.release()

    def run_text(self, user_id: str, session_id: str, prompt: str) -> List[str]:
        """Run *prompt* to completion and return the texts of its text events."""
        return [
            event.text
            for event in self.run(user_id, session_id, prompt)
            if isinstance(event, TextEvent)
        ]
