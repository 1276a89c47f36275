"""
In-memory session store with an optional JSONL audit trail.

Each session owns its own lock, so appends and reads on one session are serialised while different
sessions never wait on each other.  A store-level lock only guards the session map itself.
"""

import json
import logging
import threading
import uuid
from datetime import (
    datetime,
    timezone,
)
from pathlib import Path
from typing import (
    Dict,
    List,
)

from booking_planner.core.errors import UnknownSession
from booking_planner.core.schema import (
    Session,
    Turn,
)

logger = logging.getLogger(__name__)


class InMemorySessionStore:
    """Ordered conversation history per (app_name, user_id, session_id)."""

    def __init__(self, log_path: str | Path | None = None):
        self._sessions: Dict[str, Session] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._lock = threading.Lock()
        self._log_path = Path(log_path) if log_path else None
        self._log_lock = threading.Lock()
        if self._log_path is not None:
            self._log_path.parent.mkdir(parents=True, exist_ok=True)
            self._log_path.touch(exist_ok=True)

    def _entry(self, session_id: str) -> tuple[Session, threading.Lock]:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise UnknownSession(f"Session '{session_id}' does not exist.")
            return session, self._locks[session_id]

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #
    def create(self, app_name: str, user_id: str) -> str:
        """Create an empty session and return its freshly generated ID."""
        session_id = uuid.uuid4().hex
        with self._lock:
            self._sessions[session_id] = Session(app_name=app_name, user_id=user_id, id=session_id)
            self._locks[session_id] = threading.Lock()
        logger.info("Created session %s for %s/%s", session_id, app_name, user_id)
        return session_id

    def get(self, session_id: str) -> Session:
        """Return a snapshot of the session (later appends do not show up in it)."""
        session, lock = self._entry(session_id)
        with lock:
            return session.model_copy(update={"turns": list(session.turns)})

    def append(self, session_id: str, turn: Turn) -> None:
        """Append *turn* to the end of the session's history."""
        session, lock = self._entry(session_id)
        with lock:
            session.turns.append(turn)
            session.updated_at = datetime.now(timezone.utc)
        self._log(session_id, turn)

    def history(self, session_id: str) -> List[Turn]:
        """Return every turn appended so far, in append order."""
        session, lock = self._entry(session_id)
        with lock:
            return list(session.turns)

    def list_sessions(self, app_name: str, user_id: str | None = None) -> List[str]:
        """List the IDs of an application's sessions, optionally for one user."""
        with self._lock:
            return [
                s.id
                for s in self._sessions.values()
                if s.app_name == app_name and (user_id is None or s.user_id == user_id)
            ]

    # ------------------------------------------------------------------ #
    # Audit trail
    # ------------------------------------------------------------------ #
    def _log(self, session_id: str, turn: Turn) -> None:
        if self._log_path is None:
            return
        line = json.dumps({"session_id": session_id, "turn": turn.model_dump(mode="json")})
        with self._log_lock, self._log_path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")
