"""
REST API for booking_planner.

It exposes the following endpoints:
- **GET /health**          - liveness probe for health checks.
- **POST /sessions**       - create a new session, returns a session ID.
- **GET /sessions**        - list the sessions of a user.
- **GET /sessions/{id}**   - one session with its full history.
- **POST /agent**          - multi-turn interaction: {"message": "...", "session_id": "..."}
"""

import logging
from typing import (
    List,
    Optional,
)

from fastapi import (
    FastAPI,
    HTTPException,
)

from booking_planner.agent.runner import Runner
from booking_planner.api.models import (
    MessageRequest,
    MessageResponse,
    SessionRequest,
    SessionResponse,
)
from booking_planner.config import settings
from booking_planner.core.errors import (
    RouterError,
    SessionBusy,
    StepLimitExceeded,
    UnknownSession,
)
from booking_planner.core.schema import (
    Session,
    TextEvent,
)

logger = logging.getLogger(__name__)


def _status_for(exc: RouterError) -> int:
    if isinstance(exc, UnknownSession):
        return 404
    if isinstance(exc, SessionBusy):
        return 409
    if isinstance(exc, StepLimitExceeded):
        return 422
    return 400


def create_app(runner: Runner) -> FastAPI:
    """Build the FastAPI application serving *runner*."""
    app = FastAPI(
        title="Booking Planner API", version="0.1.0", description="Multi-agent booking router API"
    )
    store = runner.session_store

    # -----------------------------------------------------------------------
    # Routes
    # -----------------------------------------------------------------------
    @app.get("/health", summary="Health check")
    async def health() -> dict[str, str]:
        """Return a simple liveness payload."""
        return {"status": "ok"}

    @app.post("/sessions", response_model=SessionResponse, summary="Create a new session")
    def create_session(req: Optional[SessionRequest] = None) -> SessionResponse:
        """Create a new conversation session."""
        user_id = (req.user_id if req else None) or settings.USER_ID
        return SessionResponse(session_id=store.create(runner.app_name, user_id))

    @app.get("/sessions", response_model=List[str], summary="List sessions")
    def list_sessions(user_id: Optional[str] = None) -> List[str]:
        """List session IDs of this application, optionally for one user."""
        return store.list_sessions(runner.app_name, user_id)

    @app.get("/sessions/{session_id}", response_model=Session, summary="Session history")
    def get_session(session_id: str) -> Session:
        """Return one session with all its turns."""
        try:
            session = store.get(session_id)
        except UnknownSession as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return session

    @app.post("/agent", response_model=MessageResponse, summary="Process a message")
    def agent_endpoint(req: MessageRequest) -> MessageResponse:
        """Run one user message through the coordinator."""
        user_id = req.user_id or settings.USER_ID
        session_id = req.session_id or store.create(runner.app_name, user_id)

        try:
            events = list(runner.run(user_id, session_id, req.message))
        except RouterError as exc:
            logger.warning("Agent run failed: %s", exc)
            raise HTTPException(status_code=_status_for(exc), detail=str(exc)) from exc

        reply = "\n".join(e.text for e in events if isinstance(e, TextEvent))
        return MessageResponse(session_id=session_id, reply=reply, events=events)

    return app


# ---------------------------------------------------------------------------
# Public helper to launch the API (imported by main.py)
# ---------------------------------------------------------------------------
def run_api(
    runner: Runner, host: str = "0.0.0.0", port: int = 8000, log_level: str | None = None
) -> None:
    """Start a uvicorn server hosting the app for *runner*.

    Parameters
    ----------
    runner:
        The application to serve.
    host, port:
        Bind address for the HTTP server.
    log_level:
        Logging level to use (default from settings if not provided).
    """

    # Lazy import - keeps uvicorn an optional dependency at pkg-import time
    import uvicorn  # pylint: disable=import-outside-toplevel

    if log_level is None:  # Use the default from settings if not provided
        log_level = settings.LOG_LEVEL

    logger.info("Starting booking planner API at %s:%d (log_level=%s)", host, port, log_level)
    uvicorn.run(create_app(runner), host=host, port=port, log_level=log_level)
