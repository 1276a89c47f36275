"""
Pydantic models for booking_planner API requests and responses.
This module defines the request and response schemas used by the REST API.
"""

from typing import (
    List,
    Optional,
)

from pydantic import (
    BaseModel,
    Field,
)

from booking_planner.core.schema import RunEvent


# ---------------------------------------------------------------------------
# Pydantic request / response schema
# ---------------------------------------------------------------------------
class SessionRequest(BaseModel):
    """Request to create a new session."""

    user_id: Optional[str] = Field(None, description="Owner of the session (default from env)")


class SessionResponse(BaseModel):
    """Response with session information."""

    session_id: str


class MessageRequest(BaseModel):
    """Incoming user message."""

    message: str = Field(..., min_length=1, description="User message for the coordinator")
    session_id: Optional[str] = Field(None, description="Session ID for conversation context")
    user_id: Optional[str] = Field(None, description="Owner of the session (default from env)")


class MessageResponse(BaseModel):
    """API response returned to the caller."""

    session_id: str
    reply: str
    events: List[RunEvent] = Field(default_factory=list)
