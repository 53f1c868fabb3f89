"""
Pydantic models for Archie API requests and responses.
This module defines the request and response schemas used by the Archie API.
"""

from typing import (
    List,
    Optional,
)

from pydantic import (
    BaseModel,
    Field,
)

from archie.core.schema import AgentEvent


# ---------------------------------------------------------------------------
# Pydantic request / response schema
# ---------------------------------------------------------------------------
class SessionResponse(BaseModel):
    """Response with session information."""

    session_id: str


class MessageRequest(BaseModel):
    """Incoming user message."""

    message: str = Field(..., min_length=1, description="User message for Archie")
    session_id: Optional[str] = Field(None, description="Session ID for conversation context")


class MessageResponse(BaseModel):
    """API response returned to the caller."""

    reply: str
    events: List[AgentEvent] = Field(default_factory=list)
    session_id: str


class CancelResponse(BaseModel):
    """Outcome of a cancel request."""

    session_id: str
    cancelled: bool
