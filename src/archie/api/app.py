"""
HTTP API for Archie.

Each session owns one :class:`~archie.agent.agent_loop.Agent` (and so one conversation).
It exposes the following endpoints:
- **GET /health**  - liveness probe for health checks.
- **POST /sessions** - create a new session, returns a session ID.
- **GET /sessions** - list all active sessions.
- **POST /agent**   - multi-turn interaction: {"message": "...", "session_id": "..."}
- **POST /sessions/{id}/cancel** - cancel the request in flight for a session.
- **POST /sessions/{id}/reset** - clear a session's conversation.
"""

import logging
import uuid
from typing import (
    Dict,
    List,
    Optional,
)

from fastapi import (
    FastAPI,
    HTTPException,
)

from archie.agent.agent_loop import (
    Agent,
    AgentBusyError,
)
from archie.agent.planner_interface import load_planner
from archie.api.models import (
    CancelResponse,
    MessageRequest,
    MessageResponse,
    SessionResponse,
)
from archie.common import (
    AnsiColors,
    colored_print,
)
from archie.config import settings
from archie.core.schema import (
    AgentEvent,
    ErrorEvent,
    ResponseEvent,
)
from archie.tools.sandbox import Workspace

logger = logging.getLogger(__name__)

# Session storage (in-memory)
sessions: Dict[str, Agent] = {}

app = FastAPI(title="Archie API", version="0.1.0", description="Archie file assistant API")


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------
def create_agent() -> Agent:
    """Build an agent from the current settings."""
    return Agent(
        planner=load_planner(),
        workspace=Workspace.from_settings(settings),
        max_iterations=settings.MAX_ITERATIONS,
    )


def get_or_create_session(session_id: Optional[str] = None) -> str:
    """Get existing session or create a new one."""
    if session_id and session_id in sessions:
        return session_id

    new_session_id = str(uuid.uuid4())
    sessions[new_session_id] = create_agent()
    logger.info("Created session %s", new_session_id)
    return new_session_id


def _get_agent(session_id: str) -> Agent:
    agent = sessions.get(session_id)
    if agent is None:
        raise HTTPException(status_code=404, detail=f"Unknown session '{session_id}'")
    return agent


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@app.get("/health", summary="Health check")
async def health() -> dict[str, str]:
    """Return a simple liveness payload."""
    return {"status": "ok"}


@app.post("/sessions", response_model=SessionResponse, summary="Create a new session")
async def create_session() -> SessionResponse:
    """Create a new conversation session."""
    session_id = get_or_create_session()
    return SessionResponse(session_id=session_id)


@app.get("/sessions", response_model=List[str], summary="List active sessions")
async def list_sessions() -> List[str]:
    """List all active session IDs."""
    return list(sessions.keys())


@app.post("/agent", response_model=MessageResponse, summary="Process a message")
async def agent_endpoint(req: MessageRequest) -> MessageResponse:
    """Run the agent on a user message and return every event plus the final reply."""
    session_id = get_or_create_session(req.session_id)
    agent = sessions[session_id]

    events: List[AgentEvent] = []
    reply = ""
    try:
        async for event in agent.stream(req.message):
            events.append(event)
            if isinstance(event, ResponseEvent):
                reply = event.content
            elif isinstance(event, ErrorEvent):
                reply = f"Error: {event.message}"
    except AgentBusyError as exc:
        logger.warning("Session %s is busy", session_id)
        raise HTTPException(status_code=409, detail=str(exc)) from exc

    return MessageResponse(reply=reply, events=events, session_id=session_id)


@app.post(
    "/sessions/{session_id}/cancel", response_model=CancelResponse, summary="Cancel a request"
)
async def cancel_session(session_id: str) -> CancelResponse:
    """Cancel the request in flight for *session_id* (``cancelled`` is false if none)."""
    agent = _get_agent(session_id)
    return CancelResponse(session_id=session_id, cancelled=agent.cancel())


@app.post("/sessions/{session_id}/reset", response_model=SessionResponse, summary="Reset a session")
async def reset_session(session_id: str) -> SessionResponse:
    """Clear the conversation of *session_id*."""
    agent = _get_agent(session_id)
    try:
        agent.clear_history()
    except AgentBusyError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return SessionResponse(session_id=session_id)


# ---------------------------------------------------------------------------
# Public helper to launch the API (imported by main.py)
# ---------------------------------------------------------------------------
def run_api(
    host: str = "0.0.0.0", port: int = 8000, reload: bool = False, log_level: str | None = None
) -> None:
    """Start a uvicorn server hosting *app*.

    Parameters
    ----------
    host, port:
        Bind address for the HTTP server.
    reload:
        If *True*, enable auto-reload.
    log_level:
        Logging level to use (default from settings if not provided).
    """

    # Lazy import - keeps uvicorn an optional dependency at pkg-import time
    import uvicorn  # pylint: disable=import-outside-toplevel

    if log_level is None:  # Use the default from settings if not provided
        log_level = settings.LOG_LEVEL

    logger.info(
        "Starting Archie API at %s:%d (reload=%s, log_level=%s)", host, port, reload, log_level
    )
    logger.debug("API settings: %s", settings.model_dump())

    colored_print(f"Archie API is running at http://localhost:{port}.", AnsiColors.GREEN)
    colored_print(f"Visit http://localhost:{port}/docs for API documentation.", AnsiColors.BLUE)
    uvicorn.run(
        "archie.api.app:app",
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )


# ---------------------------------------------------------------------------
# `python -m archie.api.app` helper
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    run_api(reload=True)
