"""
Session Routes

Session status, Frappe connection and reset.
"""

import logging

from fastapi import APIRouter, HTTPException, status

from erpchat.database.demo import SUGGESTED_QUESTIONS
from erpchat.models.api import SessionStatusResponse
from erpchat.models.chat import ConnectionOutcome, SessionConfig

logger = logging.getLogger(__name__)

router = APIRouter()


def _status(session) -> SessionStatusResponse:
    return SessionStatusResponse(
        mode="connected" if session.is_connected else "demo",
        url=session.config.url if session.config else None,
        table_count=len(session.directory),
        memory=list(session.memory),
        message_count=len(session.messages),
        is_busy=session.is_busy,
        suggested_questions=list(SUGGESTED_QUESTIONS),
    )


@router.get("/session", response_model=SessionStatusResponse)
async def get_session_status() -> SessionStatusResponse:
    from erpchat.api.main import get_session

    return _status(get_session())


@router.post("/session/connect", response_model=ConnectionOutcome)
async def connect(config: SessionConfig) -> ConnectionOutcome:
    """
    Connect the session to a Frappe site.

    Raises:
        HTTPException: 400 if the credentials are rejected
    """
    from erpchat.api.main import get_session

    outcome = await get_session().connect(config)
    if not outcome.success:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=outcome.message)
    return outcome


@router.post("/session/reset", response_model=SessionStatusResponse)
async def reset() -> SessionStatusResponse:
    """Clear history, connection and memory."""
    from erpchat.api.main import get_session

    session = get_session()
    session.reset()
    return _status(session)
