"""
Chat Routes

Submit questions, read the chat log, and retry failed turns.
"""

import logging

from fastapi import APIRouter, HTTPException, status

from erpchat.models.api import ChatRequest
from erpchat.models.chat import Message

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/chat", response_model=Message)
async def chat(chat_request: ChatRequest) -> Message:
    """
    Run one turn and return the terminal bot message.

    The message is an answer or an error message; pipeline failures are
    reported in the message, not as HTTP errors.

    Raises:
        HTTPException: 400 for blank input, 409 if a turn is already running
            or the session was reset before the turn finished
    """
    from erpchat.api.main import get_session

    session = get_session()
    if not chat_request.message.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Message is blank")

    logger.info(f"Chat request received: {chat_request.message[:100]}")
    result = await session.submit(chat_request.message)
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="The session was reset before the request finished",
        )
    return result


@router.get("/messages", response_model=list[Message])
async def list_messages() -> list[Message]:
    """Return the chat log in order."""
    from erpchat.api.main import get_session

    return get_session().messages


@router.post("/messages/{message_id}/retry", response_model=Message)
async def retry_message(message_id: str) -> Message:
    """Re-run the question behind a failed message."""
    from erpchat.api.main import get_session

    session = get_session()
    try:
        result = await session.retry(message_id)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="The session was reset before the request finished",
        )
    return result
