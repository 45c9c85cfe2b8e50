"""
Export Routes

Download the chat log or one chart's data as CSV or JSON.
"""

from typing import Literal

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import Response

from erpchat.utils.export import (
    chart_filename,
    chart_to_csv,
    chart_to_json,
    chat_filename,
    chat_to_csv,
    chat_to_json,
)

router = APIRouter()

_MEDIA_TYPES = {"csv": "text/csv", "json": "application/json"}


def _download(content: str, filename: str, fmt: str) -> Response:
    return Response(
        content=content,
        media_type=_MEDIA_TYPES[fmt],
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/export/chat")
async def export_chat(format: Literal["csv", "json"] = "csv") -> Response:
    from erpchat.api.main import get_session

    messages = [m for m in get_session().messages if not m.is_thinking]
    content = chat_to_csv(messages) if format == "csv" else chat_to_json(messages)
    return _download(content, chat_filename(format), format)


@router.get("/export/chart/{message_id}")
async def export_chart(message_id: str, format: Literal["csv", "json"] = "csv") -> Response:
    """
    Raises:
        HTTPException: 404 if the message has no chart, 400 if the chart is empty
    """
    from erpchat.api.main import get_session

    message = next((m for m in get_session().messages if m.id == message_id), None)
    if message is None or message.visualization is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No chart found for message {message_id}",
        )
    chart = message.visualization
    try:
        content = chart_to_csv(chart) if format == "csv" else chart_to_json(chart)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return _download(content, chart_filename(chart, format), format)
