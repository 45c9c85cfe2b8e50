"""
Health Check Routes

FastAPI endpoints for service health and readiness checks.
"""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from erpchat import __version__
from erpchat.models.api import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health() -> HealthResponse:
    """Basic liveness check. Always succeeds while the process is up."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=datetime.now(UTC).isoformat(),
    )


@router.get("/ready", status_code=status.HTTP_200_OK)
async def readiness() -> JSONResponse:
    """
    Readiness check.

    Returns:
        200 OK once the conversation session is loaded
        503 Service Unavailable otherwise
    """
    from erpchat.api.main import app_state

    session = app_state.get("session")
    checks = {"session": session is not None}
    if not checks["session"]:
        logger.warning("Readiness check: FAILED (session not initialized)")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "checks": checks},
        )
    checks["connected"] = session.is_connected
    return JSONResponse(status_code=status.HTTP_200_OK, content={"status": "ready", "checks": checks})
