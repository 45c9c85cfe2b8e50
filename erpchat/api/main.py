"""
FastAPI Application

HTTP surface over one ERPChat conversation session:
- Lifespan loads the persisted session and re-discovers DocTypes
- CORS middleware for frontend integration
- Chat, session, memory, schema and export endpoints

Usage:
    uvicorn erpchat.api.main:app --reload --port 8000
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from erpchat import __version__
from erpchat.api.routes import chat, export, health, memory, schema, session
from erpchat.config import get_settings
from erpchat.conversations.store import JsonFileSessionStore
from erpchat.pipeline.session import ConversationSession, SessionBusyError

logger = logging.getLogger(__name__)

# Global state for the conversation session
app_state = {
    "session": None,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Load the persisted session on startup."""
    config = get_settings()
    logger.info(f"Starting {config.app_name} API server...")

    store = JsonFileSessionStore(config.store.path)
    conversation = ConversationSession(store=store)
    await conversation.restore()
    app_state["session"] = conversation

    logger.info(
        f"{config.app_name} API server started",
        extra={"connected": conversation.is_connected, "store": str(config.store.path)},
    )
    try:
        yield
    finally:
        app_state["session"] = None
        logger.info(f"{config.app_name} API server shut down complete")


app = FastAPI(
    title="ERPChat API",
    description="Conversational analytics over Frappe/ERPNext data",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SessionBusyError)
async def busy_error_handler(request: Request, exc: SessionBusyError) -> JSONResponse:
    """Reject a question while another turn is running."""
    logger.warning(f"Rejected concurrent request: {exc}")
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"error": "session_busy", "message": str(exc)},
    )


app.include_router(health.router, prefix="/api/v1", tags=["health"])
app.include_router(chat.router, prefix="/api/v1", tags=["chat"])
app.include_router(session.router, prefix="/api/v1", tags=["session"])
app.include_router(memory.router, prefix="/api/v1", tags=["memory"])
app.include_router(schema.router, prefix="/api/v1", tags=["schema"])
app.include_router(export.router, prefix="/api/v1", tags=["export"])


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with API information."""
    return {
        "name": "ERPChat API",
        "version": __version__,
        "description": "Conversational analytics over Frappe/ERPNext data",
        "docs": "/docs",
    }


def get_session() -> ConversationSession:
    """Get the loaded conversation session."""
    if app_state["session"] is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Session not initialized",
        )
    return app_state["session"]
