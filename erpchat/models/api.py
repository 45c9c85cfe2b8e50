"""
API Request/Response Models

Pydantic models for FastAPI endpoints.
"""

from typing import Literal

from pydantic import BaseModel, Field

from erpchat.models.schema import FieldDescriptor


class HealthResponse(BaseModel):
    """Liveness check response."""

    status: str = Field(..., description="Service status")
    version: str = Field(..., description="Application version")
    timestamp: str = Field(..., description="ISO-8601 check time")


class ChatRequest(BaseModel):
    """Request model for the chat endpoint."""

    message: str = Field(..., min_length=1, description="User's natural language question")

    model_config = {
        "json_schema_extra": {"example": {"message": "Top 5 customers by revenue"}}
    }


class SessionStatusResponse(BaseModel):
    """Current mode, connection and memory of the session."""

    mode: Literal["demo", "connected"]
    url: str | None = Field(None, description="Connected Frappe site")
    table_count: int = Field(..., description="DocTypes in the schema directory")
    memory: list[str] = Field(default_factory=list)
    message_count: int = Field(..., description="Entries in the chat log")
    is_busy: bool = Field(..., description="Whether a turn is running")
    suggested_questions: list[str] = Field(default_factory=list)


class MemoryRequest(BaseModel):
    """A long-term memory fact to add."""

    fact: str = Field(..., min_length=1, description="Free-text fact or rule")


class MemoryResponse(BaseModel):
    memory: list[str]


class SchemaTable(BaseModel):
    """One DocType in the schema directory."""

    name: str
    loaded: bool = Field(..., description="Whether field definitions have been fetched")
    fields: list[FieldDescriptor] = Field(default_factory=list)


class SchemaResponse(BaseModel):
    mode: Literal["demo", "connected"]
    tables: list[SchemaTable]
