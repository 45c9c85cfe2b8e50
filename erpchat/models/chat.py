"""
Conversation Models

Messages, chart descriptors, insight results, memory context and the
Frappe session configuration. Serialized JSON uses camelCase keys.
"""

import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

ChartType = Literal["bar", "line", "pie", "area"]
DisplayState = Literal["thinking", "error", "answer"]

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def new_message_id() -> str:
    return uuid.uuid4().hex


class ChartDescriptor(BaseModel):
    """Flat tabular chart: one row per category, one key per series."""

    type: ChartType
    title: str
    x_axis_key: str = Field(..., min_length=1)
    series_keys: list[str] = Field(..., min_length=1)
    data: list[dict[str, str | int | float]] = Field(default_factory=list)

    model_config = _CAMEL

    @model_validator(mode="after")
    def rows_have_category(self) -> "ChartDescriptor":
        for index, row in enumerate(self.data):
            if self.x_axis_key not in row:
                raise ValueError(f"Chart row {index} is missing '{self.x_axis_key}'")
        return self


class InsightResponse(BaseModel):
    """Answer text plus optional chart and follow-up questions."""

    answer: str
    visualization: ChartDescriptor | None = None
    suggested_questions: list[str] = Field(default_factory=list)

    model_config = _CAMEL


class Message(BaseModel):
    """
    One entry in the chat log.

    A bot message is in exactly one display state: thinking (placeholder),
    error, or a normal answer.
    """

    id: str = Field(default_factory=new_message_id)
    sender: Literal["user", "bot"]
    text: str = ""
    timestamp: datetime = Field(default_factory=datetime.now)
    visualization: ChartDescriptor | None = None
    is_thinking: bool = False
    status_message: str | None = None
    suggested_questions: list[str] | None = None
    is_error: bool = False
    original_query: str | None = None
    error_type: str | None = None

    model_config = _CAMEL

    @model_validator(mode="after")
    def single_display_state(self) -> "Message":
        if self.is_thinking and self.is_error:
            raise ValueError("A message cannot be both thinking and failed")
        return self

    @property
    def state(self) -> DisplayState:
        if self.is_thinking:
            return "thinking"
        if self.is_error:
            return "error"
        return "answer"

    @classmethod
    def user(cls, text: str) -> "Message":
        return cls(sender="user", text=text)

    @classmethod
    def thinking(cls, status: str = "Initializing...") -> "Message":
        return cls(sender="bot", is_thinking=True, status_message=status)

    @classmethod
    def answer(cls, insight: InsightResponse, message_id: str | None = None) -> "Message":
        return cls(
            id=message_id or new_message_id(),
            sender="bot",
            text=insight.answer,
            visualization=insight.visualization,
            suggested_questions=insight.suggested_questions,
        )

    @classmethod
    def failure(
        cls,
        error_message: str,
        original_query: str,
        error_type: str | None = None,
        message_id: str | None = None,
    ) -> "Message":
        return cls(
            id=message_id or new_message_id(),
            sender="bot",
            text=(
                "I encountered an error while processing your request:"
                f"\n\n{error_message}."
            ),
            is_error=True,
            original_query=original_query,
            error_type=error_type,
        )


class ContextTurn(BaseModel):
    role: Literal["User", "Assistant"]
    text: str

    model_config = ConfigDict(frozen=True)


class ConversationContext(BaseModel):
    """Long-term memory facts and recent turns sent with every reasoning request."""

    memory: tuple[str, ...] = ()
    turns: tuple[ContextTurn, ...] = ()

    model_config = ConfigDict(frozen=True)

    @property
    def is_empty(self) -> bool:
        return not self.memory and not self.turns

    def render(self) -> str:
        sections = []
        if self.memory:
            facts = "\n".join(f"- {fact}" for fact in self.memory)
            sections.append(f"\nLONG TERM MEMORY (User Facts & Rules):\n{facts}\n")
        if self.turns:
            lines = "\n".join(f"{turn.role}: {turn.text}" for turn in self.turns)
            sections.append(f"\nSHORT TERM MEMORY (Recent Conversation):\n{lines}\n")
        return "".join(sections)


class SessionConfig(BaseModel):
    """Frappe site URL and API credentials."""

    url: str
    api_key: str = Field(..., min_length=1)
    api_secret: str = Field(..., min_length=1)

    model_config = _CAMEL

    @field_validator("url")
    @classmethod
    def normalize_url(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("Frappe URL must start with http:// or https://")
        return v

    def auth_header(self) -> dict[str, Any]:
        return {"Authorization": f"token {self.api_key}:{self.api_secret}"}


class ConnectionOutcome(BaseModel):
    """Result of a connect attempt."""

    success: bool
    message: str
    table_count: int = 0
    tables_loaded: bool = False
