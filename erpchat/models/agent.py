"""
Agent I/O Models

Pydantic models for agent inputs, outputs, and error handling.
Every reasoning step in the pipeline takes a typed input and returns a
typed output carrying execution metadata.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from erpchat.models.chat import ConversationContext, InsightResponse
from erpchat.models.schema import QueryDescriptor, SchemaEntry


class AgentMetadata(BaseModel):
    """Metadata about agent execution."""

    agent_name: str
    started_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: datetime | None = None
    duration_ms: float | None = None
    llm_calls: int = 0
    tokens_used: int | None = None
    error: str | None = None

    model_config = ConfigDict(frozen=False)

    def mark_complete(self) -> None:
        """Mark execution as complete and calculate duration."""
        self.completed_at = datetime.utcnow()
        if self.started_at:
            delta = self.completed_at - self.started_at
            self.duration_ms = delta.total_seconds() * 1000


class AgentInput(BaseModel):
    """
    Base input model for all agents.

    The question and its conversation context are common to every step.
    """

    query: str = Field(..., description="User's natural language question")
    context: ConversationContext = Field(
        default_factory=ConversationContext,
        description="Long-term memory and recent turns",
    )


class AgentOutput(BaseModel):
    """Base output model for all agents."""

    success: bool = Field(..., description="Whether the agent executed successfully")
    metadata: AgentMetadata = Field(..., description="Execution metadata")


class AgentError(Exception):
    """
    Custom exception for agent execution errors.

    Attributes:
        agent: Name of the agent that raised the error
        message: Error description
        recoverable: Whether the user can reasonably retry
        context: Additional context for debugging
    """

    def __init__(
        self,
        agent: str,
        message: str,
        recoverable: bool = True,
        context: dict[str, Any] | None = None,
    ):
        self.agent = agent
        self.message = message
        self.recoverable = recoverable
        self.context = context or {}
        super().__init__(f"[{agent}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/API responses."""
        return {
            "agent": self.agent,
            "message": self.message,
            "recoverable": self.recoverable,
            "context": self.context,
            "type": self.__class__.__name__,
        }


class LLMError(AgentError):
    """Error during a reasoning-service call."""

    def __init__(self, agent: str, message: str, context: dict[str, Any] | None = None):
        super().__init__(agent, message, recoverable=True, context=context)


class SynthesisError(AgentError):
    """The reasoning service did not produce a usable query descriptor."""

    def __init__(self, agent: str, message: str, context: dict[str, Any] | None = None):
        super().__init__(agent, message, recoverable=True, context=context)


class InsightError(AgentError):
    """The reasoning service returned an empty or malformed insight."""

    def __init__(self, agent: str, message: str, context: dict[str, Any] | None = None):
        super().__init__(agent, message, recoverable=True, context=context)


class NoRelevantTableError(AgentError):
    """No DocType was judged relevant to the question."""

    def __init__(
        self,
        agent: str = "InsightPipeline",
        message: str = "I couldn't find any relevant DocTypes for your question",
        context: dict[str, Any] | None = None,
    ):
        super().__init__(agent, message, recoverable=True, context=context)


class SchemaUnavailableError(AgentError):
    """Every selected DocType failed to return a schema."""

    def __init__(
        self,
        agent: str = "InsightPipeline",
        message: str = "Failed to retrieve schema details for selected DocTypes",
        context: dict[str, Any] | None = None,
    ):
        super().__init__(agent, message, recoverable=True, context=context)


# ============================================================================
# TableSelectorAgent Models
# ============================================================================


class TableSelectorInput(AgentInput):
    """Input for the relevance selector."""

    table_names: list[str] = Field(..., description="All known DocType names")
    max_tables: int = Field(default=3, ge=1, description="Maximum names to return")


class TableSelectorOutput(AgentOutput):
    """Selected DocType names, possibly empty."""

    tables: list[str] = Field(default_factory=list)


# ============================================================================
# QuerySynthesizerAgent Models
# ============================================================================


class QuerySynthesizerInput(AgentInput):
    """Input for query synthesis."""

    schemas: list[SchemaEntry] = Field(..., min_length=1)


class QuerySynthesizerOutput(AgentOutput):
    query_descriptor: QueryDescriptor


# ============================================================================
# InsightAgent Models
# ============================================================================


class InsightInput(AgentInput):
    """
    Input for insight generation.

    ``rows`` set (even to an empty list) means grounded mode; ``None`` means
    synthetic mode where the service invents plausible data.
    """

    schemas: list[SchemaEntry] = Field(default_factory=list)
    rows: list[dict[str, Any]] | None = None

    @property
    def grounded(self) -> bool:
        return self.rows is not None


class InsightOutput(AgentOutput):
    insight: InsightResponse
