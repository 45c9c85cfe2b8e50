"""
ERPChat Models Module

Pydantic models for type-safe data validation throughout the application.

Available Models:
    Schema Models:
        - FieldDescriptor: One DocType field
        - SchemaEntry: DocType name and fields
        - QueryDescriptor: Structured list query

    Conversation Models:
        - Message: Chat log entry (user, thinking, answer, error)
        - ChartDescriptor: Flat chart data
        - InsightResponse: Answer, chart and follow-ups
        - ConversationContext: Memory facts and recent turns
        - SessionConfig: Frappe URL and credentials
        - ConnectionOutcome: Result of a connect attempt

    Agent Models:
        - AgentInput / AgentOutput / AgentMetadata
        - AgentError and its subclasses

Usage:
    from erpchat.models import Message, SchemaEntry, AgentError
"""

from erpchat.models.agent import (
    AgentError,
    AgentInput,
    AgentMetadata,
    AgentOutput,
    InsightError,
    InsightInput,
    InsightOutput,
    LLMError,
    NoRelevantTableError,
    QuerySynthesizerInput,
    QuerySynthesizerOutput,
    SchemaUnavailableError,
    SynthesisError,
    TableSelectorInput,
    TableSelectorOutput,
)
from erpchat.models.chat import (
    ChartDescriptor,
    ChartType,
    ConnectionOutcome,
    ContextTurn,
    ConversationContext,
    InsightResponse,
    Message,
    SessionConfig,
)
from erpchat.models.schema import FieldDescriptor, QueryDescriptor, SchemaEntry

__all__ = [
    "AgentError",
    "AgentInput",
    "AgentMetadata",
    "AgentOutput",
    "InsightError",
    "InsightInput",
    "InsightOutput",
    "LLMError",
    "NoRelevantTableError",
    "QuerySynthesizerInput",
    "QuerySynthesizerOutput",
    "SchemaUnavailableError",
    "SynthesisError",
    "TableSelectorInput",
    "TableSelectorOutput",
    "ChartDescriptor",
    "ChartType",
    "ConnectionOutcome",
    "ContextTurn",
    "ConversationContext",
    "InsightResponse",
    "Message",
    "SessionConfig",
    "FieldDescriptor",
    "QueryDescriptor",
    "SchemaEntry",
]
