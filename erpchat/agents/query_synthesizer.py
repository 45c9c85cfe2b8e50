"""
QuerySynthesizerAgent: turn a question into a Frappe list query.

Produces a QueryDescriptor (doctype, fields, filters, limit, order_by) for
one of the schemas loaded this turn.
"""

import json
import logging
from typing import Any

from pydantic import ValidationError

from erpchat.agents.base import ReasoningAgent, parse_json_payload
from erpchat.models.agent import (
    QuerySynthesizerInput,
    QuerySynthesizerOutput,
    SynthesisError,
)
from erpchat.models.schema import QueryDescriptor, SchemaEntry

logger = logging.getLogger(__name__)

RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "doctype": {"type": "string"},
        "fields": {"type": "array", "items": {"type": "string"}},
        "filters": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "fieldname": {"type": "string"},
                    "operator": {"type": "string"},
                    "value": {"type": "string"},
                    "values": {"type": "array", "items": {"type": "string"}},
                },
                "required": ["fieldname", "operator"],
            },
        },
        "limit": {"type": "integer"},
        "order_by": {"type": "string"},
    },
    "required": ["doctype", "fields"],
}


class QuerySynthesizerAgent(ReasoningAgent):
    """Query synthesis over the fetched schemas."""

    def __init__(self, llm_provider=None, prompts=None):
        super().__init__(name="QuerySynthesizerAgent", llm_provider=llm_provider, prompts=prompts)

    async def execute(self, input: QuerySynthesizerInput) -> QuerySynthesizerOutput:
        """
        Synthesize the query descriptor.

        Raises:
            LLMError: If the reasoning service call fails
            SynthesisError: If the output cannot be parsed, has the wrong
                shape, or names a DocType outside the provided schemas
        """
        prompt = self.prompts.render(
            "agents/query_synthesizer.md",
            query=input.query,
            context=input.context.render(),
            schemas=input.schemas,
            default_limit=self.config.pipeline.default_query_limit,
            max_limit=self.config.pipeline.max_query_limit,
        )
        content = await self._complete(prompt, RESPONSE_SCHEMA)
        descriptor = self._parse_descriptor(content, input.schemas)

        logger.info(
            f"[{self.name}] Query on {descriptor.doctype}",
            extra={
                "agent": self.name,
                "doctype": descriptor.doctype,
                "fields": descriptor.fields,
                "filters": descriptor.filters,
                "limit": descriptor.limit,
            },
        )
        return QuerySynthesizerOutput(
            success=True, query_descriptor=descriptor, metadata=self._create_metadata()
        )

    def _parse_descriptor(self, content: str, schemas: list[SchemaEntry]) -> QueryDescriptor:
        try:
            payload: Any = parse_json_payload(content or "")
        except json.JSONDecodeError as e:
            raise SynthesisError(
                self.name,
                "Invalid query configuration returned by the reasoning service",
                context={"content": (content or "")[:200]},
            ) from e
        if not isinstance(payload, dict):
            raise SynthesisError(
                self.name,
                "Query configuration must be a JSON object",
                context={"type": type(payload).__name__},
            )

        try:
            descriptor = QueryDescriptor.model_validate(payload)
        except ValidationError as e:
            raise SynthesisError(
                self.name,
                f"Query configuration is invalid: {e.errors()[0]['msg']}",
                context={"payload": payload},
            ) from e

        canonical = {schema.name.lower(): schema.name for schema in schemas}
        doctype = canonical.get(descriptor.doctype.strip().lower())
        if doctype is None:
            raise SynthesisError(
                self.name,
                f"Query targets unknown DocType '{descriptor.doctype}'",
                context={"available": [schema.name for schema in schemas]},
            )
        return descriptor.model_copy(update={"doctype": doctype})
