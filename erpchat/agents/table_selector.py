"""
TableSelectorAgent: pick the DocTypes relevant to a question.

Given every known DocType name, asks the reasoning service for the few
tables most likely to hold the answer. Malformed output is treated as
"nothing relevant" rather than an error.
"""

import json
import logging

from erpchat.agents.base import ReasoningAgent, parse_json_payload
from erpchat.models.agent import TableSelectorInput, TableSelectorOutput

logger = logging.getLogger(__name__)

RESPONSE_SCHEMA = {"type": "array", "items": {"type": "string"}}


class TableSelectorAgent(ReasoningAgent):
    """Relevance selector over the schema directory's table names."""

    def __init__(self, llm_provider=None, prompts=None):
        super().__init__(name="TableSelectorAgent", llm_provider=llm_provider, prompts=prompts)

    async def execute(self, input: TableSelectorInput) -> TableSelectorOutput:
        """
        Select up to ``input.max_tables`` DocType names.

        Names are returned in the service's order, without checking them
        against the directory. Blank and duplicate names are dropped.

        Raises:
            LLMError: If the reasoning service call fails
        """
        prompt = self.prompts.render(
            "agents/table_selector.md",
            query=input.query,
            context=input.context.render(),
            tables=input.table_names,
            max_tables=input.max_tables,
        )
        content = await self._complete(prompt, RESPONSE_SCHEMA)
        tables = self._parse_tables(content)[: input.max_tables]

        logger.info(
            f"[{self.name}] Selected {len(tables)} DocTypes",
            extra={"agent": self.name, "tables": tables},
        )
        return TableSelectorOutput(success=True, tables=tables, metadata=self._create_metadata())

    def _parse_tables(self, content: str) -> list[str]:
        try:
            payload = parse_json_payload(content or "[]")
        except json.JSONDecodeError:
            logger.warning(
                f"[{self.name}] Unparseable selector output, treating as no match",
                extra={"agent": self.name, "content": content[:200]},
            )
            return []
        if not isinstance(payload, list):
            logger.warning(
                f"[{self.name}] Selector output is not a list, treating as no match",
                extra={"agent": self.name, "type": type(payload).__name__},
            )
            return []

        seen: set[str] = set()
        tables = []
        for item in payload:
            if not isinstance(item, str):
                continue
            name = item.strip()
            if name and name not in seen:
                seen.add(name)
                tables.append(name)
        return tables
