"""
InsightAgent: answer the question and propose a chart.

Two modes:
    - grounded: rows came back from the ERP and are analyzed as is
    - synthetic (demo mode): the service invents realistic rows

The chart comes back as a nested ``{category, values: [{key, value}]}``
structure and is flattened into one row per category.
"""

import json
import logging
from typing import Any

from pydantic import ValidationError

from erpchat.agents.base import ReasoningAgent, parse_json_payload
from erpchat.models.agent import InsightError, InsightInput, InsightOutput
from erpchat.models.chat import ChartDescriptor, InsightResponse

logger = logging.getLogger(__name__)

RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "answer": {"type": "string", "description": "The natural language answer."},
        "visualization": {
            "type": "object",
            "nullable": True,
            "description": "Configuration for a chart.",
            "properties": {
                "type": {"type": "string", "enum": ["bar", "line", "pie", "area"]},
                "title": {"type": "string"},
                "xAxisKey": {"type": "string"},
                "seriesKeys": {"type": "array", "items": {"type": "string"}},
                "data": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "category": {"type": "string", "description": "X-axis value"},
                            "values": {
                                "type": "array",
                                "items": {
                                    "type": "object",
                                    "properties": {
                                        "key": {
                                            "type": "string",
                                            "description": "Must match seriesKeys",
                                        },
                                        "value": {"type": "number"},
                                    },
                                    "required": ["key", "value"],
                                },
                            },
                        },
                        "required": ["category", "values"],
                    },
                },
            },
            "required": ["type", "title", "xAxisKey", "seriesKeys", "data"],
        },
        "suggestedQuestions": {
            "type": "array",
            "items": {"type": "string"},
            "description": "3 short, contextually relevant follow-up questions.",
        },
    },
    "required": ["answer"],
}


def flatten_chart_data(points: list[dict[str, Any]], x_axis_key: str) -> list[dict[str, Any]]:
    """
    Flatten ``[{category, values: [{key, value}]}]`` into chart rows.

    Each row starts as ``{x_axis_key: category}`` and gains ``row[key] = value``
    for every pair. Missing series are not zero-filled and keys outside the
    declared series pass through unchanged.
    """
    rows = []
    for point in points:
        row: dict[str, Any] = {x_axis_key: point.get("category")}
        for pair in point.get("values") or []:
            row[pair["key"]] = pair["value"]
        rows.append(row)
    return rows


class InsightAgent(ReasoningAgent):
    """Insight generation for grounded and synthetic turns."""

    def __init__(self, llm_provider=None, prompts=None):
        super().__init__(name="InsightAgent", llm_provider=llm_provider, prompts=prompts)

    async def execute(self, input: InsightInput) -> InsightOutput:
        """
        Generate the answer, optional chart and follow-up questions.

        Raises:
            LLMError: If the reasoning service call fails
            InsightError: If the response is empty or not a valid insight
        """
        if input.grounded:
            rows_json = json.dumps(input.rows, default=str)
            limit = self.config.pipeline.row_payload_chars
            if len(rows_json) > limit:
                logger.info(
                    f"[{self.name}] Truncating row payload",
                    extra={"agent": self.name, "chars": len(rows_json), "limit": limit},
                )
                rows_json = rows_json[:limit]
            prompt = self.prompts.render(
                "agents/insight_grounded.md",
                query=input.query,
                context=input.context.render(),
                schemas=input.schemas,
                rows_json=rows_json,
            )
        else:
            prompt = self.prompts.render(
                "agents/insight_synthetic.md",
                query=input.query,
                context=input.context.render(),
                schemas=input.schemas,
            )

        content = await self._complete(prompt, RESPONSE_SCHEMA)
        insight = self._parse_insight(content)

        logger.info(
            f"[{self.name}] Insight ready",
            extra={
                "agent": self.name,
                "grounded": input.grounded,
                "has_chart": insight.visualization is not None,
                "suggestions": len(insight.suggested_questions),
            },
        )
        return InsightOutput(success=True, insight=insight, metadata=self._create_metadata())

    def _parse_insight(self, content: str) -> InsightResponse:
        if not content or not content.strip():
            raise InsightError(self.name, "No response from the reasoning service")
        try:
            payload = parse_json_payload(content)
        except json.JSONDecodeError as e:
            raise InsightError(
                self.name, "Invalid response format", context={"content": content[:200]}
            ) from e
        if not isinstance(payload, dict) or not isinstance(payload.get("answer"), str):
            raise InsightError(self.name, "Invalid response format")

        suggestions = payload.get("suggestedQuestions") or []
        if not isinstance(suggestions, list):
            suggestions = []

        return InsightResponse(
            answer=payload["answer"],
            visualization=self._build_chart(payload.get("visualization")),
            suggested_questions=[q for q in suggestions if isinstance(q, str) and q.strip()],
        )

    def _build_chart(self, raw: Any) -> ChartDescriptor | None:
        if not raw:
            return None
        try:
            x_axis_key = raw["xAxisKey"]
            return ChartDescriptor(
                type=raw["type"],
                title=raw.get("title") or "",
                x_axis_key=x_axis_key,
                series_keys=raw["seriesKeys"],
                data=flatten_chart_data(raw.get("data") or [], x_axis_key),
            )
        except (ValidationError, KeyError, TypeError, AttributeError) as e:
            logger.warning(
                f"[{self.name}] Dropping invalid visualization: {e}",
                extra={"agent": self.name, "error_type": type(e).__name__},
            )
            return None
