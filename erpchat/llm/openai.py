"""
OpenAI LLM Provider

Implementation of BaseLLMProvider for OpenAI chat models.
Structured requests use the ``json_schema`` response format.
"""

import json
import logging
from typing import Any

import openai
from openai import AsyncOpenAI

from erpchat.llm.base import BaseLLMProvider
from erpchat.llm.models import LLMRequest, LLMResponse, LLMUsage

logger = logging.getLogger(__name__)

# json_schema response formats must have an object at the root.
_WRAPPER_KEY = "items"


class OpenAIProvider(BaseLLMProvider):
    """
    OpenAI LLM provider implementation.

    Uses the official openai Python SDK with async support.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        temperature: float = 0.0,
        max_tokens: int = 8192,
        timeout: int = 60,
    ):
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Default model to use
            temperature: Default temperature
            max_tokens: Default max tokens
            timeout: Request timeout
        """
        super().__init__(
            provider_name="openai",
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )

        self.model = model
        self.client = AsyncOpenAI(
            api_key=api_key,
            timeout=float(timeout),
        )

        logger.info(f"OpenAI provider initialized with model: {model}", extra={"model": model})

    async def generate(self, request: LLMRequest) -> LLMResponse:
        """
        Generate completion using OpenAI API.

        Raises:
            openai.APIError: On API errors
            openai.APITimeoutError: On timeout
        """
        request = self._apply_defaults(request)
        self._log_request(request)

        messages = [{"role": msg.role, "content": msg.content} for msg in request.messages]
        params: dict[str, Any] = dict(request.metadata)
        wrapped = False
        if request.response_schema is not None:
            schema, wrapped = self._object_root(request.response_schema)
            params["response_format"] = {
                "type": "json_schema",
                "json_schema": {"name": "response", "schema": schema, "strict": False},
            }

        try:
            response = await self.client.chat.completions.create(
                model=request.model or self.model,
                messages=messages,
                temperature=request.temperature,
                max_tokens=request.max_tokens,
                **params,
            )
        except openai.APITimeoutError as e:
            logger.error(f"OpenAI API timeout: {e}")
            raise
        except openai.APIError as e:
            logger.error(f"OpenAI API error: {e}")
            raise

        content = response.choices[0].message.content or ""
        if wrapped:
            content = self._unwrap(content)

        llm_response = LLMResponse(
            content=content,
            model=response.model,
            usage=LLMUsage(
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
                total_tokens=response.usage.total_tokens,
            ),
            finish_reason=self._map_finish_reason(response.choices[0].finish_reason),
            provider="openai",
            metadata={"id": response.id, "created": response.created},
        )

        self._log_response(llm_response)
        return llm_response

    def _object_root(self, schema: dict[str, Any]) -> tuple[dict[str, Any], bool]:
        """Wrap non-object schemas so the root is an object."""
        schema = _drop_nullable(schema)
        if schema.get("type") == "object":
            return schema, False
        return (
            {
                "type": "object",
                "properties": {_WRAPPER_KEY: schema},
                "required": [_WRAPPER_KEY],
            },
            True,
        )

    def _unwrap(self, content: str) -> str:
        """Return the wrapped value as JSON text, or the raw text if unparseable."""
        try:
            payload = json.loads(content)
        except json.JSONDecodeError:
            return content
        if isinstance(payload, dict) and _WRAPPER_KEY in payload:
            return json.dumps(payload[_WRAPPER_KEY])
        return content

    def _map_finish_reason(self, reason: str | None) -> str:
        """Map OpenAI finish reason to our standard format."""
        if reason in ("stop", "length", "content_filter"):
            return reason
        return "stop"


def _drop_nullable(schema: Any) -> Any:
    """Remove the OpenAPI-style ``nullable`` keyword, which JSON schema lacks."""
    if isinstance(schema, dict):
        return {k: _drop_nullable(v) for k, v in schema.items() if k != "nullable"}
    if isinstance(schema, list):
        return [_drop_nullable(item) for item in schema]
    return schema
