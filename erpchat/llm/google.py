"""
Google LLM Provider

Implementation of BaseLLMProvider for Google's Gemini models.
Structured requests set ``response_mime_type`` to JSON together with a
``response_schema`` converted to Gemini's OpenAPI subset.
"""

import logging
import warnings
from typing import Any

with warnings.catch_warnings():
    warnings.simplefilter("ignore", FutureWarning)
    import google.generativeai as genai

from erpchat.llm.base import BaseLLMProvider
from erpchat.llm.models import LLMRequest, LLMResponse, LLMUsage

logger = logging.getLogger(__name__)

_SUPPORTED_SCHEMA_KEYS = {
    "type",
    "format",
    "description",
    "nullable",
    "enum",
    "properties",
    "required",
    "items",
}


class GoogleProvider(BaseLLMProvider):
    """
    Google (Gemini) LLM provider implementation.

    Uses the google-generativeai Python SDK. System messages become the
    model's system instruction, the remaining turns are joined into the
    prompt.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        temperature: float = 0.0,
        max_tokens: int = 8192,
        timeout: int = 60,
    ):
        """Initialize Google provider."""
        super().__init__(
            provider_name="google",
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )

        self.model = model
        self.api_key = api_key
        genai.configure(api_key=api_key)
        self.genai = genai

        logger.info(f"Google provider initialized with model: {model}", extra={"model": model})

    async def generate(self, request: LLMRequest) -> LLMResponse:
        """Generate completion using Google Gemini API."""
        request = self._apply_defaults(request)
        self._log_request(request)

        model_name = request.model or self.model
        system_parts = [msg.content for msg in request.messages if msg.role == "system"]
        prompt_parts = []
        for msg in request.messages:
            if msg.role == "user":
                prompt_parts.append(msg.content)
            elif msg.role == "assistant":
                prompt_parts.append(f"Assistant: {msg.content}")
        prompt = "\n\n".join(prompt_parts)

        client = self.genai.GenerativeModel(
            model_name,
            system_instruction="\n\n".join(system_parts) or None,
        )

        config_kwargs: dict[str, Any] = {
            "temperature": request.temperature,
            "max_output_tokens": request.max_tokens,
        }
        if request.response_schema is not None:
            config_kwargs["response_mime_type"] = "application/json"
            config_kwargs["response_schema"] = self._to_gemini_schema(request.response_schema)

        response = await client.generate_content_async(
            prompt,
            generation_config=self.genai.types.GenerationConfig(**config_kwargs),
            request_options={"timeout": self.timeout},
        )
        response_text = self._extract_response_text(response)
        finish_reason = self._extract_finish_reason(response)

        # Gemini does not always report usage, estimate it
        prompt_tokens = self.count_tokens(prompt)
        completion_tokens = self.count_tokens(response_text)

        llm_response = LLMResponse(
            content=response_text,
            model=model_name,
            usage=LLMUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            ),
            finish_reason=finish_reason,
            provider="google",
            metadata={"raw_finish_reason": self._extract_raw_finish_reason(response)},
        )

        self._log_response(llm_response)
        return llm_response

    def _to_gemini_schema(self, schema: dict[str, Any]) -> dict[str, Any]:
        """Convert a JSON schema to the subset Gemini accepts (upper-case types)."""
        converted: dict[str, Any] = {}
        for key, value in schema.items():
            if key not in _SUPPORTED_SCHEMA_KEYS:
                continue
            if key == "type":
                converted[key] = str(value).upper()
            elif key == "properties":
                converted[key] = {
                    name: self._to_gemini_schema(child) for name, child in value.items()
                }
            elif key == "items":
                converted[key] = self._to_gemini_schema(value)
            else:
                converted[key] = value
        return converted

    def _extract_response_text(self, response: Any) -> str:
        # .text raises ValueError when the candidate has no parts (blocked output)
        try:
            text = response.text
        except ValueError:
            return ""
        if isinstance(text, str):
            return text
        if text is None:
            return ""
        return str(text)

    def _extract_raw_finish_reason(self, response: Any) -> str:
        candidates = getattr(response, "candidates", None)
        if not candidates:
            return ""
        reason = getattr(candidates[0], "finish_reason", "")
        return str(reason or "")

    def _extract_finish_reason(self, response: Any) -> str:
        raw_reason = self._extract_raw_finish_reason(response).lower()
        if any(token in raw_reason for token in ("max_tokens", "length")):
            return "length"
        if any(token in raw_reason for token in ("safety", "blocked", "recitation")):
            return "content_filter"
        if "error" in raw_reason:
            return "error"
        return "stop"
