"""
LLM Provider Module

Reasoning-service abstraction supporting OpenAI and Google Gemini.

Usage:
    from erpchat.llm import LLMProviderFactory, LLMRequest, LLMMessage
    from erpchat.config import get_settings

    provider = LLMProviderFactory.create_default_provider(get_settings().llm)

    request = LLMRequest(
        messages=[LLMMessage(role="user", content="List three colors")],
        response_schema={"type": "array", "items": {"type": "string"}},
    )

    response = await provider.generate(request)
    print(response.content)
"""

from erpchat.llm.base import BaseLLMProvider
from erpchat.llm.factory import LLMProviderFactory
from erpchat.llm.google import GoogleProvider
from erpchat.llm.models import LLMMessage, LLMRequest, LLMResponse, LLMUsage
from erpchat.llm.openai import OpenAIProvider

__all__ = [
    "BaseLLMProvider",
    "LLMMessage",
    "LLMRequest",
    "LLMResponse",
    "LLMUsage",
    "LLMProviderFactory",
    "OpenAIProvider",
    "GoogleProvider",
]
