"""Unit tests for LLMProviderFactory."""

import pytest

from erpchat.config import LLMSettings
from erpchat.llm.factory import LLMProviderFactory
from erpchat.llm.google import GoogleProvider
from erpchat.llm.openai import OpenAIProvider


class TestLLMProviderFactory:
    def test_default_provider_is_google(self):
        settings = LLMSettings(google_api_key="test-google-key")

        provider = LLMProviderFactory.create_default_provider(settings)

        assert isinstance(provider, GoogleProvider)
        assert provider.model == "gemini-2.5-flash"

    def test_creates_openai_provider(self):
        settings = LLMSettings(
            default_provider="openai",
            openai_api_key="sk-test-key-1234567890-abcdefghijklmnop",
            temperature=0.3,
        )

        provider = LLMProviderFactory.create_default_provider(settings)

        assert isinstance(provider, OpenAIProvider)
        assert provider.temperature == 0.3

    def test_unknown_provider_raises(self):
        settings = LLMSettings(google_api_key="test-google-key")

        with pytest.raises(ValueError, match="Unknown provider type"):
            LLMProviderFactory.create_provider("anthropic", settings)

    def test_missing_key_raises(self, monkeypatch):
        monkeypatch.delenv("LLM_OPENAI_API_KEY", raising=False)
        settings = LLMSettings(google_api_key="test-google-key")

        with pytest.raises(ValueError, match="OpenAI API key is required"):
            LLMProviderFactory.create_provider("openai", settings)
