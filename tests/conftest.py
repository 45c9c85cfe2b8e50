"""
Pytest configuration and shared fixtures.

This module provides fixtures and configuration used across all tests.
"""

import logging
import os
from unittest.mock import AsyncMock

import pytest

# The API module reads settings at import time, so a provider key must be
# present before any test module is collected.
os.environ.setdefault("LLM_GOOGLE_API_KEY", "test-google-key")

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests (requires API keys and a Frappe site)",
    )


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (may require external services)"
    )
    config.addinivalue_line("markers", "slow: mark test as slow (takes more than 1 second)")
    config.addinivalue_line("markers", "unit: mark test as unit test (default)")


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless explicitly enabled."""
    if config.getoption("--run-integration"):
        return
    skip_integration = pytest.mark.skip(
        reason="Integration tests disabled (use --run-integration to enable)."
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(autouse=True)
def configure_test_logging(caplog):
    """
    Configure logging for tests.

    Sets up log capture and configures log levels.
    This fixture runs automatically for all tests.
    """
    caplog.set_level(logging.DEBUG)
    yield


# ============================================================================
# Environment and Configuration
# ============================================================================


@pytest.fixture(autouse=True)
def mock_google_api_key(monkeypatch, tmp_path):
    """
    Provide a reasoning-service key and an isolated store path.

    Prevents tests from attempting real API calls or touching the user's
    session file. Runs automatically for all tests.
    """
    from erpchat.config import clear_settings_cache

    clear_settings_cache()

    test_key = "test-google-key"
    monkeypatch.setenv("ERPCHAT_ENV_SOURCE", "environment")
    monkeypatch.setenv("LLM_DEFAULT_PROVIDER", "google")
    monkeypatch.setenv("LLM_GOOGLE_API_KEY", test_key)
    monkeypatch.setenv("STORE_PATH", str(tmp_path / "session.json"))
    yield test_key

    clear_settings_cache()


# ============================================================================
# Common Test Data
# ============================================================================


@pytest.fixture
def sample_query() -> str:
    """Sample user query for testing."""
    return "Top 5 customers by revenue"


@pytest.fixture
def session_config():
    """Frappe session configuration for connected-mode tests."""
    from erpchat.models import SessionConfig

    return SessionConfig(url="https://erp.example.com", api_key="key123", api_secret="secret456")


@pytest.fixture
def sales_invoice_schema():
    """A fetched Sales Invoice schema."""
    from erpchat.models import FieldDescriptor, SchemaEntry

    return SchemaEntry(
        name="Sales Invoice",
        fields=(
            FieldDescriptor(fieldname="customer", label="Customer", fieldtype="Link", options="Customer"),
            FieldDescriptor(fieldname="grand_total", label="Grand Total", fieldtype="Currency"),
            FieldDescriptor(fieldname="posting_date", label="Posting Date", fieldtype="Date"),
        ),
    )


# ============================================================================
# Mock LLM Provider
# ============================================================================


@pytest.fixture
def mock_llm_provider():
    """
    Mock LLM provider for testing agents.

    Provides a simple interface for setting responses.

    Usage:
        def test_agent(mock_llm_provider):
            mock_llm_provider.set_response('["Customer"]')
            result = await agent(input)
    """
    from erpchat.llm.models import LLMResponse, LLMUsage

    def _response(content: str) -> LLMResponse:
        return LLMResponse(
            content=content,
            model="mock-model",
            usage=LLMUsage(prompt_tokens=1, completion_tokens=1, total_tokens=2),
            finish_reason="stop",
            provider="mock",
            metadata={},
        )

    class MockLLMProvider:
        def __init__(self):
            self.generate = AsyncMock()

        def set_response(self, response: str):
            """Set the response that generate() will return."""
            self.generate.return_value = _response(response)

        def set_responses(self, *responses: str):
            """Queue one response per generate() call."""
            self.generate.side_effect = [_response(r) for r in responses]

        @property
        def prompts(self) -> list[str]:
            """User prompts sent so far."""
            return [call.args[0].messages[-1].content for call in self.generate.await_args_list]

    return MockLLMProvider()


# ============================================================================
# Mock Gateway and Store
# ============================================================================


@pytest.fixture
def mock_gateway():
    """
    Mock data gateway.

    Usage:
        def test_query(mock_gateway):
            mock_gateway.execute_query.return_value = [{"name": "SINV-0001"}]
    """
    from erpchat.connectors.base import BaseDataGateway

    gateway = AsyncMock(spec=BaseDataGateway)
    gateway.check_connection.return_value = True
    gateway.list_tables.return_value = ["Customer", "Item", "Sales Invoice"]
    gateway.execute_query.return_value = []
    return gateway


@pytest.fixture
def memory_store():
    """In-memory session store."""
    from erpchat.conversations.store import InMemorySessionStore

    return InMemorySessionStore()
