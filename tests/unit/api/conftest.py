"""Fixtures shared by the API route tests."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from erpchat.api.main import app, app_state
from erpchat.models import InsightResponse
from erpchat.pipeline.session import ConversationSession


@pytest.fixture
def api_session(memory_store, mock_gateway):
    """Loaded session whose pipeline always answers."""
    pipeline = MagicMock()
    pipeline.run = AsyncMock(
        return_value={"error": None, "insight": InsightResponse(answer="Acme leads.")}
    )
    session = ConversationSession(store=memory_store, gateway=mock_gateway, pipeline=pipeline)
    session.load()
    return session


@pytest.fixture
def client(api_session):
    """Test client with the session installed (lifespan not run)."""
    with patch.dict(app_state, {"session": api_session}):
        yield TestClient(app)
