"""
Unit Tests for Chat Endpoints

Tests /api/v1/chat, /messages and retry with a mocked pipeline.
"""

from unittest.mock import AsyncMock

from erpchat.models import InsightResponse
from erpchat.pipeline.session import SessionBusyError


class TestChatEndpoint:
    def test_returns_answer_message(self, client):
        response = client.post("/api/v1/chat", json={"message": "Top customers"})

        assert response.status_code == 200
        body = response.json()
        assert body["sender"] == "bot"
        assert body["text"] == "Acme leads."
        assert body["isError"] is False

    def test_pipeline_failure_is_a_message_not_http_error(self, client, api_session):
        api_session.pipeline.run.return_value = {
            "error": "Field not permitted in query: foo",
            "error_type": "QueryError",
        }

        response = client.post("/api/v1/chat", json={"message": "Top customers"})

        assert response.status_code == 200
        body = response.json()
        assert body["isError"] is True
        assert body["originalQuery"] == "Top customers"
        assert body["errorType"] == "QueryError"

    def test_blank_message_rejected(self, client):
        response = client.post("/api/v1/chat", json={"message": "   "})

        assert response.status_code == 400

    def test_empty_message_fails_validation(self, client):
        response = client.post("/api/v1/chat", json={"message": ""})

        assert response.status_code == 422

    def test_busy_session_returns_conflict(self, client, api_session):
        api_session.submit = AsyncMock(side_effect=SessionBusyError("busy"))

        response = client.post("/api/v1/chat", json={"message": "Top customers"})

        assert response.status_code == 409
        assert response.json()["error"] == "session_busy"


class TestMessagesEndpoint:
    def test_lists_chat_log(self, client):
        client.post("/api/v1/chat", json={"message": "Top customers"})

        response = client.get("/api/v1/messages")

        assert response.status_code == 200
        assert [m["sender"] for m in response.json()] == ["bot", "user", "bot"]

    def test_retry_failed_message(self, client, api_session):
        api_session.pipeline.run.return_value = {"error": "timeout", "error_type": "LLMError"}
        failed = client.post("/api/v1/chat", json={"message": "Top customers"}).json()
        api_session.pipeline.run.return_value = {
            "error": None,
            "insight": InsightResponse(answer="Recovered."),
        }

        response = client.post(f"/api/v1/messages/{failed['id']}/retry")

        assert response.status_code == 200
        assert response.json()["text"] == "Recovered."

    def test_retry_unknown_message(self, client):
        response = client.post("/api/v1/messages/missing/retry")

        assert response.status_code == 404
