"""Unit tests for conversation models."""

import pytest
from pydantic import ValidationError

from erpchat.models import (
    ChartDescriptor,
    InsightResponse,
    Message,
    SessionConfig,
)


class TestChartDescriptor:
    def test_rows_must_carry_category(self):
        with pytest.raises(ValidationError, match="missing 'month'"):
            ChartDescriptor(
                type="line",
                title="Sales",
                x_axis_key="month",
                series_keys=["sales"],
                data=[{"sales": 10}],
            )

    def test_requires_a_series(self):
        with pytest.raises(ValidationError):
            ChartDescriptor(type="bar", title="t", x_axis_key="x", series_keys=[], data=[])

    def test_serializes_camel_case(self):
        chart = ChartDescriptor(
            type="pie", title="Share", x_axis_key="territory", series_keys=["sales"], data=[]
        )

        dumped = chart.model_dump(by_alias=True)

        assert dumped["xAxisKey"] == "territory"
        assert dumped["seriesKeys"] == ["sales"]

    def test_accepts_camel_case_input(self):
        chart = ChartDescriptor.model_validate(
            {"type": "area", "title": "t", "xAxisKey": "m", "seriesKeys": ["v"], "data": [{"m": "Jan", "v": 1}]}
        )

        assert chart.x_axis_key == "m"


class TestMessage:
    def test_thinking_state(self):
        message = Message.thinking()

        assert message.state == "thinking"
        assert message.status_message == "Initializing..."
        assert message.sender == "bot"

    def test_cannot_be_thinking_and_error(self):
        with pytest.raises(ValidationError):
            Message(sender="bot", is_thinking=True, is_error=True)

    def test_answer_keeps_placeholder_id(self):
        insight = InsightResponse(answer="42", suggested_questions=["Why?"])

        message = Message.answer(insight, message_id="abc")

        assert message.id == "abc"
        assert message.state == "answer"
        assert message.text == "42"
        assert message.suggested_questions == ["Why?"]

    def test_failure_text_and_retry_fields(self):
        message = Message.failure("Upstream said no", "Top customers", "QueryError", message_id="abc")

        assert message.state == "error"
        assert message.text == (
            "I encountered an error while processing your request:\n\nUpstream said no."
        )
        assert message.original_query == "Top customers"
        assert message.error_type == "QueryError"

    def test_ids_are_unique(self):
        assert Message.user("a").id != Message.user("a").id

    def test_round_trip_through_camel_case_json(self):
        message = Message.failure("boom", "q", "LLMError")

        restored = Message.model_validate(message.model_dump(mode="json", by_alias=True))

        assert restored == message


class TestSessionConfig:
    def test_url_is_normalized(self):
        config = SessionConfig(url="  https://erp.example.com/ ", api_key="k", api_secret="s")

        assert config.url == "https://erp.example.com"

    def test_url_requires_scheme(self):
        with pytest.raises(ValidationError, match="http"):
            SessionConfig(url="erp.example.com", api_key="k", api_secret="s")

    def test_credentials_required(self):
        with pytest.raises(ValidationError):
            SessionConfig(url="https://erp.example.com", api_key="", api_secret="s")

    def test_auth_header(self, session_config):
        assert session_config.auth_header() == {"Authorization": "token key123:secret456"}
