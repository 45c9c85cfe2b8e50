"""Unit tests for chat and chart export."""

import json
from datetime import date, datetime

import pytest

from erpchat.models import ChartDescriptor, Message
from erpchat.utils.export import (
    chart_columns,
    chart_filename,
    chart_to_csv,
    chart_to_json,
    chat_filename,
    chat_to_csv,
    chat_to_json,
)


@pytest.fixture
def chart():
    return ChartDescriptor(
        type="bar",
        title="Revenue by Month",
        x_axis_key="month",
        series_keys=["sales", "returns"],
        data=[
            {"month": "Jan", "sales": 100.0, "returns": 5},
            {"month": "Feb", "sales": 120.5},
            {"month": "Mar", "sales": 90, "note": 'said "hi"'},
        ],
    )


class TestChatExport:
    def test_user_and_bot_rows(self):
        messages = [
            Message(sender="user", text="Hi", timestamp=datetime(2024, 5, 1, 9, 30, 0)),
            Message(sender="bot", text="Hello", timestamp=datetime(2024, 5, 1, 9, 30, 2)),
        ]

        lines = chat_to_csv(messages).split("\n")

        assert lines[0] == "Timestamp,Sender,Message,Chart Type,Chart Title"
        assert lines[1] == '2024-05-01 09:30:00,user,"Hi",,'
        assert lines[2] == '2024-05-01 09:30:02,bot,"Hello",,'

    def test_chart_columns_and_quote_escaping(self, chart):
        message = Message(
            sender="bot",
            text='Sales "peaked" in Feb',
            timestamp=datetime(2024, 5, 1, 10, 0, 0),
            visualization=chart,
        )

        line = chat_to_csv([message]).split("\n")[1]

        assert line == '2024-05-01 10:00:00,bot,"Sales ""peaked"" in Feb",bar,"Revenue by Month"'

    def test_json_export(self, chart):
        messages = [Message.user("Hi"), Message(sender="bot", text="Chart", visualization=chart)]

        payload = json.loads(chat_to_json(messages, exported_at=datetime(2024, 5, 1, 12, 0)))

        assert payload["timestamp"] == "2024-05-01T12:00:00"
        assert [m["sender"] for m in payload["messages"]] == ["user", "bot"]
        assert payload["messages"][1]["visualization"]["xAxisKey"] == "month"
        assert "isThinking" in payload["messages"][0]

    def test_filename(self):
        assert chat_filename("csv", today=date(2024, 5, 1)) == "frappe-insight-chat-2024-05-01.csv"


class TestChartExport:
    def test_columns_start_with_x_axis_key(self, chart):
        assert chart_columns(chart) == ["month", "sales", "returns", "note"]

    def test_csv(self, chart):
        lines = chart_to_csv(chart).split("\n")

        assert lines == [
            "month,sales,returns,note",
            '"Jan",100,5,""',
            '"Feb",120.5,"",""',
            '"Mar",90,"","said ""hi"""',
        ]

    def test_empty_chart_cannot_be_exported(self):
        empty = ChartDescriptor(type="line", title="t", x_axis_key="m", series_keys=["v"], data=[])

        with pytest.raises(ValueError, match="no data"):
            chart_to_csv(empty)

    def test_json_is_raw_rows(self, chart):
        assert json.loads(chart_to_json(chart)) == chart.data

    def test_filename(self, chart):
        assert chart_filename(chart, "json", epoch_ms=1714557600000) == "chart-data-bar-1714557600000.json"
