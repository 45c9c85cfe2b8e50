"""
Chat and chart export.

CSV and JSON renderings of the chat log and of a chart's data rows, plus
the default download filenames.
"""

from __future__ import annotations

import json
import time
from collections.abc import Sequence
from datetime import date, datetime
from typing import Any

from erpchat.models.chat import ChartDescriptor, Message

CHAT_CSV_HEADER = ("Timestamp", "Sender", "Message", "Chart Type", "Chart Title")


def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def _format_number(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def chat_to_csv(messages: Sequence[Message]) -> str:
    """
    Render the chat log as CSV.

    The message text is always quoted. The chart title is quoted when a
    chart is present and the chart type is written bare.
    """
    lines = [",".join(CHAT_CSV_HEADER)]
    for message in messages:
        chart = message.visualization
        lines.append(
            ",".join(
                [
                    message.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                    message.sender,
                    _quote(message.text),
                    chart.type if chart else "",
                    _quote(chart.title) if chart else "",
                ]
            )
        )
    return "\n".join(lines)


def chat_to_json(messages: Sequence[Message], exported_at: datetime | None = None) -> str:
    """Render ``{timestamp, messages}`` with camelCase message objects."""
    payload = {
        "timestamp": (exported_at or datetime.now()).isoformat(),
        "messages": [
            message.model_dump(mode="json", by_alias=True, exclude_none=True)
            for message in messages
        ],
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


def chart_columns(chart: ChartDescriptor) -> list[str]:
    """Union of row keys in first-seen order, with the x-axis key first."""
    keys: dict[str, None] = {chart.x_axis_key: None}
    for row in chart.data:
        for key in row:
            keys.setdefault(key, None)
    return list(keys)


def chart_to_csv(chart: ChartDescriptor) -> str:
    """
    Render chart rows as CSV.

    Strings are quoted, numbers are bare, and a key missing from a row is
    written as an empty quoted string.

    Raises:
        ValueError: If the chart has no rows
    """
    if not chart.data:
        raise ValueError("Chart has no data to export")

    columns = chart_columns(chart)
    lines = [",".join(columns)]
    for row in chart.data:
        cells = []
        for column in columns:
            value: Any = row.get(column)
            if value is None:
                cells.append('""')
            elif isinstance(value, str):
                cells.append(_quote(value))
            else:
                cells.append(_format_number(value))
        lines.append(",".join(cells))
    return "\n".join(lines)


def chart_to_json(chart: ChartDescriptor) -> str:
    """Render the raw row array."""
    return json.dumps(chart.data, indent=2, ensure_ascii=False)


def chat_filename(fmt: str, today: date | None = None) -> str:
    return f"frappe-insight-chat-{(today or date.today()).isoformat()}.{fmt}"


def chart_filename(chart: ChartDescriptor, fmt: str, epoch_ms: int | None = None) -> str:
    stamp = epoch_ms if epoch_ms is not None else int(time.time() * 1000)
    return f"chart-data-{chart.type}-{stamp}.{fmt}"
