"""Unit tests for conversation context assembly."""

from erpchat.agents.context import build_context
from erpchat.models import Message


def _history(count: int) -> list[Message]:
    messages = []
    for index in range(count):
        sender = "user" if index % 2 == 0 else "bot"
        messages.append(Message(sender=sender, text=f"turn {index}"))
    return messages


def test_keeps_last_six_turns_in_order():
    context = build_context(_history(10), memory=[])

    assert [turn.text for turn in context.turns] == [f"turn {i}" for i in range(4, 10)]
    assert context.turns[0].role == "User"
    assert context.turns[1].role == "Assistant"


def test_shorter_history_is_kept_whole():
    context = build_context(_history(3), memory=[])

    assert len(context.turns) == 3


def test_thinking_placeholders_are_skipped():
    history = [Message.user("hi"), Message.thinking(), Message(sender="bot", text="hello")]

    context = build_context(history, memory=[])

    assert [turn.text for turn in context.turns] == ["hi", "hello"]


def test_memory_is_rendered_before_turns():
    history = [Message.user("Show sales"), Message(sender="bot", text="Here they are")]

    rendered = build_context(history, memory=["Fiscal year starts in April", "Use USD"]).render()

    assert rendered.index("LONG TERM MEMORY") < rendered.index("SHORT TERM MEMORY")
    assert "- Fiscal year starts in April\n- Use USD" in rendered
    assert "User: Show sales\nAssistant: Here they are" in rendered


def test_empty_context_renders_nothing():
    context = build_context([], memory=[])

    assert context.is_empty
    assert context.render() == ""


def test_long_messages_are_not_truncated():
    text = "x" * 10_000
    context = build_context([Message.user(text)], memory=[])

    assert context.turns[0].text == text


def test_zero_window_drops_all_turns():
    context = build_context(_history(4), memory=["fact"], window=0)

    assert context.turns == ()
    assert context.memory == ("fact",)
