"""
Context Builder

Assembles long-term memory facts and the most recent conversation turns
into the context blob sent with every reasoning request.
"""

from collections.abc import Sequence

from erpchat.models.chat import ContextTurn, ConversationContext, Message


def build_context(
    history: Sequence[Message],
    memory: Sequence[str],
    window: int = 6,
) -> ConversationContext:
    """
    Build the conversation context for one turn.

    Memory facts come first in stored order, followed by the last ``window``
    turns in chronological order. Thinking placeholders are not turns.
    Nothing inside a message or fact is truncated.

    Args:
        history: Chat log as it stood before the current question
        memory: Long-term memory facts
        window: Number of recent turns to keep

    Returns:
        Immutable ConversationContext
    """
    turns = [
        ContextTurn(role="User" if message.sender == "user" else "Assistant", text=message.text)
        for message in history
        if not message.is_thinking
    ]
    recent = turns[-window:] if window > 0 else []
    return ConversationContext(memory=tuple(memory), turns=tuple(recent))
