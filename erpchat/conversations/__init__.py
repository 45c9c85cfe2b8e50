"""Session persistence backends."""

from erpchat.conversations.store import (
    CHAT_HISTORY_KEY,
    FRAPPE_CONFIG_KEY,
    LONG_TERM_MEMORY_KEY,
    BaseSessionStore,
    InMemorySessionStore,
    JsonFileSessionStore,
)

__all__ = [
    "CHAT_HISTORY_KEY",
    "FRAPPE_CONFIG_KEY",
    "LONG_TERM_MEMORY_KEY",
    "BaseSessionStore",
    "InMemorySessionStore",
    "JsonFileSessionStore",
]
