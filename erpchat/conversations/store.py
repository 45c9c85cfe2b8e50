"""
Session persistence.

Stores the chat history, the Frappe connection and the long-term memory
under three keys. The file backend keeps one JSON document on disk
(``~/.erpchat/session.json`` by default); the in-memory backend is used by
tests and by ephemeral API sessions.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

CHAT_HISTORY_KEY = "chat_history"
FRAPPE_CONFIG_KEY = "frappe_config"
LONG_TERM_MEMORY_KEY = "long_term_memory"

SESSION_KEYS = (CHAT_HISTORY_KEY, FRAPPE_CONFIG_KEY, LONG_TERM_MEMORY_KEY)


class BaseSessionStore(ABC):
    """Key-value store for JSON-serializable session values."""

    @abstractmethod
    def load(self, key: str) -> Any | None:
        """Return the stored value, or None when absent."""

    @abstractmethod
    def save(self, key: str, value: Any) -> None:
        """Persist a JSON-serializable value."""

    @abstractmethod
    def clear(self, key: str) -> None:
        """Remove one key."""

    def clear_all(self) -> None:
        for key in SESSION_KEYS:
            self.clear(key)


class InMemorySessionStore(BaseSessionStore):
    """Process-local store. Values are JSON round-tripped like the file store."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def load(self, key: str) -> Any | None:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    def save(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    def clear(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileSessionStore(BaseSessionStore):
    """One JSON document on disk holding every session key."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(
                f"Ignoring unreadable session file {self.path}: {e}",
                extra={"path": str(self.path)},
            )
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=2)
        tmp_path.replace(self.path)

    def load(self, key: str) -> Any | None:
        return self._read().get(key)

    def save(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def clear(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)

    def clear_all(self) -> None:
        if self.path.exists():
            self.path.unlink()
