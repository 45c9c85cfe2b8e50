"""
Schema Directory

Holds the DocTypes the assistant knows about. It starts with the demo
schema, is replaced wholesale with name-only entries when a Frappe site is
connected, and records fully fetched entries for display.
"""

from __future__ import annotations

import logging

from erpchat.database.demo import DEMO_SCHEMA
from erpchat.models.schema import SchemaEntry

logger = logging.getLogger(__name__)


class SchemaDirectory:
    """Ordered mapping of DocType name to schema entry."""

    def __init__(self, entries: tuple[SchemaEntry, ...] | list[SchemaEntry] = DEMO_SCHEMA, demo: bool = True):
        self._entries: dict[str, SchemaEntry] = {entry.name: entry for entry in entries}
        self._demo = demo

    @classmethod
    def demo(cls) -> SchemaDirectory:
        return cls(DEMO_SCHEMA, demo=True)

    @property
    def is_demo(self) -> bool:
        return self._demo

    @property
    def table_names(self) -> list[str]:
        return list(self._entries)

    @property
    def entries(self) -> list[SchemaEntry]:
        return list(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def get(self, name: str) -> SchemaEntry | None:
        return self._entries.get(name)

    def replace_with_names(self, names: list[str]) -> None:
        """Replace the whole directory with name-only entries from discovery."""
        self._entries = {name: SchemaEntry(name=name) for name in dict.fromkeys(names) if name}
        self._demo = False
        logger.info(
            f"Schema directory replaced with {len(self._entries)} DocTypes",
            extra={"table_count": len(self._entries)},
        )

    def record(self, entry: SchemaEntry) -> None:
        """Store a fetched entry, replacing any name-only placeholder."""
        self._entries[entry.name] = entry

    def reset_to_demo(self) -> None:
        self._entries = {entry.name: entry for entry in DEMO_SCHEMA}
        self._demo = True
