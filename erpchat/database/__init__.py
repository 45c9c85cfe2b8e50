"""Schema directory and demo schema."""

from erpchat.database.catalog import SchemaDirectory
from erpchat.database.demo import DEMO_SCHEMA, GREETING, SUGGESTED_QUESTIONS

__all__ = ["DEMO_SCHEMA", "GREETING", "SUGGESTED_QUESTIONS", "SchemaDirectory"]
