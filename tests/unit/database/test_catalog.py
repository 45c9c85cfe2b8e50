"""Unit tests for the schema directory."""

from erpchat.database import DEMO_SCHEMA, SUGGESTED_QUESTIONS, SchemaDirectory
from erpchat.models import SchemaEntry


class TestDemoSchema:
    def test_demo_doctypes(self):
        assert [entry.name for entry in DEMO_SCHEMA] == [
            "Sales Invoice",
            "Customer",
            "Item",
            "Employee",
        ]
        assert all(entry.is_loaded for entry in DEMO_SCHEMA)

    def test_five_starter_questions(self):
        assert len(SUGGESTED_QUESTIONS) == 5


class TestSchemaDirectory:
    def test_starts_in_demo_mode(self):
        directory = SchemaDirectory.demo()

        assert directory.is_demo
        assert len(directory) == 4
        assert "Customer" in directory

    def test_replace_with_names(self):
        directory = SchemaDirectory.demo()

        directory.replace_with_names(["Customer", "Supplier", "Customer", ""])

        assert not directory.is_demo
        assert directory.table_names == ["Customer", "Supplier"]
        assert directory.get("Customer").is_loaded is False
        assert "Employee" not in directory

    def test_record_fills_placeholder(self, sales_invoice_schema):
        directory = SchemaDirectory.demo()
        directory.replace_with_names(["Sales Invoice"])

        directory.record(sales_invoice_schema)

        assert directory.get("Sales Invoice").is_loaded
        assert len(directory) == 1

    def test_reset_to_demo(self):
        directory = SchemaDirectory.demo()
        directory.replace_with_names(["Supplier"])

        directory.reset_to_demo()

        assert directory.is_demo
        assert directory.table_names == [entry.name for entry in DEMO_SCHEMA]

    def test_entries_preserve_order(self):
        directory = SchemaDirectory([SchemaEntry(name="B"), SchemaEntry(name="A")], demo=False)

        assert [entry.name for entry in directory.entries] == ["B", "A"]
