"""ERPChat: conversational analytics over Frappe/ERPNext data."""

__version__ = "0.1.0"
