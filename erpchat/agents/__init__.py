"""
Agents Module

Reasoning steps of the conversation pipeline.

Available Agents:
    - TableSelectorAgent: picks relevant DocTypes
    - QuerySynthesizerAgent: builds the Frappe list query
    - InsightAgent: answers and charts (grounded or synthetic)

Helpers:
    - build_context: assembles memory and recent turns
    - flatten_chart_data: nested chart points to flat rows
"""

from erpchat.agents.base import BaseAgent, ReasoningAgent
from erpchat.agents.context import build_context
from erpchat.agents.insight import InsightAgent, flatten_chart_data
from erpchat.agents.query_synthesizer import QuerySynthesizerAgent
from erpchat.agents.table_selector import TableSelectorAgent

__all__ = [
    "BaseAgent",
    "ReasoningAgent",
    "build_context",
    "InsightAgent",
    "flatten_chart_data",
    "QuerySynthesizerAgent",
    "TableSelectorAgent",
]
