"""Unit tests for TableSelectorAgent."""

import pytest

from erpchat.agents.table_selector import TableSelectorAgent
from erpchat.models import ConversationContext, ContextTurn, LLMError, TableSelectorInput

TABLES = ["Customer", "Item", "Sales Invoice", "Employee"]


@pytest.fixture
def agent(mock_llm_provider):
    return TableSelectorAgent(llm_provider=mock_llm_provider)


def _input(query: str = "Top 5 customers by revenue", **kwargs) -> TableSelectorInput:
    return TableSelectorInput(query=query, table_names=TABLES, **kwargs)


class TestTableSelectorAgent:
    @pytest.mark.asyncio
    async def test_returns_selected_tables(self, agent, mock_llm_provider):
        mock_llm_provider.set_response('["Sales Invoice", "Customer"]')

        output = await agent(_input())

        assert output.success is True
        assert output.tables == ["Sales Invoice", "Customer"]

    @pytest.mark.asyncio
    async def test_prompt_lists_every_table_and_context(self, agent, mock_llm_provider):
        mock_llm_provider.set_response("[]")
        context = ConversationContext(
            memory=("Fiscal year starts in April",),
            turns=(ContextTurn(role="User", text="Show invoices"),),
        )

        await agent(_input(context=context))

        prompt = mock_llm_provider.prompts[0]
        assert "Customer, Item, Sales Invoice, Employee" in prompt
        assert "Fiscal year starts in April" in prompt
        assert "User: Show invoices" in prompt
        assert 'User Query: "Top 5 customers by revenue"' in prompt

    @pytest.mark.asyncio
    async def test_caps_at_max_tables(self, agent, mock_llm_provider):
        mock_llm_provider.set_response('["Customer", "Item", "Sales Invoice", "Employee"]')

        output = await agent(_input(max_tables=3))

        assert output.tables == ["Customer", "Item", "Sales Invoice"]

    @pytest.mark.asyncio
    async def test_unparseable_output_means_no_tables(self, agent, mock_llm_provider):
        mock_llm_provider.set_response("Sales Invoice")

        output = await agent(_input())

        assert output.tables == []

    @pytest.mark.asyncio
    async def test_non_list_output_means_no_tables(self, agent, mock_llm_provider):
        mock_llm_provider.set_response('{"tables": ["Customer"]}')

        output = await agent(_input())

        assert output.tables == []

    @pytest.mark.asyncio
    async def test_drops_blank_duplicate_and_non_string_names(self, agent, mock_llm_provider):
        mock_llm_provider.set_response('[" Customer ", "", "Customer", 7, "Item"]')

        output = await agent(_input())

        assert output.tables == ["Customer", "Item"]

    @pytest.mark.asyncio
    async def test_unknown_names_pass_through(self, agent, mock_llm_provider):
        mock_llm_provider.set_response('["Purchase Order"]')

        output = await agent(_input())

        assert output.tables == ["Purchase Order"]

    @pytest.mark.asyncio
    async def test_service_failure_raises_llm_error(self, agent, mock_llm_provider):
        mock_llm_provider.generate.side_effect = ConnectionError("unreachable")

        with pytest.raises(LLMError):
            await agent(_input())
