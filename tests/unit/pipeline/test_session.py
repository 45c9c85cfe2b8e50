"""
Unit tests for ConversationSession.

Covers the turn state machine (placeholder, status updates, terminal
message), connection lifecycle, memory and persistence.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from erpchat.connectors.base import ConnectivityError
from erpchat.conversations.store import (
    CHAT_HISTORY_KEY,
    FRAPPE_CONFIG_KEY,
    LONG_TERM_MEMORY_KEY,
)
from erpchat.database.demo import GREETING
from erpchat.models import InsightResponse, Message
from erpchat.pipeline.session import ConversationSession, SessionBusyError


def _pipeline(state=None, side_effect=None):
    pipeline = MagicMock()
    pipeline.run = AsyncMock(return_value=state, side_effect=side_effect)
    return pipeline


def _success_state(answer="Acme leads with 1,200."):
    return {"error": None, "insight": InsightResponse(answer=answer, suggested_questions=["More?"])}


@pytest.fixture
def session(memory_store, mock_gateway):
    session = ConversationSession(
        store=memory_store, gateway=mock_gateway, pipeline=_pipeline(_success_state())
    )
    session.load()
    return session


class TestLoad:
    def test_empty_store_shows_greeting(self, session):
        assert len(session.messages) == 1
        assert session.messages[0].text == GREETING
        assert session.is_connected is False

    def test_restores_history_memory_and_config(self, memory_store, mock_gateway, session_config):
        memory_store.save(
            CHAT_HISTORY_KEY,
            [Message.user("Hi").model_dump(mode="json", by_alias=True)],
        )
        memory_store.save(LONG_TERM_MEMORY_KEY, ["Use USD"])
        memory_store.save(FRAPPE_CONFIG_KEY, session_config.model_dump(mode="json", by_alias=True))

        session = ConversationSession(store=memory_store, gateway=mock_gateway)
        session.load()

        assert [m.text for m in session.messages] == ["Hi"]
        assert session.memory == ["Use USD"]
        assert session.config == session_config

    def test_invalid_stored_config_is_ignored(self, memory_store, mock_gateway):
        memory_store.save(FRAPPE_CONFIG_KEY, {"url": "not-a-url"})

        session = ConversationSession(store=memory_store, gateway=mock_gateway)
        session.load()

        assert session.config is None

    @pytest.mark.asyncio
    async def test_restore_rediscovers_tables(self, memory_store, mock_gateway, session_config):
        memory_store.save(FRAPPE_CONFIG_KEY, session_config.model_dump(mode="json", by_alias=True))
        session = ConversationSession(store=memory_store, gateway=mock_gateway)

        await session.restore()

        assert session.directory.table_names == ["Customer", "Item", "Sales Invoice"]
        assert not session.directory.is_demo

    @pytest.mark.asyncio
    async def test_restore_tolerates_discovery_failure(self, memory_store, mock_gateway, session_config):
        memory_store.save(FRAPPE_CONFIG_KEY, session_config.model_dump(mode="json", by_alias=True))
        mock_gateway.list_tables.side_effect = ConnectivityError("down")
        session = ConversationSession(store=memory_store, gateway=mock_gateway)

        await session.restore()

        assert session.is_connected
        assert session.directory.is_demo


class TestSubmit:
    @pytest.mark.asyncio
    async def test_success_replaces_placeholder(self, session):
        reply = await session.submit("Top customers")

        assert reply.state == "answer"
        assert reply.text == "Acme leads with 1,200."
        assert [m.sender for m in session.messages] == ["bot", "user", "bot"]
        assert not any(m.is_thinking for m in session.messages)
        assert session.messages[-1] is reply
        assert session.is_busy is False

    @pytest.mark.asyncio
    async def test_blank_input_is_ignored(self, session):
        assert await session.submit("   ") is None
        assert len(session.messages) == 1
        session.pipeline.run.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_pipeline_error_becomes_failure_message(self, session):
        session._pipeline = _pipeline(
            {"error": "Field not permitted in query: foo", "error_type": "QueryError"}
        )

        reply = await session.submit("Top customers")

        assert reply.state == "error"
        assert "Field not permitted in query: foo" in reply.text
        assert reply.original_query == "Top customers"
        assert reply.error_type == "QueryError"

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_failure_message(self, session):
        session._pipeline = _pipeline(side_effect=RuntimeError("graph exploded"))

        reply = await session.submit("Top customers")

        assert reply.state == "error"
        assert reply.error_type == "RuntimeError"
        assert session.is_busy is False
        assert not any(m.is_thinking for m in session.messages)

    @pytest.mark.asyncio
    async def test_status_updates_reach_listener(self, session):
        async def run(text, context, config, status_callback):
            await status_callback("Scanning 3 DocTypes...")
            return _success_state()

        session._pipeline = _pipeline(side_effect=run)
        updates = []

        async def listener(message):
            updates.append((message.state, message.status_message))

        session.on_update = listener

        await session.submit("Top customers")

        assert updates == [
            ("thinking", "Initializing..."),
            ("thinking", "Scanning 3 DocTypes..."),
            ("answer", None),
        ]

    @pytest.mark.asyncio
    async def test_failing_listener_still_gets_terminal_message(self, session):
        async def listener(message):
            raise RuntimeError("ui gone")

        session.on_update = listener

        reply = await session.submit("Top customers")

        assert reply.state == "answer"
        assert [m.state for m in session.messages] == ["answer", "answer", "answer"]
        assert not any(m.is_thinking for m in session.messages)
        assert session.is_busy is False

    @pytest.mark.asyncio
    async def test_listener_failing_on_status_only(self, session):
        async def run(text, context, config, status_callback):
            await status_callback("Scanning 3 DocTypes...")
            return _success_state()

        session._pipeline = _pipeline(side_effect=run)
        seen = []

        async def listener(message):
            seen.append(message.state)
            if message.is_thinking:
                raise RuntimeError("render failed")

        session.on_update = listener

        reply = await session.submit("Top customers")

        assert reply.state == "answer"
        assert seen == ["thinking", "thinking", "answer"]
        assert session.messages[-1] is reply

    @pytest.mark.asyncio
    async def test_context_excludes_current_question(self, session):
        session.add_memory("Use USD")

        await session.submit("Top customers")

        context = session.pipeline.run.await_args.kwargs["context"]
        assert context.memory == ("Use USD",)
        assert [turn.text for turn in context.turns] == [GREETING]

    @pytest.mark.asyncio
    async def test_concurrent_submit_is_rejected(self, session):
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow_run(text, context, config, status_callback):
            started.set()
            await release.wait()
            return _success_state()

        session._pipeline = _pipeline(side_effect=slow_run)
        first = asyncio.create_task(session.submit("first"))
        await started.wait()

        with pytest.raises(SessionBusyError):
            await session.submit("second")

        release.set()
        reply = await first
        assert reply.state == "answer"
        assert [m.text for m in session.messages if m.sender == "user"] == ["first"]

    @pytest.mark.asyncio
    async def test_reset_mid_turn_discards_result(self, session):
        async def run_then_reset(text, context, config, status_callback):
            session.reset()
            return _success_state()

        session._pipeline = _pipeline(side_effect=run_then_reset)

        assert await session.submit("Top customers") is None
        assert [m.text for m in session.messages] == [GREETING]

    @pytest.mark.asyncio
    async def test_history_is_persisted_without_placeholders(self, session, memory_store):
        await session.submit("Top customers")

        stored = memory_store.load(CHAT_HISTORY_KEY)
        assert [m["sender"] for m in stored] == ["bot", "user", "bot"]
        assert not any(m["isThinking"] for m in stored)


class TestRetry:
    @pytest.mark.asyncio
    async def test_retry_resubmits_original_query(self, session):
        session._pipeline = _pipeline({"error": "timeout", "error_type": "LLMError"})
        failed = await session.submit("Top customers")
        session._pipeline = _pipeline(_success_state())

        reply = await session.retry(failed.id)

        assert reply.state == "answer"
        assert session.pipeline.run.await_args.args[0] == "Top customers"
        assert [m.text for m in session.messages if m.sender == "user"] == [
            "Top customers",
            "Top customers",
        ]

    @pytest.mark.asyncio
    async def test_retry_unknown_message_raises(self, session):
        with pytest.raises(KeyError):
            await session.retry("missing")


class TestConnect:
    @pytest.mark.asyncio
    async def test_success(self, session, mock_gateway, memory_store, session_config):
        outcome = await session.connect(session_config)

        assert outcome.success and outcome.tables_loaded
        assert outcome.table_count == 3
        assert session.is_connected
        assert session.directory.table_names == ["Customer", "Item", "Sales Invoice"]
        assert "I found 3 DocTypes" in session.messages[-1].text
        assert memory_store.load(FRAPPE_CONFIG_KEY)["url"] == "https://erp.example.com"

    @pytest.mark.asyncio
    async def test_rejected_credentials(self, session, mock_gateway, session_config):
        mock_gateway.check_connection.return_value = False

        outcome = await session.connect(session_config)

        assert outcome.success is False
        assert outcome.message == "Connection failed. Please check your URL and API keys."
        assert session.is_connected is False
        mock_gateway.list_tables.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_discovery_failure_is_qualified_success(self, session, mock_gateway, session_config):
        mock_gateway.list_tables.side_effect = ConnectivityError("HTTP 500")

        outcome = await session.connect(session_config)

        assert outcome.success is True
        assert outcome.tables_loaded is False
        assert session.is_connected
        assert outcome.message.startswith("Connected to https://erp.example.com, but failed")
        assert session.messages[-1].text == outcome.message


class TestResetAndMemory:
    @pytest.mark.asyncio
    async def test_reset_clears_everything(self, session, memory_store, session_config):
        await session.connect(session_config)
        session.add_memory("Use USD")
        await session.submit("Top customers")

        session.reset()

        assert session.is_connected is False
        assert session.memory == []
        assert session.directory.is_demo
        assert [m.text for m in session.messages] == [GREETING]
        assert memory_store.load(FRAPPE_CONFIG_KEY) is None
        assert memory_store.load(LONG_TERM_MEMORY_KEY) is None

    def test_add_then_remove_restores_memory(self, session, memory_store):
        session.add_memory("A")
        session.add_memory("B")
        session.add_memory("C")

        session.remove_memory(1)

        assert session.memory == ["A", "C"]
        assert memory_store.load(LONG_TERM_MEMORY_KEY) == ["A", "C"]

    def test_blank_fact_rejected(self, session):
        with pytest.raises(ValueError):
            session.add_memory("  ")

    def test_bad_index_rejected(self, session):
        with pytest.raises(IndexError):
            session.remove_memory(0)
