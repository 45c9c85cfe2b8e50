"""
Conversation Session

Owns the chat log, long-term memory and Frappe connection for one user,
and drives each turn through the InsightPipeline:

    user message + thinking placeholder
        → status updates (placeholder replaced by id)
        → placeholder replaced by the answer or an error message

Only one turn runs at a time. A result whose placeholder disappeared
(session reset while the turn was running) is discarded.
"""

import logging
from collections.abc import Awaitable, Callable

from pydantic import ValidationError

from erpchat.agents.context import build_context
from erpchat.config import get_settings
from erpchat.connectors.base import BaseDataGateway, GatewayError
from erpchat.connectors.frappe import FrappeGateway
from erpchat.conversations.store import (
    CHAT_HISTORY_KEY,
    FRAPPE_CONFIG_KEY,
    LONG_TERM_MEMORY_KEY,
    BaseSessionStore,
)
from erpchat.database.catalog import SchemaDirectory
from erpchat.database.demo import GREETING
from erpchat.models import ConnectionOutcome, Message, SessionConfig
from erpchat.pipeline.orchestrator import InsightPipeline

logger = logging.getLogger(__name__)

MessageListener = Callable[[Message], Awaitable[None]]


class SessionBusyError(RuntimeError):
    """A turn is already in flight."""


class ConversationSession:
    """
    Turn state machine plus session lifecycle.

    Usage:
        session = ConversationSession(store=JsonFileSessionStore(path))
        await session.restore()
        reply = await session.submit("Top 5 customers by revenue")
    """

    def __init__(
        self,
        store: BaseSessionStore,
        gateway: BaseDataGateway | None = None,
        directory: SchemaDirectory | None = None,
        pipeline: InsightPipeline | None = None,
        llm_provider=None,
        on_update: MessageListener | None = None,
    ):
        self.settings = get_settings()
        self.store = store
        self.gateway = gateway or FrappeGateway(
            timeout=self.settings.frappe.timeout,
            verify_ssl=self.settings.frappe.verify_ssl,
            list_limit=self.settings.frappe.list_limit,
        )
        self.directory = directory or SchemaDirectory.demo()
        self.on_update = on_update
        self._pipeline = pipeline
        self._llm_provider = llm_provider

        self.messages: list[Message] = []
        self.memory: list[str] = []
        self.config: SessionConfig | None = None
        self.is_busy = False

    @property
    def pipeline(self) -> InsightPipeline:
        if self._pipeline is None:
            self._pipeline = InsightPipeline(
                gateway=self.gateway,
                directory=self.directory,
                llm_provider=self._llm_provider,
            )
        return self._pipeline

    @property
    def is_connected(self) -> bool:
        return self.config is not None

    # ========================================================================
    # Lifecycle
    # ========================================================================

    def load(self) -> None:
        """Restore history, connection and memory from the store."""
        self.messages = self._load_messages()
        self.memory = [str(fact) for fact in self.store.load(LONG_TERM_MEMORY_KEY) or []]

        raw_config = self.store.load(FRAPPE_CONFIG_KEY)
        self.config = None
        if raw_config:
            try:
                self.config = SessionConfig.model_validate(raw_config)
            except ValidationError as e:
                logger.warning(f"Ignoring invalid stored Frappe config: {e}")

        if not self.messages:
            self.messages = [Message(sender="bot", text=GREETING)]

        logger.info(
            "Session loaded",
            extra={
                "messages": len(self.messages),
                "memory_facts": len(self.memory),
                "connected": self.is_connected,
            },
        )

    async def restore(self) -> None:
        """Load persisted state and re-discover tables for a stored connection."""
        self.load()
        if self.config is None or not self.directory.is_demo:
            return
        try:
            names = await self.gateway.list_tables(self.config)
        except GatewayError as e:
            logger.warning(
                f"Could not re-discover DocTypes for {self.config.url}: {e}",
                extra={"url": self.config.url},
            )
            return
        self.directory.replace_with_names(names)

    async def connect(self, config: SessionConfig) -> ConnectionOutcome:
        """
        Verify credentials, then switch to connected mode and discover tables.

        A failed listing after a successful check keeps the connection and
        reports a qualified success.
        """
        if not await self.gateway.check_connection(config):
            logger.warning("Connection check failed", extra={"url": config.url})
            return ConnectionOutcome(
                success=False,
                message="Connection failed. Please check your URL and API keys.",
            )

        self.config = config
        self.store.save(FRAPPE_CONFIG_KEY, config.model_dump(mode="json", by_alias=True))

        try:
            names = await self.gateway.list_tables(config)
        except GatewayError as e:
            message = f"Connected to {config.url}, but failed to fetch DocTypes: {e}"
            logger.warning(message, extra={"url": config.url})
            self._append(Message(sender="bot", text=message))
            return ConnectionOutcome(success=True, message=message, tables_loaded=False)

        self.directory.replace_with_names(names)
        message = (
            f"Successfully connected to {config.url}! \n\n"
            f"I found {len(names)} DocTypes. You can now ask me anything about your data, "
            "and I will figure out which tables to query."
        )
        self._append(Message(sender="bot", text=message))
        return ConnectionOutcome(
            success=True, message=message, table_count=len(names), tables_loaded=True
        )

    def reset(self) -> None:
        """Clear history, connection and memory and return to demo mode."""
        self.store.clear_all()
        self.config = None
        self.memory = []
        self.directory.reset_to_demo()
        self.messages = [Message(sender="bot", text=GREETING)]
        self._persist_history()
        logger.info("Session reset")

    # ========================================================================
    # Memory
    # ========================================================================

    def add_memory(self, fact: str) -> list[str]:
        fact = fact.strip()
        if not fact:
            raise ValueError("Memory fact must not be empty")
        self.memory.append(fact)
        self.store.save(LONG_TERM_MEMORY_KEY, self.memory)
        return self.memory

    def remove_memory(self, index: int) -> str:
        """Remove a fact by position. Raises IndexError for a bad index."""
        if index < 0 or index >= len(self.memory):
            raise IndexError(f"No memory fact at index {index}")
        removed = self.memory.pop(index)
        self.store.save(LONG_TERM_MEMORY_KEY, self.memory)
        return removed

    # ========================================================================
    # Turns
    # ========================================================================

    async def submit(self, text: str) -> Message | None:
        """
        Run one turn.

        Returns:
            The terminal bot message, or None for blank input or a result
            discarded because the session was reset mid-turn.

        Raises:
            SessionBusyError: If a turn is already running
        """
        text = text.strip()
        if not text:
            return None
        if self.is_busy:
            raise SessionBusyError("A request is already being processed")

        self.is_busy = True
        try:
            history = [message for message in self.messages if not message.is_thinking]
            placeholder = Message.thinking()
            self._append(Message.user(text))
            self._append(placeholder)

            async def on_status(status: str) -> None:
                updated = self._find(placeholder.id)
                if updated is None:
                    return
                updated = updated.model_copy(update={"status_message": status})
                self._replace(placeholder.id, updated)
                await self._notify(updated)

            # every exit path below replaces the placeholder
            try:
                await self._notify(placeholder)
                context = build_context(
                    history, self.memory, window=self.settings.pipeline.history_window
                )
                state = await self.pipeline.run(
                    text, context=context, config=self.config, status_callback=on_status
                )
                if state.get("error"):
                    result = Message.failure(
                        state["error"], text, state.get("error_type"), message_id=placeholder.id
                    )
                else:
                    result = Message.answer(state["insight"], message_id=placeholder.id)
            except Exception as e:
                logger.error(f"Turn failed unexpectedly: {e}", exc_info=True)
                result = Message.failure(str(e), text, type(e).__name__, message_id=placeholder.id)

            if not self._replace(placeholder.id, result):
                logger.info("Discarding result of a turn superseded by reset")
                return None
            self._persist_history()
            await self._notify(result)
            return result
        finally:
            self.is_busy = False

    async def retry(self, message_id: str) -> Message | None:
        """Re-submit the question behind a failed message."""
        message = self._find(message_id)
        if message is None or not message.is_error or not message.original_query:
            raise KeyError(f"No failed message with id {message_id}")
        return await self.submit(message.original_query)

    # ========================================================================
    # Helpers
    # ========================================================================

    def _find(self, message_id: str) -> Message | None:
        for message in self.messages:
            if message.id == message_id:
                return message
        return None

    def _replace(self, message_id: str, message: Message) -> bool:
        for index, existing in enumerate(self.messages):
            if existing.id == message_id:
                self.messages[index] = message
                return True
        return False

    def _append(self, message: Message) -> None:
        self.messages.append(message)
        self._persist_history()

    def _persist_history(self) -> None:
        self.store.save(
            CHAT_HISTORY_KEY,
            [
                message.model_dump(mode="json", by_alias=True, exclude_none=True)
                for message in self.messages
                if not message.is_thinking
            ],
        )

    def _load_messages(self) -> list[Message]:
        messages = []
        for raw in self.store.load(CHAT_HISTORY_KEY) or []:
            try:
                message = Message.model_validate(raw)
            except ValidationError as e:
                logger.warning(f"Skipping invalid stored message: {e}")
                continue
            if not message.is_thinking:
                messages.append(message)
        return messages

    async def _notify(self, message: Message) -> None:
        if self.on_update is None:
            return
        try:
            await self.on_update(message)
        except Exception as e:
            logger.warning(
                f"Update listener failed: {e}", extra={"message_id": message.id}
            )
