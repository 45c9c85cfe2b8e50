"""
Base Agent Framework

Abstract base class for the reasoning steps in the ERPChat pipeline.
Provides consistent interface, timing, logging, and error handling.

Usage:
    class MyAgent(BaseAgent):
        def __init__(self):
            super().__init__(name="MyAgent")

        async def execute(self, input: AgentInput) -> AgentOutput:
            return MyAgentOutput(success=True, metadata=self._create_metadata(), ...)
"""

import json
import logging
import re
import time
from abc import ABC, abstractmethod
from typing import Any

from erpchat.config import get_settings
from erpchat.llm.factory import LLMProviderFactory
from erpchat.llm.models import LLMMessage, LLMRequest
from erpchat.models.agent import (
    AgentError,
    AgentInput,
    AgentMetadata,
    AgentOutput,
    LLMError,
)
from erpchat.prompts.loader import PromptLoader

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def parse_json_payload(text: str) -> Any:
    """
    Parse JSON returned by the reasoning service.

    Markdown code fences around the payload are tolerated.

    Raises:
        json.JSONDecodeError: If the text is not valid JSON
    """
    stripped = text.strip()
    match = _FENCE_RE.match(stripped)
    if match:
        stripped = match.group(1)
    return json.loads(stripped)


class BaseAgent(ABC):
    """
    Abstract base class for all agents in the pipeline.

    The __call__ method wraps execute() with:
        - Performance timing
        - Error logging
        - Metadata collection

    There is no automatic retry. A failed step ends the turn and the user
    decides whether to retry the whole question.
    """

    def __init__(self, name: str):
        self.name = name
        self._metadata = self._create_metadata()

        logger.debug(f"Initialized {self.name}", extra={"agent": self.name})

    @abstractmethod
    async def execute(self, input: AgentInput) -> AgentOutput:
        """
        Execute the agent's core logic.

        Raises:
            AgentError: On execution failures
        """
        pass  # pragma: no cover - abstract method

    async def __call__(self, input: AgentInput) -> AgentOutput:
        """
        Execute the agent with timing, logging, and error handling.

        Raises:
            AgentError: Re-raised as is, or wrapping an unexpected exception
        """
        start_time = time.perf_counter()
        self._metadata = self._create_metadata()

        logger.info(
            f"Starting {self.name}",
            extra={"agent": self.name, "query": input.query[:100]},
        )

        try:
            output = await self.execute(input)
        except AgentError as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            self._metadata.error = str(e)
            logger.error(
                f"Failed {self.name}",
                extra={
                    "agent": self.name,
                    "error": str(e),
                    "recoverable": e.recoverable,
                    "duration_ms": duration_ms,
                    "context": e.context,
                },
            )
            raise
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            self._metadata.error = str(e)
            logger.error(
                f"Unexpected error in {self.name}",
                extra={
                    "agent": self.name,
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "duration_ms": duration_ms,
                },
                exc_info=True,
            )
            raise AgentError(
                agent=self.name,
                message=f"Unexpected error: {str(e)}",
                recoverable=False,
                context={"error_type": type(e).__name__},
            ) from e

        duration_ms = (time.perf_counter() - start_time) * 1000
        self._metadata.mark_complete()
        self._metadata.duration_ms = duration_ms
        output.metadata = self._metadata

        logger.info(
            f"Completed {self.name}",
            extra={
                "agent": self.name,
                "success": output.success,
                "duration_ms": duration_ms,
                "llm_calls": self._metadata.llm_calls,
            },
        )
        return output

    def _create_metadata(self) -> AgentMetadata:
        return AgentMetadata(agent_name=self.name)

    def _track_llm_call(self, tokens: int | None = None) -> None:
        """Track an LLM API call in metadata."""
        self._metadata.llm_calls += 1
        if tokens:
            current_tokens = self._metadata.tokens_used or 0
            self._metadata.tokens_used = current_tokens + tokens

        logger.debug(
            f"LLM call tracked for {self.name}",
            extra={
                "agent": self.name,
                "total_llm_calls": self._metadata.llm_calls,
                "tokens_this_call": tokens,
            },
        )


class ReasoningAgent(BaseAgent):
    """
    Base for agents that make one structured reasoning-service call.

    Subclasses render a prompt template and call ``_complete`` with the JSON
    schema the answer must follow.
    """

    def __init__(self, name: str, llm_provider=None, prompts=None):
        super().__init__(name=name)

        self.config = get_settings()
        if llm_provider is None:
            self.llm = LLMProviderFactory.create_default_provider(self.config.llm)
        else:
            self.llm = llm_provider
        self.prompts = prompts or PromptLoader()

    async def _complete(self, user_prompt: str, response_schema: dict[str, Any]) -> str:
        """
        Send the system instruction and prompt, return the raw response text.

        Raises:
            LLMError: If the provider call fails
        """
        request = LLMRequest(
            messages=[
                LLMMessage(role="system", content=self.prompts.load("system/main.md")),
                LLMMessage(role="user", content=user_prompt),
            ],
            response_schema=response_schema,
        )
        try:
            response = await self.llm.generate(request)
        except Exception as e:
            logger.error(f"[{self.name}] LLM call failed: {e}")
            raise LLMError(self.name, f"Reasoning service call failed: {e}") from e

        self._track_llm_call(response.usage.total_tokens)
        return response.content
