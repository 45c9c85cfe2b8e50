"""Conversation pipeline and session state machine."""

from erpchat.pipeline.orchestrator import InsightPipeline, PipelineState
from erpchat.pipeline.session import ConversationSession, SessionBusyError

__all__ = ["ConversationSession", "InsightPipeline", "PipelineState", "SessionBusyError"]
