"""Prompt templates for the reasoning steps."""

from erpchat.prompts.loader import PromptLoader

__all__ = ["PromptLoader"]
