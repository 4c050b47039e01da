"""Prompt templates for the chat assistant."""

from .history import format_history
from .service import BUILTIN_PROMPTS_DIR, PromptService, PromptTemplate

__all__ = ["format_history", "BUILTIN_PROMPTS_DIR", "PromptService", "PromptTemplate"]
