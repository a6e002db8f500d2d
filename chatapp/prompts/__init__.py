"""
Prompt System for chat

Provides the system prompt and title-generation prompt templates.
"""

from chatapp.prompts.base import PromptBuilder, clean_title, TITLE_MAX_LENGTH

__all__ = ["PromptBuilder", "clean_title", "TITLE_MAX_LENGTH"]
