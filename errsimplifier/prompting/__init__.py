"""Prompt construction for error explanations."""

from .builder import ExplanationPrompt, PromptBuilder, PromptMessage
from .constants import SYSTEM_PROMPT

__all__ = ["ExplanationPrompt", "PromptBuilder", "PromptMessage", "SYSTEM_PROMPT"]
