"""Shared constants for explanation prompting."""

from __future__ import annotations

SYSTEM_PROMPT = (
    "You are a helpful programming assistant. "
    "Explain errors in simple terms with 1-2 sentence solutions."
)

USER_TEMPLATE = "explain.j2"
COMPLETION_TEMPLATE = "completion.j2"


__all__ = ["COMPLETION_TEMPLATE", "SYSTEM_PROMPT", "USER_TEMPLATE"]
