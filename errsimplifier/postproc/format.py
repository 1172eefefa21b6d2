"""Readability formatting for model explanations."""

from __future__ import annotations

import re

_BLANK_RUN = re.compile(r"\n\s*\n")
_NUMBERED_MARKER = re.compile(r"(\d+\.)(?!\d)\s*")
_BOLD = re.compile(r"\*\*(.*?)\*\*")


def format_explanation(raw_text: str) -> str:
    """Collapse blank runs, break before numbered items, and tidy bold spans."""
    text = _BLANK_RUN.sub("\n\n", raw_text)
    text = _NUMBERED_MARKER.sub(lambda match: f"\n{match.group(1)} ", text)
    # Breaking before a number can reopen a blank run.
    text = _BLANK_RUN.sub("\n\n", text)
    return _BOLD.sub(lambda match: f"**{match.group(1).strip()}**", text)


__all__ = ["format_explanation"]
