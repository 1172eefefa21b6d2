"""Noise removal for compiler and runtime error output."""

from __future__ import annotations

import re

_INFO_MARKER = "Note:"


def clean_error_text(raw_text: str, context_path: str) -> str:
    """Strip ``context_path`` occurrences and informational lines from ``raw_text``."""
    if not raw_text:
        return ""
    text = raw_text
    if context_path:
        pattern = re.compile(re.escape(context_path))
        # Removal can splice a new occurrence together ("/a/a/b" minus "/a/b").
        while pattern.search(text):
            text = pattern.sub("", text)
    lines = [line for line in text.split("\n") if _INFO_MARKER not in line]
    return "\n".join(lines).strip()


__all__ = ["clean_error_text"]
