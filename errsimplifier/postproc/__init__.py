"""Post-processing for model output."""

from .format import format_explanation

__all__ = ["format_explanation"]
