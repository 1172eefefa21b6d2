"""Compile, run, and explain source file failures in plain language."""

from .cleaning import clean_error_text
from .models import (
    ErrorKind,
    ExecutionRequest,
    ExplanationFailure,
    ExplanationRequest,
    ExplanationResult,
    FailureReason,
)

__version__ = "0.2.0"

__all__ = [
    "ErrorKind",
    "ExecutionRequest",
    "ExplanationFailure",
    "ExplanationRequest",
    "ExplanationResult",
    "FailureReason",
    "clean_error_text",
]
