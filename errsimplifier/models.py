"""Core data models shared across errsimplifier components."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union


class ErrorKind(str, Enum):
    """Which toolchain step produced the failure."""

    COMPILATION = "compilation"
    RUNTIME = "runtime"


class FailureReason(str, Enum):
    """Terminal failure classes of an explanation request."""

    INVALID_CREDENTIAL = "invalid_credential"
    RATE_LIMITED = "rate_limited"
    MODEL_NOT_FOUND = "model_not_found"
    NO_RESPONSE = "no_response"
    TRANSPORT = "transport"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ExecutionRequest:
    """A single compile-and-run invocation for one source file."""

    source_path: str
    working_directory: str
    entry_name: str

    @classmethod
    def for_source(cls, path: str | Path) -> "ExecutionRequest":
        source = Path(path).expanduser().resolve()
        return cls(
            source_path=str(source),
            working_directory=str(source.parent),
            entry_name=source.stem,
        )


@dataclass(frozen=True)
class ProcessResult:
    """Captured streams and exit status of a child process."""

    stdout: str
    stderr: str
    exit_code: int

    @property
    def failed(self) -> bool:
        return bool(self.stderr.strip()) or self.exit_code != 0


@dataclass(frozen=True)
class ErrorContext:
    """Raw failure output of a toolchain step."""

    raw_text: str
    kind: ErrorKind
    context_path: str

    def cleaned(self) -> str:
        from .cleaning import clean_error_text

        return clean_error_text(self.raw_text, self.context_path)


@dataclass(frozen=True)
class ExplanationRequest:
    """Everything the explanation client needs for one failure."""

    cleaned_error_text: str
    kind: ErrorKind
    model_id: str
    max_tokens: int
    temperature: float
    language: str = "Java"

    def __post_init__(self) -> None:
        if not 0.0 <= self.temperature <= 1.0:
            raise ValueError(f"temperature must be within 0..1, got {self.temperature}")
        if self.max_tokens <= 0:
            raise ValueError(f"max_tokens must be positive, got {self.max_tokens}")


@dataclass(frozen=True)
class ExplanationResult:
    """Plain-language explanation returned by the model."""

    text: str

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class ExplanationFailure:
    """Why an explanation could not be produced."""

    reason: FailureReason
    message: str

    @property
    def ok(self) -> bool:
        return False


Explanation = Union[ExplanationResult, ExplanationFailure]


@dataclass(frozen=True)
class StageOutcome:
    """What a compile-and-run invocation ended with.

    ``kind`` is ``None`` when both steps succeeded; otherwise it names the
    failing step and ``cleaned_error``/``explanation`` hold what was shown.
    """

    kind: Optional[ErrorKind]
    output: str = ""
    cleaned_error: str = ""
    explanation: Optional[Explanation] = None

    @property
    def succeeded(self) -> bool:
        return self.kind is None


__all__ = [
    "ErrorContext",
    "ErrorKind",
    "ExecutionRequest",
    "Explanation",
    "ExplanationFailure",
    "ExplanationRequest",
    "ExplanationResult",
    "FailureReason",
    "ProcessResult",
    "StageOutcome",
]
