"""User interaction surfaces for errors, explanations, and program output."""

from __future__ import annotations

import getpass
import sys
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol, Sequence, TextIO

from .models import Explanation, ExplanationFailure

SHOW_EXPLANATION = "Show Explanation"
ERROR_PREVIEW_LIMIT = 200


class Presenter(Protocol):
    """What the compile-run stage needs from a user interface."""

    def show_error(self, message: str, actions: Sequence[str] = ()) -> Optional[str]: ...

    def show_info(self, message: str, *, detail: str | None = None) -> None: ...

    def prompt_input(self, prompt: str, *, secret: bool = False) -> Optional[str]: ...

    def show_progress(self, title: str, message: str) -> None: ...

    def show_output(self, output: str) -> None: ...

    def present_failure(self, cleaned_error: str, explanation: Explanation) -> None: ...


def truncate_error(error: str, limit: int = ERROR_PREVIEW_LIMIT) -> str:
    return error[:limit] + "..." if len(error) > limit else error


def describe_explanation(explanation: Explanation) -> str:
    if isinstance(explanation, ExplanationFailure):
        return f"Could not get explanation: {explanation.message}"
    return explanation.text


class ConsolePresenter:
    """Terminal presenter; ``interactive=False`` accepts the first action automatically."""

    def __init__(
        self,
        *,
        interactive: bool = True,
        language: str = "Java",
        stream: TextIO | None = None,
        input_func: Callable[[str], str] | None = None,
        secret_func: Callable[[str], str] | None = None,
    ) -> None:
        self.interactive = interactive
        self.language = language
        self.stream = stream or sys.stdout
        self._input = input_func or input
        self._secret = secret_func or getpass.getpass

    def show_error(self, message: str, actions: Sequence[str] = ()) -> Optional[str]:
        self._write(f"ERROR: {message}")
        if not actions:
            return None
        if not self.interactive:
            return actions[0]
        for index, action in enumerate(actions, start=1):
            self._write(f"  [{index}] {action}")
        try:
            answer = self._input("Select an option (Enter to dismiss): ").strip()
        except EOFError:
            return None
        if answer.isdigit() and 1 <= int(answer) <= len(actions):
            return actions[int(answer) - 1]
        return None

    def show_info(self, message: str, *, detail: str | None = None) -> None:
        self._write(message)
        if detail:
            self._write(f"({detail})")

    def prompt_input(self, prompt: str, *, secret: bool = False) -> Optional[str]:
        if not self.interactive:
            return None
        reader = self._secret if secret else self._input
        try:
            value = reader(f"{prompt}: ")
        except EOFError:
            return None
        value = value.strip()
        return value or None

    def show_progress(self, title: str, message: str) -> None:
        self._write(f"{title}: {message}")

    def show_output(self, output: str) -> None:
        self._write(f"Program Output:\n{output}")

    def present_failure(self, cleaned_error: str, explanation: Explanation) -> None:
        choice = self.show_error(
            f"{self.language} Error: {truncate_error(cleaned_error)}",
            [SHOW_EXPLANATION],
        )
        if choice == SHOW_EXPLANATION:
            self.show_info(
                f"Error Explanation:\n\n{describe_explanation(explanation)}",
                detail="Detailed explanation from AI assistant",
            )

    def _write(self, text: str) -> None:
        self.stream.write(text.rstrip("\n") + "\n")
        self.stream.flush()


@dataclass
class RecordingPresenter:
    """Collects everything presented; used by service mode and tests."""

    inputs: List[Optional[str]] = field(default_factory=list)
    choose: Optional[str] = SHOW_EXPLANATION
    errors: List[str] = field(default_factory=list)
    infos: List[str] = field(default_factory=list)
    progress: List[str] = field(default_factory=list)
    outputs: List[str] = field(default_factory=list)
    failures: List[tuple[str, Explanation]] = field(default_factory=list)

    def show_error(self, message: str, actions: Sequence[str] = ()) -> Optional[str]:
        self.errors.append(message)
        if self.choose is not None and self.choose in actions:
            return self.choose
        return None

    def show_info(self, message: str, *, detail: str | None = None) -> None:
        self.infos.append(message)

    def prompt_input(self, prompt: str, *, secret: bool = False) -> Optional[str]:
        return self.inputs.pop(0) if self.inputs else None

    def show_progress(self, title: str, message: str) -> None:
        self.progress.append(f"{title}: {message}")

    def show_output(self, output: str) -> None:
        self.outputs.append(output)

    def present_failure(self, cleaned_error: str, explanation: Explanation) -> None:
        self.failures.append((cleaned_error, explanation))
        self.errors.append(f"Error: {truncate_error(cleaned_error)}")
        self.infos.append(describe_explanation(explanation))


__all__ = [
    "ConsolePresenter",
    "Presenter",
    "RecordingPresenter",
    "SHOW_EXPLANATION",
    "describe_explanation",
    "truncate_error",
]
