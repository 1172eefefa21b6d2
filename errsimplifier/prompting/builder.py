"""Builds explanation prompts from Jinja templates."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List

from jinja2 import Environment, FileSystemLoader

from ..models import ExplanationRequest
from .constants import COMPLETION_TEMPLATE, SYSTEM_PROMPT, USER_TEMPLATE


@dataclass(frozen=True)
class PromptMessage:
    """Represents a single chat message for LLM prompting."""

    role: str
    content: str


@dataclass(frozen=True)
class ExplanationPrompt:
    """Prompt for one failure, in both chat and single-string form."""

    messages: List[PromptMessage]
    text: str

    def as_payload_messages(self) -> list[dict[str, str]]:
        return [{"role": message.role, "content": message.content} for message in self.messages]


class PromptBuilder:
    """Renders the system + user prompt asking for a plain-language explanation."""

    SYSTEM_PROMPT = SYSTEM_PROMPT

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir
        self._env = self._create_env(templates_dir)

    def build(self, request: ExplanationRequest) -> ExplanationPrompt:
        user_prompt = self._env.get_template(USER_TEMPLATE).render(
            language=request.language,
            kind=request.kind.value,
            error=request.cleaned_error_text,
        )
        text = self._env.get_template(COMPLETION_TEMPLATE).render(
            system=self.SYSTEM_PROMPT,
            prompt=user_prompt,
        )
        return ExplanationPrompt(
            messages=[
                PromptMessage(role="system", content=self.SYSTEM_PROMPT),
                PromptMessage(role="user", content=user_prompt),
            ],
            text=text,
        )

    @staticmethod
    def _create_env(templates_dir: Path | None) -> Environment:
        directories = []
        if templates_dir:
            directories.append(str(templates_dir))
        directories.append(str(Path(__file__).with_name("templates")))
        loader = FileSystemLoader(directories)
        return Environment(loader=loader, autoescape=False, trim_blocks=True, lstrip_blocks=True)


__all__ = ["ExplanationPrompt", "PromptBuilder", "PromptMessage"]
