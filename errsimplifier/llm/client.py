"""Client that turns cleaned error text into a plain-language explanation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from jinja2 import TemplateError

from ..config import LLMConfig
from ..logging import get_logger
from ..models import (
    Explanation,
    ExplanationFailure,
    ExplanationRequest,
    ExplanationResult,
    FailureReason,
)
from ..postproc.format import format_explanation
from ..prompting.builder import ExplanationPrompt, PromptBuilder
from .retry import RetryPolicy
from .transport import (
    STATUS_HTTP_ERROR,
    STATUS_NO_RESPONSE,
    STATUS_OK,
    HttpTransport,
    Transport,
    TransportOutcome,
)

DEFAULT_TIMEOUT = 30.0


class EndpointFlavor(str, Enum):
    """Request/response shape spoken by the remote endpoint."""

    CHAT = "chat"
    COMPLETION = "completion"


@dataclass(frozen=True)
class EndpointSettings:
    """Where and how to reach the text-generation endpoint."""

    base_url: str
    flavor: EndpointFlavor = EndpointFlavor.CHAT
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_config(cls, config: LLMConfig) -> "EndpointSettings":
        return cls(
            base_url=config.base_url,
            flavor=EndpointFlavor(config.flavor),
            timeout=config.request_timeout,
        )

    def url_for(self, model: str) -> str:
        base = self.base_url.rstrip("/")
        if self.flavor is EndpointFlavor.CHAT:
            return f"{base}/chat/completions"
        return base.replace("{model}", model)


class ExplanationClient:
    """Requests explanations with bounded retries on rate limiting.

    Every call ends in an :class:`ExplanationResult` or an
    :class:`ExplanationFailure`; expected transport and HTTP problems are
    never raised to the caller.
    """

    def __init__(
        self,
        endpoint: EndpointSettings,
        *,
        transport: Transport | None = None,
        retry_policy: RetryPolicy | None = None,
        prompt_builder: PromptBuilder | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.transport = transport or HttpTransport()
        self.retry_policy = retry_policy or RetryPolicy()
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.logger = get_logger("llm.client")

    def explain(self, request: ExplanationRequest, credential: str) -> Explanation:
        if not credential:
            return ExplanationFailure(
                FailureReason.INVALID_CREDENTIAL,
                "No API key configured. Run `errsimplifier set-key` first.",
            )

        try:
            prompt = self.prompt_builder.build(request)
            payload = self._build_payload(request, prompt)
        except (TemplateError, TypeError, ValueError) as exc:
            return ExplanationFailure(FailureReason.TRANSPORT, f"API Request Error: {exc}")

        url = self.endpoint.url_for(request.model_id)
        headers = {
            "Authorization": f"Bearer {credential}",
            "Content-Type": "application/json",
        }

        attempt = 0
        while True:
            attempt += 1
            self.logger.debug(
                "Requesting %s explanation from %s (model=%s, attempt %d)",
                request.kind.value,
                url,
                request.model_id,
                attempt,
            )
            try:
                outcome = self.transport.post(url, payload, headers, self.endpoint.timeout)
            except Exception as exc:  # injected transports may raise anything
                self.logger.debug("Transport raised", exc_info=True)
                return ExplanationFailure(FailureReason.TRANSPORT, f"API Request Error: {exc}")

            if _is_rate_limited(outcome):
                if attempt >= self.retry_policy.max_attempts:
                    self.logger.warning("Rate limited after %d attempts; giving up", attempt)
                    return ExplanationFailure(
                        FailureReason.RATE_LIMITED,
                        "API request failed after multiple retries (rate limited).",
                    )
                self.logger.warning(
                    "Rate limited; retrying in %.0fs (%d retries left)",
                    self.retry_policy.delay_for(attempt),
                    self.retry_policy.max_attempts - attempt,
                )
                self.retry_policy.wait(attempt)
                continue
            return self._interpret(outcome, request)

    def _build_payload(
        self, request: ExplanationRequest, prompt: ExplanationPrompt
    ) -> Dict[str, Any]:
        if self.endpoint.flavor is EndpointFlavor.CHAT:
            return {
                "model": request.model_id,
                "messages": prompt.as_payload_messages(),
                "max_tokens": request.max_tokens,
                "temperature": request.temperature,
            }
        return {
            "model": request.model_id,
            "inputs": prompt.text,
            "parameters": {
                "max_new_tokens": request.max_tokens,
                "temperature": request.temperature,
                "return_full_text": False,
            },
        }

    def _interpret(self, outcome: TransportOutcome, request: ExplanationRequest) -> Explanation:
        if outcome.status == STATUS_HTTP_ERROR:
            self.logger.error("API Error: %s", outcome.body or outcome.status_code)
            if outcome.status_code == 401:
                return ExplanationFailure(
                    FailureReason.INVALID_CREDENTIAL,
                    "Invalid API key. Please check your Together.ai API key.",
                )
            if outcome.status_code == 404:
                return ExplanationFailure(
                    FailureReason.MODEL_NOT_FOUND,
                    f"Model {request.model_id} not found. Check your model name.",
                )
            return ExplanationFailure(
                FailureReason.UNKNOWN,
                f"API Error: {outcome.status_code} - {outcome.status_text}",
            )
        if outcome.status == STATUS_NO_RESPONSE:
            self.logger.error("No response from API: %s", outcome.error)
            return ExplanationFailure(
                FailureReason.NO_RESPONSE,
                "No response from API. Check your internet connection.",
            )
        if outcome.status != STATUS_OK:
            self.logger.error("API request error: %s", outcome.error)
            return ExplanationFailure(
                FailureReason.TRANSPORT, f"API Request Error: {outcome.error}"
            )

        content = self._extract_content(outcome.body)
        if not content or not content.strip():
            return ExplanationFailure(FailureReason.UNKNOWN, "Empty response")
        return ExplanationResult(format_explanation(content))

    def _extract_content(self, body: Any) -> Optional[str]:
        if self.endpoint.flavor is EndpointFlavor.CHAT:
            return _extract_chat_content(body)
        return _extract_generated_text(body)


def _is_rate_limited(outcome: TransportOutcome) -> bool:
    return outcome.status == STATUS_HTTP_ERROR and outcome.status_code == 429


def _extract_chat_content(body: Any) -> Optional[str]:
    if not isinstance(body, dict):
        return None
    choices = body.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    message = first.get("message")
    if isinstance(message, dict):
        content = message.get("content")
        if isinstance(content, str):
            return content
    text = first.get("text")
    if isinstance(text, str):
        return text
    return None


def _extract_generated_text(body: Any) -> Optional[str]:
    if isinstance(body, list):
        if not body:
            return None
        body = body[0]
    if isinstance(body, dict):
        text = body.get("generated_text")
        if isinstance(text, str):
            return text
    return None


__all__ = ["EndpointFlavor", "EndpointSettings", "ExplanationClient"]
