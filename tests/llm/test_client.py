"""Tests for the explanation client."""

from __future__ import annotations

import pytest

from errsimplifier.llm.client import EndpointFlavor, EndpointSettings, ExplanationClient
from errsimplifier.llm.retry import RetryPolicy
from errsimplifier.models import (
    ErrorKind,
    ExplanationFailure,
    ExplanationRequest,
    ExplanationResult,
    FailureReason,
)
from tests._fixtures.fakes import (
    RecordingSleep,
    ScriptedTransport,
    chat_body,
    http_error,
    no_response,
    ok,
    transport_error,
)

BASE_URL = "https://api.together.xyz/v1"


def _request(model: str = "mistralai/Mixtral-8x7B-Instruct-v0.1") -> ExplanationRequest:
    return ExplanationRequest(
        cleaned_error_text=":3: error: ';' expected",
        kind=ErrorKind.COMPILATION,
        model_id=model,
        max_tokens=200,
        temperature=0.7,
    )


def _client(
    transport: ScriptedTransport,
    retry_policy: RetryPolicy,
    flavor: EndpointFlavor = EndpointFlavor.CHAT,
    base_url: str = BASE_URL,
) -> ExplanationClient:
    return ExplanationClient(
        EndpointSettings(base_url=base_url, flavor=flavor, timeout=30.0),
        transport=transport,
        retry_policy=retry_policy,
    )


def test_explain_posts_chat_payload_with_bearer_token(retry_policy: RetryPolicy) -> None:
    transport = ScriptedTransport([ok(chat_body("Add a semicolon."))])

    result = _client(transport, retry_policy).explain(_request(), "tg_api_secret")

    assert result == ExplanationResult("Add a semicolon.")
    call = transport.calls[0]
    assert call["url"] == f"{BASE_URL}/chat/completions"
    assert call["timeout"] == 30.0
    assert call["headers"]["Authorization"] == "Bearer tg_api_secret"
    assert call["headers"]["Content-Type"] == "application/json"
    payload = call["payload"]
    assert payload["model"] == "mistralai/Mixtral-8x7B-Instruct-v0.1"
    assert payload["max_tokens"] == 200
    assert payload["temperature"] == 0.7
    assert [message["role"] for message in payload["messages"]] == ["system", "user"]
    assert "compilation error" in payload["messages"][1]["content"]


def test_explain_formats_successful_content(retry_policy: RetryPolicy) -> None:
    transport = ScriptedTransport([ok(chat_body("Steps: 1.Add it\n\n\n** Done **"))])

    result = _client(transport, retry_policy).explain(_request(), "key")

    assert isinstance(result, ExplanationResult)
    assert result.text == "Steps: \n1. Add it\n\n**Done**"


def test_explain_maps_401_to_invalid_credential(retry_policy: RetryPolicy) -> None:
    transport = ScriptedTransport([http_error(401, "Unauthorized")])

    result = _client(transport, retry_policy).explain(_request(), "bad")

    assert isinstance(result, ExplanationFailure)
    assert result.reason is FailureReason.INVALID_CREDENTIAL
    assert len(transport.calls) == 1


def test_explain_maps_404_to_model_not_found(retry_policy: RetryPolicy) -> None:
    transport = ScriptedTransport([http_error(404, "Not Found")])

    result = _client(transport, retry_policy).explain(_request("no/such-model"), "key")

    assert isinstance(result, ExplanationFailure)
    assert result.reason is FailureReason.MODEL_NOT_FOUND
    assert "no/such-model" in result.message


def test_explain_maps_other_status_to_unknown(retry_policy: RetryPolicy) -> None:
    transport = ScriptedTransport([http_error(503, "Service Unavailable")])

    result = _client(transport, retry_policy).explain(_request(), "key")

    assert isinstance(result, ExplanationFailure)
    assert result.reason is FailureReason.UNKNOWN
    assert result.message == "API Error: 503 - Service Unavailable"


def test_explain_maps_missing_response(retry_policy: RetryPolicy) -> None:
    transport = ScriptedTransport([no_response("timed out")])

    result = _client(transport, retry_policy).explain(_request(), "key")

    assert isinstance(result, ExplanationFailure)
    assert result.reason is FailureReason.NO_RESPONSE


def test_explain_maps_transport_errors(retry_policy: RetryPolicy) -> None:
    transport = ScriptedTransport([transport_error("unknown url type: 'htp'")])

    result = _client(transport, retry_policy).explain(_request(), "key")

    assert isinstance(result, ExplanationFailure)
    assert result.reason is FailureReason.TRANSPORT
    assert "unknown url type" in result.message


def test_explain_maps_raising_transport_to_transport_failure(
    retry_policy: RetryPolicy,
) -> None:
    class _Exploding:
        def post(self, url, payload, headers, timeout):  # type: ignore[no-untyped-def]
            raise RuntimeError("socket exploded")

    client = ExplanationClient(
        EndpointSettings(base_url=BASE_URL), transport=_Exploding(), retry_policy=retry_policy
    )

    result = client.explain(_request(), "key")

    assert isinstance(result, ExplanationFailure)
    assert result.reason is FailureReason.TRANSPORT
    assert "socket exploded" in result.message


@pytest.mark.parametrize(
    "body",
    [
        None,
        {},
        {"choices": []},
        chat_body(""),
        chat_body("   \n"),
    ],
)
def test_explain_treats_empty_payload_as_unknown(retry_policy: RetryPolicy, body) -> None:  # type: ignore[no-untyped-def]
    transport = ScriptedTransport([ok(body)])

    result = _client(transport, retry_policy).explain(_request(), "key")

    assert result == ExplanationFailure(FailureReason.UNKNOWN, "Empty response")


def test_explain_retries_rate_limits_with_backoff_then_succeeds(
    retry_policy: RetryPolicy, recording_sleep: RecordingSleep
) -> None:
    transport = ScriptedTransport(
        [http_error(429), http_error(429), http_error(429), ok(chat_body("Finally."))]
    )

    result = _client(transport, retry_policy).explain(_request(), "key")

    assert result == ExplanationResult("Finally.")
    assert len(transport.calls) == 4
    assert recording_sleep.delays == [1.0, 2.0, 4.0]
    assert sum(recording_sleep.delays) >= 7.0


def test_explain_gives_up_after_retry_budget(
    retry_policy: RetryPolicy, recording_sleep: RecordingSleep
) -> None:
    transport = ScriptedTransport([http_error(429, "Too Many Requests")] * 4)

    result = _client(transport, retry_policy).explain(_request(), "key")

    assert isinstance(result, ExplanationFailure)
    assert result.reason is FailureReason.RATE_LIMITED
    assert len(transport.calls) == 4
    assert recording_sleep.delays == [1.0, 2.0, 4.0]


def test_explain_does_not_retry_other_failures(
    retry_policy: RetryPolicy, recording_sleep: RecordingSleep
) -> None:
    transport = ScriptedTransport([http_error(429), http_error(500, "Server Error")])

    result = _client(transport, retry_policy).explain(_request(), "key")

    assert isinstance(result, ExplanationFailure)
    assert result.reason is FailureReason.UNKNOWN
    assert len(transport.calls) == 2
    assert recording_sleep.delays == [1.0]


def test_explain_without_credential_skips_network(retry_policy: RetryPolicy) -> None:
    transport = ScriptedTransport([])

    result = _client(transport, retry_policy).explain(_request(), "")

    assert isinstance(result, ExplanationFailure)
    assert result.reason is FailureReason.INVALID_CREDENTIAL
    assert transport.calls == []


def test_explain_completion_flavor_uses_single_prompt(retry_policy: RetryPolicy) -> None:
    transport = ScriptedTransport([ok([{"generated_text": "Missing ';' after println."}])])
    client = _client(
        transport,
        retry_policy,
        flavor=EndpointFlavor.COMPLETION,
        base_url="https://api-inference.huggingface.co/models/{model}",
    )

    result = client.explain(_request("codellama/CodeLlama-7b-Instruct-hf"), "key")

    assert result == ExplanationResult("Missing ';' after println.")
    call = transport.calls[0]
    assert call["url"] == "https://api-inference.huggingface.co/models/codellama/CodeLlama-7b-Instruct-hf"
    payload = call["payload"]
    assert "messages" not in payload
    assert "Explain this Java compilation error" in payload["inputs"]
    assert payload["parameters"]["max_new_tokens"] == 200
    assert payload["parameters"]["temperature"] == 0.7


def test_explain_completion_flavor_empty_list_is_unknown(retry_policy: RetryPolicy) -> None:
    transport = ScriptedTransport([ok([])])
    client = _client(transport, retry_policy, flavor=EndpointFlavor.COMPLETION)

    result = client.explain(_request(), "key")

    assert result == ExplanationFailure(FailureReason.UNKNOWN, "Empty response")


def test_explain_chat_flavor_accepts_text_choice(retry_policy: RetryPolicy) -> None:
    transport = ScriptedTransport([ok({"choices": [{"text": "Legacy text."}]})])

    result = _client(transport, retry_policy).explain(_request(), "key")

    assert result == ExplanationResult("Legacy text.")
