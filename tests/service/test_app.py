"""Service-mode tests using FastAPI's TestClient."""

from __future__ import annotations

from pathlib import Path

from fastapi.testclient import TestClient

from errsimplifier.llm.retry import RetryPolicy
from errsimplifier.models import ProcessResult
from errsimplifier.orchestrator import Orchestrator
from errsimplifier.secrets import CREDENTIAL_KEY
from errsimplifier.service import create_app
from tests._fixtures.fakes import (
    MemorySecretStore,
    RecordingSleep,
    ScriptedRunner,
    ScriptedTransport,
    chat_body,
    http_error,
    ok,
)


def _client(runner: ScriptedRunner, transport: ScriptedTransport, store=None) -> TestClient:  # type: ignore[no-untyped-def]
    store = store if store is not None else MemorySecretStore({CREDENTIAL_KEY: "tg_api_key"})

    def factory() -> Orchestrator:
        return Orchestrator(
            runner=runner,  # type: ignore[arg-type]
            transport=transport,
            retry_policy=RetryPolicy(sleep=RecordingSleep()),
            secret_store=store,
        )

    return TestClient(create_app(factory))


def test_health() -> None:
    client = _client(ScriptedRunner({}), ScriptedTransport([]))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_run_reports_success_output(tmp_path: Path) -> None:
    source = tmp_path / "Main.java"
    source.write_text("class Main {}\n", encoding="utf-8")
    runner = ScriptedRunner(
        {
            "javac": ProcessResult(stdout="", stderr="", exit_code=0),
            "java": ProcessResult(stdout="Hello\n", stderr="", exit_code=0),
        }
    )

    response = _client(runner, ScriptedTransport([])).post("/run", json={"path": str(source)})

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert body["output"] == "Hello\n"
    assert body["error"] is None


def test_run_reports_compile_failure_with_explanation(tmp_path: Path) -> None:
    source = tmp_path / "Main.java"
    source.write_text("class Main {\n", encoding="utf-8")
    resolved = str(source.resolve())
    runner = ScriptedRunner(
        {"javac": ProcessResult(stdout="", stderr=f"{resolved}:2: error: reached end of file\n", exit_code=1)}
    )
    transport = ScriptedTransport([ok(chat_body("Add a closing brace."))])

    response = _client(runner, transport).post("/run", json={"path": str(source)})

    body = response.json()
    assert body["status"] == "compilation"
    assert body["error"]["error"] == ":2: error: reached end of file"
    assert body["error"]["explanation"] == "Add a closing brace."
    assert body["error"]["failure_reason"] is None


def test_run_rejects_non_java_path(tmp_path: Path) -> None:
    target = tmp_path / "README.md"
    target.write_text("hi", encoding="utf-8")

    response = _client(ScriptedRunner({}), ScriptedTransport([])).post("/run", json={"path": str(target)})

    body = response.json()
    assert body["status"] == "rejected"
    assert body["messages"] == ["Please open a Java file first"]


def test_explain_reports_failure_reason() -> None:
    transport = ScriptedTransport([http_error(404, "Not Found")])

    response = _client(ScriptedRunner({}), transport).post(
        "/explain",
        json={"error_text": "error: cannot find symbol", "kind": "compilation"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["error"] == "error: cannot find symbol"
    assert body["explanation"] is None
    assert body["failure_reason"] == "model_not_found"


def test_explain_without_credential_returns_401() -> None:
    client = _client(ScriptedRunner({}), ScriptedTransport([]), MemorySecretStore())

    response = client.post("/explain", json={"error_text": "boom", "kind": "runtime"})

    assert response.status_code == 401
    assert "API key" in response.json()["detail"]
