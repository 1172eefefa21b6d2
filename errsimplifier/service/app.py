"""FastAPI application exposing errsimplifier to editor plugins."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..models import ErrorKind, Explanation, ExplanationFailure, StageOutcome
from ..orchestrator import Orchestrator
from ..presenter import RecordingPresenter
from ..secrets import MissingCredentialError


class RunRequest(BaseModel):
    path: str


class ExplainRequest(BaseModel):
    error_text: str
    kind: ErrorKind = ErrorKind.COMPILATION
    context_path: str = ""


class ExplanationPayload(BaseModel):
    error: str
    explanation: Optional[str] = None
    failure_reason: Optional[str] = None
    failure_message: Optional[str] = None


class RunResponse(BaseModel):
    status: str
    output: str = ""
    error: Optional[ExplanationPayload] = None
    messages: list[str] = []


class HealthResponse(BaseModel):
    status: str


def _default_orchestrator() -> Orchestrator:
    return Orchestrator()


def _explanation_payload(cleaned: str, explanation: Explanation) -> ExplanationPayload:
    if isinstance(explanation, ExplanationFailure):
        return ExplanationPayload(
            error=cleaned,
            failure_reason=explanation.reason.value,
            failure_message=explanation.message,
        )
    return ExplanationPayload(error=cleaned, explanation=explanation.text)


def _run_response(outcome: StageOutcome | None, presenter: RecordingPresenter) -> RunResponse:
    if outcome is None:
        return RunResponse(status="rejected", messages=presenter.errors)
    if outcome.kind is None:
        return RunResponse(status="success", output=outcome.output)
    error = None
    if outcome.explanation is not None:
        error = _explanation_payload(outcome.cleaned_error, outcome.explanation)
    return RunResponse(status=outcome.kind.value, error=error)


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing run/explain operations."""

    app = FastAPI(title="errsimplifier", version="0.2.0")

    async def get_orchestrator() -> Orchestrator:
        return orchestrator_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/run", response_model=RunResponse)
    async def run_file(
        payload: RunRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> RunResponse:
        presenter = RecordingPresenter()
        loop = asyncio.get_running_loop()
        outcome = await loop.run_in_executor(
            None, lambda: orchestrator.run_file(payload.path, presenter)
        )
        return _run_response(outcome, presenter)

    @app.post("/explain", response_model=ExplanationPayload)
    async def explain(
        payload: ExplainRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> ExplanationPayload:
        presenter = RecordingPresenter()
        loop = asyncio.get_running_loop()
        cleaned, explanation = await loop.run_in_executor(
            None,
            lambda: orchestrator.explain_text(
                payload.error_text,
                payload.kind,
                presenter,
                context_path=payload.context_path,
            ),
        )
        return _explanation_payload(cleaned, explanation)

    @app.exception_handler(MissingCredentialError)
    async def missing_credential_handler(
        _: Any, exc: MissingCredentialError
    ) -> JSONResponse:
        return JSONResponse(status_code=401, content={"detail": str(exc)})

    @app.exception_handler(RuntimeError)
    async def runtime_error_handler(_: Any, exc: RuntimeError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    import uvicorn

    uvicorn.run(create_app(), host=host, port=port)


__all__ = ["create_app", "run_service"]
