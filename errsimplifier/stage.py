"""Compile-then-run pipeline that explains whichever step fails."""

from __future__ import annotations

from .config import LLMConfig, ToolchainConfig
from .llm.client import ExplanationClient
from .logging import get_logger
from .models import (
    ErrorContext,
    ErrorKind,
    ExecutionRequest,
    Explanation,
    ExplanationRequest,
    ProcessResult,
    StageOutcome,
)
from .presenter import Presenter
from .process import ProcessRunner

PROGRESS_TITLE = "Processing file"


class CompileRunStage:
    """Runs the compiler, then the program, routing failures to the explainer.

    Any text on the compiler's stderr counts as a failure, warnings
    included, and stops the invocation before the run step.
    """

    def __init__(
        self,
        runner: ProcessRunner,
        client: ExplanationClient,
        presenter: Presenter,
        *,
        llm: LLMConfig | None = None,
        toolchain: ToolchainConfig | None = None,
    ) -> None:
        self.runner = runner
        self.client = client
        self.presenter = presenter
        self.llm = llm or LLMConfig()
        self.toolchain = toolchain or ToolchainConfig()
        self.logger = get_logger("stage")

    def execute(self, request: ExecutionRequest, credential: str) -> StageOutcome:
        self.logger.info("Compiling %s", request.source_path)
        self.presenter.show_progress(PROGRESS_TITLE, "Compiling...")
        compiled = self.runner.run(
            self.toolchain.compiler,
            [*self.toolchain.compile_args, request.source_path],
            cwd=request.working_directory,
        )
        if compiled.failed:
            context = ErrorContext(
                raw_text=_failure_text(compiled),
                kind=ErrorKind.COMPILATION,
                context_path=request.source_path,
            )
            return self._handle_failure(context, credential)

        self.logger.info("Running %s", request.entry_name)
        self.presenter.show_progress(PROGRESS_TITLE, "Running...")
        ran = self.runner.run(
            self.toolchain.runtime,
            ["-cp", request.working_directory, request.entry_name],
            cwd=request.working_directory,
        )
        if ran.failed:
            context = ErrorContext(
                raw_text=_failure_text(ran),
                kind=ErrorKind.RUNTIME,
                context_path=request.working_directory,
            )
            return self._handle_failure(context, credential)

        self.presenter.show_output(ran.stdout)
        return StageOutcome(kind=None, output=ran.stdout)

    def explain_text(
        self, error_text: str, kind: ErrorKind, credential: str, context_path: str = ""
    ) -> tuple[str, Explanation]:
        """Clean and explain error text that did not come from a local run."""
        cleaned = ErrorContext(raw_text=error_text, kind=kind, context_path=context_path).cleaned()
        return cleaned, self.client.explain(self._explanation_request(cleaned, kind), credential)

    def _handle_failure(self, context: ErrorContext, credential: str) -> StageOutcome:
        cleaned = context.cleaned()
        self.logger.info("%s error detected", context.kind.value.capitalize())
        self.presenter.show_progress("Analyzing error", f"{context.kind.value} error")
        explanation = self.client.explain(
            self._explanation_request(cleaned, context.kind), credential
        )
        if not explanation.ok:
            self.logger.warning("Could not get explanation: %s", explanation.message)
        self.presenter.present_failure(cleaned, explanation)
        return StageOutcome(
            kind=context.kind,
            cleaned_error=cleaned,
            explanation=explanation,
        )

    def _explanation_request(self, cleaned: str, kind: ErrorKind) -> ExplanationRequest:
        return ExplanationRequest(
            cleaned_error_text=cleaned,
            kind=kind,
            model_id=self.llm.model,
            max_tokens=self.llm.max_tokens,
            temperature=self.llm.temperature,
            language=self.toolchain.language,
        )


def _failure_text(result: ProcessResult) -> str:
    if result.stderr.strip():
        return result.stderr
    detail = result.stdout.strip()
    message = f"Process exited with code {result.exit_code}"
    return f"{detail}\n{message}" if detail else message


__all__ = ["CompileRunStage", "PROGRESS_TITLE"]
