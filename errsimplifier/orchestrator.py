"""Wires configuration, credentials, and the compile-run stage for each command."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

from .config import AVAILABLE_MODELS, ErrSimplifierConfig, load_config, save_model
from .llm.client import EndpointSettings, ExplanationClient
from .llm.retry import RetryPolicy
from .llm.transport import Transport
from .logging import get_logger
from .models import ErrorKind, ExecutionRequest, Explanation, StageOutcome
from .presenter import Presenter
from .process import JDK_DOWNLOAD_URL, ProcessRunner, check_toolchain
from .prompting.builder import PromptBuilder
from .secrets import (
    CREDENTIAL_KEY,
    ChainedSecretStore,
    EnvSecretStore,
    FileSecretStore,
    SecretStore,
    resolve_credential,
    validate_api_key,
)
from .stage import CompileRunStage


class Orchestrator:
    """Entry point shared by the CLI, the watcher, and service mode."""

    def __init__(
        self,
        *,
        runner: ProcessRunner | None = None,
        transport: Transport | None = None,
        retry_policy: RetryPolicy | None = None,
        secret_store: SecretStore | None = None,
        config_loader: Callable[[Path], ErrSimplifierConfig] = load_config,
    ) -> None:
        self.runner = runner or ProcessRunner()
        self.transport = transport
        self.retry_policy = retry_policy
        self._secret_store = secret_store
        self._config_loader = config_loader
        self.logger = get_logger("orchestrator")

    def run_file(self, path: str | Path, presenter: Presenter) -> Optional[StageOutcome]:
        """Compile, run, and explain failures for one source file."""
        source = Path(path).expanduser().resolve()
        config = self.load_config(source.parent)
        if source.suffix != config.toolchain.source_suffix or not source.is_file():
            presenter.show_error(
                f"Please open a {config.toolchain.language} file first"
            )
            return None

        credential = resolve_credential(self.secret_store(config), presenter)
        stage = self.build_stage(config, presenter)
        return stage.execute(ExecutionRequest.for_source(source), credential)

    def explain_text(
        self,
        error_text: str,
        kind: ErrorKind,
        presenter: Presenter,
        *,
        root: str | Path = ".",
        context_path: str = "",
    ) -> tuple[str, Explanation]:
        config = self.load_config(Path(root))
        credential = resolve_credential(self.secret_store(config), presenter)
        stage = self.build_stage(config, presenter)
        return stage.explain_text(error_text, kind, credential, context_path)

    def set_api_key(self, api_key: str, *, root: str | Path = ".") -> None:
        config = self.load_config(Path(root))
        if not validate_api_key(api_key, config.secrets.key_prefix):
            raise ValueError(
                f"Invalid API key format. Together.ai keys start with '{config.secrets.key_prefix}'"
            )
        self.secret_store(config).set(CREDENTIAL_KEY, api_key)
        self.logger.info("API key stored")

    def set_model(self, model: str, *, root: str | Path = ".") -> Path:
        if model not in AVAILABLE_MODELS:
            self.logger.warning("Model %s is not in the curated list", model)
        return save_model(Path(root), model)

    def check_toolchain(
        self, presenter: Presenter, *, root: str | Path = ".", announce: bool = True
    ) -> bool:
        config = self.load_config(Path(root))
        if check_toolchain(self.runner, config.toolchain.compiler):
            if announce:
                presenter.show_info(f"{config.toolchain.compiler} is available")
            return True
        presenter.show_error(
            f"{config.toolchain.language} toolchain not found! Install it to use errsimplifier "
            f"(JDK downloads: {JDK_DOWNLOAD_URL})."
        )
        return False

    def load_config(self, root: Path) -> ErrSimplifierConfig:
        return self._config_loader(root)

    def secret_store(self, config: ErrSimplifierConfig) -> SecretStore:
        if self._secret_store is not None:
            return self._secret_store
        return ChainedSecretStore(EnvSecretStore(), FileSecretStore(config.secrets.path))

    def build_stage(self, config: ErrSimplifierConfig, presenter: Presenter) -> CompileRunStage:
        client = ExplanationClient(
            EndpointSettings.from_config(config.llm),
            transport=self.transport,
            retry_policy=self.retry_policy,
            prompt_builder=PromptBuilder(config.llm.templates_dir),
        )
        return CompileRunStage(
            self.runner,
            client,
            presenter,
            llm=config.llm,
            toolchain=config.toolchain,
        )


__all__ = ["Orchestrator"]
