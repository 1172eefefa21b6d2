"""Configuration loading for errsimplifier (.errsimplifier.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".errsimplifier.yml"

DEFAULT_MODEL = "mistralai/Mixtral-8x7B-Instruct-v0.1"
DEFAULT_BASE_URL = "https://api.together.xyz/v1"
DEFAULT_MAX_TOKENS = 200
DEFAULT_TEMPERATURE = 0.7
DEFAULT_REQUEST_TIMEOUT = 30.0

AVAILABLE_MODELS: tuple[str, ...] = (
    "mistralai/Mixtral-8x7B-Instruct-v0.1",
    "mistralai/Mistral-7B-Instruct-v0.1",
    "codellama/CodeLlama-7b-Instruct-hf",
    "deepseek-ai/deepseek-coder-6.7b-instruct",
)

ENV_MODEL_KEYS = ("ERRSIMPLIFIER_MODEL",)
ENV_BASE_URL_KEYS = ("ERRSIMPLIFIER_BASE_URL",)

_FLAVORS = {"chat", "completion"}


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class LLMConfig:
    """Remote explanation endpoint settings."""

    model: str = DEFAULT_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    base_url: str = DEFAULT_BASE_URL
    flavor: str = "chat"
    templates_dir: Optional[Path] = None


@dataclass
class ToolchainConfig:
    """External compiler/runtime used for a source file."""

    compiler: str = "javac"
    runtime: str = "java"
    compile_args: List[str] = field(default_factory=list)
    language: str = "Java"
    source_suffix: str = ".java"


@dataclass
class SecretsConfig:
    """Where the API credential lives and how it is validated."""

    path: Path = field(
        default_factory=lambda: Path("~/.config/errsimplifier/secrets.json").expanduser()
    )
    key_prefix: str = "tg_api_"


@dataclass
class ErrSimplifierConfig:
    """Represents the settings defined in .errsimplifier.yml."""

    root: Path
    llm: LLMConfig = field(default_factory=LLMConfig)
    toolchain: ToolchainConfig = field(default_factory=ToolchainConfig)
    secrets: SecretsConfig = field(default_factory=SecretsConfig)


def load_config(config_path: Path) -> ErrSimplifierConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = resolve_config_path(config_path)
    root = config_file.parent.resolve()

    data: Dict[str, Any] = {}
    if config_file.exists():
        data = _read_config(config_file)
        if not isinstance(data, dict):
            raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    llm = LLMConfig()
    llm_data = _as_dict(data.get("llm"))
    if llm_data:
        llm.model = _as_str(llm_data.get("model")) or llm.model
        max_tokens = _as_int(llm_data.get("max_tokens"))
        if max_tokens is not None:
            if max_tokens <= 0:
                raise ConfigError("llm.max_tokens must be a positive integer")
            llm.max_tokens = max_tokens
        temperature = _as_float(llm_data.get("temperature"))
        if temperature is not None:
            if not 0.0 <= temperature <= 1.0:
                raise ConfigError("llm.temperature must be between 0 and 1")
            llm.temperature = temperature
        llm.request_timeout = (
            _as_float(llm_data.get("request_timeout")) or llm.request_timeout
        )
        llm.base_url = _as_str(llm_data.get("base_url")) or llm.base_url
        flavor = _as_str(llm_data.get("flavor"))
        if flavor:
            flavor = flavor.lower()
            if flavor not in _FLAVORS:
                raise ConfigError(
                    f"llm.flavor must be one of {sorted(_FLAVORS)}, got '{flavor}'"
                )
            llm.flavor = flavor
        templates_dir = _as_str(llm_data.get("templates_dir"))
        if templates_dir:
            llm.templates_dir = root / templates_dir

    llm.model = _first_env_value(ENV_MODEL_KEYS) or llm.model
    llm.base_url = (_first_env_value(ENV_BASE_URL_KEYS) or llm.base_url).rstrip("/")

    toolchain = ToolchainConfig()
    toolchain_data = _as_dict(data.get("toolchain"))
    if toolchain_data:
        toolchain.compiler = _as_str(toolchain_data.get("compiler")) or toolchain.compiler
        toolchain.runtime = _as_str(toolchain_data.get("runtime")) or toolchain.runtime
        toolchain.compile_args = _as_str_list(toolchain_data.get("compile_args"))
        toolchain.language = _as_str(toolchain_data.get("language")) or toolchain.language
        toolchain.source_suffix = (
            _as_str(toolchain_data.get("source_suffix")) or toolchain.source_suffix
        )

    secrets = SecretsConfig()
    secrets_data = _as_dict(data.get("secrets"))
    if secrets_data:
        path_str = _as_str(secrets_data.get("path"))
        if path_str:
            secrets.path = Path(path_str).expanduser()
        prefix = secrets_data.get("key_prefix")
        if prefix is not None:
            secrets.key_prefix = _as_str(prefix) or ""

    return ErrSimplifierConfig(root=root, llm=llm, toolchain=toolchain, secrets=secrets)


def save_model(config_path: Path, model: str) -> Path:
    """Persist the selected model identifier, keeping other settings intact."""
    config_file = resolve_config_path(config_path)
    data: Dict[str, Any] = {}
    if config_file.exists():
        data = _read_config(config_file)
        if not isinstance(data, dict):
            raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")
    llm_data = _as_dict(data.get("llm"))
    llm_data["model"] = model
    data["llm"] = llm_data
    config_file.write_text(
        yaml.safe_dump(data, sort_keys=False, default_flow_style=False), encoding="utf-8"
    )
    return config_file


def resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _first_env_value(keys: Sequence[str]) -> str | None:
    for key in keys:
        value = os.getenv(key)
        if value:
            return value
    return None


def _as_dict(value: Any) -> Dict[str, Any]:
    return dict(value) if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "AVAILABLE_MODELS",
    "CONFIG_FILENAME",
    "ConfigError",
    "ErrSimplifierConfig",
    "LLMConfig",
    "SecretsConfig",
    "ToolchainConfig",
    "load_config",
    "resolve_config_path",
    "save_model",
]
