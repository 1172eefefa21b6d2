"""Credential storage and resolution for the explanation endpoint."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Dict, Optional, Protocol, Sequence

from .logging import get_logger
from .presenter import Presenter

CREDENTIAL_KEY = "togetherApiKey"
ENTER_API_KEY = "Enter API Key"
ENV_API_KEY_KEYS = ("ERRSIMPLIFIER_API_KEY", "TOGETHER_API_KEY")


class MissingCredentialError(RuntimeError):
    """Raised when no API key is stored and none was provided interactively."""


class SecretStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class FileSecretStore:
    """JSON-backed secret store readable only by the current user."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path).expanduser()

    def get(self, key: str) -> Optional[str]:
        value = self._load().get(key)
        return value if isinstance(value, str) and value else None

    def set(self, key: str, value: str) -> None:
        entries = self._load()
        entries[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(entries, handle, indent=2, sort_keys=True)
        os.chmod(self.path, 0o600)

    def _load(self) -> Dict[str, object]:
        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise RuntimeError(f"Secret store {self.path} is corrupted: {exc}") from exc
        return payload if isinstance(payload, dict) else {}


class EnvSecretStore:
    """Read-only store backed by environment variables."""

    def __init__(self, keys: Sequence[str] = ENV_API_KEY_KEYS) -> None:
        self.keys = tuple(keys)

    def get(self, key: str) -> Optional[str]:
        for name in self.keys:
            value = os.getenv(name)
            if value:
                return value
        return None

    def set(self, key: str, value: str) -> None:
        raise RuntimeError("Environment secret store is read-only")


class ChainedSecretStore:
    """Reads from each store in order; writes go to the first writable one."""

    def __init__(self, *stores: SecretStore) -> None:
        self.stores = stores

    def get(self, key: str) -> Optional[str]:
        for store in self.stores:
            value = store.get(key)
            if value:
                return value
        return None

    def set(self, key: str, value: str) -> None:
        for store in self.stores:
            if isinstance(store, EnvSecretStore):
                continue
            store.set(key, value)
            return
        raise RuntimeError("No writable secret store configured")


def validate_api_key(api_key: str, prefix: str = "tg_api_") -> bool:
    if not api_key:
        return False
    return api_key.startswith(prefix) if prefix else True


def resolve_credential(store: SecretStore, presenter: Presenter) -> str:
    """Return the stored API key, prompting the user once if it is missing."""
    api_key = store.get(CREDENTIAL_KEY)
    if api_key:
        return api_key

    get_logger("secrets").debug("No stored API key; prompting")
    choice = presenter.show_error("Together.ai API key required!", [ENTER_API_KEY])
    if choice == ENTER_API_KEY:
        entered = presenter.prompt_input("Enter your Together.ai API key", secret=True)
        if entered:
            store.set(CREDENTIAL_KEY, entered)
            return entered
    raise MissingCredentialError("API key is required to use errsimplifier")


__all__ = [
    "CREDENTIAL_KEY",
    "ChainedSecretStore",
    "EnvSecretStore",
    "FileSecretStore",
    "MissingCredentialError",
    "SecretStore",
    "resolve_credential",
    "validate_api_key",
]
