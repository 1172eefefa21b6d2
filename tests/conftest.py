from __future__ import annotations

import pytest

from errsimplifier.llm.retry import RetryPolicy
from errsimplifier.presenter import RecordingPresenter
from tests._fixtures.fakes import RecordingSleep


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    """Capture backoff delays instead of sleeping."""
    return RecordingSleep()


@pytest.fixture
def retry_policy(recording_sleep: RecordingSleep) -> RetryPolicy:
    return RetryPolicy(sleep=recording_sleep)


@pytest.fixture
def presenter() -> RecordingPresenter:
    return RecordingPresenter()


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in (
        "ERRSIMPLIFIER_MODEL",
        "ERRSIMPLIFIER_BASE_URL",
        "ERRSIMPLIFIER_API_KEY",
        "TOGETHER_API_KEY",
    ):
        monkeypatch.delenv(key, raising=False)
