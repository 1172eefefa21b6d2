"""Thin wrapper around external toolchain processes."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Sequence

from .logging import get_logger
from .models import ProcessResult

JDK_DOWNLOAD_URL = "https://adoptium.net/"


class ProcessStartError(RuntimeError):
    """Raised when an executable cannot be located or started."""


class ProcessRunner:
    """Runs an executable to completion and captures its standard streams."""

    def __init__(
        self, runner: Callable[..., subprocess.CompletedProcess] | None = None
    ) -> None:
        self._runner = runner or subprocess.run
        self.logger = get_logger("process")

    def run(
        self, executable: str, args: Sequence[str], cwd: str | Path | None = None
    ) -> ProcessResult:
        """Run ``executable`` with ``args`` and return its output as data.

        A nonzero exit code or stderr output is not an error here; only a
        failure to start the process raises :class:`ProcessStartError`.
        """
        command = [executable, *args]
        self.logger.debug("Running %s (cwd=%s)", " ".join(command), cwd)
        try:
            completed = self._runner(
                command,
                cwd=str(cwd) if cwd is not None else None,
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as exc:
            raise ProcessStartError(
                f"Unable to locate '{executable}'. Is it installed and on PATH?"
            ) from exc
        except OSError as exc:
            raise ProcessStartError(f"Unable to start '{executable}': {exc}") from exc

        result = ProcessResult(
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
            exit_code=completed.returncode,
        )
        self.logger.debug(
            "%s exited with %d (%d bytes stderr)",
            executable,
            result.exit_code,
            len(result.stderr),
        )
        return result


def check_toolchain(runner: ProcessRunner, executable: str = "javac") -> bool:
    """Return True when ``executable -version`` can be started and exits cleanly."""
    logger = get_logger("process")
    try:
        result = runner.run(executable, ["-version"])
    except ProcessStartError as exc:
        logger.warning("%s", exc)
        return False
    if result.exit_code != 0:
        logger.warning("%s -version exited with %d", executable, result.exit_code)
        return False
    return True


__all__ = ["JDK_DOWNLOAD_URL", "ProcessRunner", "ProcessStartError", "check_toolchain"]
