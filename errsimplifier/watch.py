"""Re-run the pipeline whenever a watched source file is saved."""

from __future__ import annotations

import time
from pathlib import Path
from typing import Callable, Optional

from .logging import get_logger


class FileWatcher:
    """Polls a file's modification time and fires ``callback`` on each save.

    Saves that land while a callback is still running are picked up on the
    next poll; invocations are never queued or coalesced beyond that.
    """

    def __init__(
        self,
        path: Path,
        callback: Callable[[Path], object],
        *,
        interval: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.path = Path(path)
        self.callback = callback
        self.interval = interval
        self._sleep = sleep
        self._last_mtime: Optional[float] = self._mtime()
        self.logger = get_logger("watch")

    def poll_once(self) -> bool:
        current = self._mtime()
        if current is None or current == self._last_mtime:
            return False
        self._last_mtime = current
        self.logger.debug("Detected save of %s", self.path)
        self.callback(self.path)
        return True

    def run(self, max_iterations: int | None = None) -> int:
        """Poll until interrupted (or ``max_iterations``); return the number of runs."""
        runs = 0
        iterations = 0
        while max_iterations is None or iterations < max_iterations:
            if self.poll_once():
                runs += 1
            iterations += 1
            self._sleep(self.interval)
        return runs

    def _mtime(self) -> Optional[float]:
        try:
            return self.path.stat().st_mtime_ns / 1e9
        except FileNotFoundError:
            return None


__all__ = ["FileWatcher"]
