"""Bounded retry policy for rate-limited explanation requests."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable


@dataclass
class RetryPolicy:
    """Exponential backoff seeded at ``base_delay`` and doubling per retry.

    With the defaults a request is attempted at most four times, sleeping
    1s, 2s and 4s between attempts (``2 ** (3 - remaining_retries)``).
    """

    max_retries: int = 3
    base_delay: float = 1.0
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def delay_for(self, retry_number: int) -> float:
        """Delay before the ``retry_number``-th retry (1-based)."""
        if retry_number < 1:
            raise ValueError("retry_number starts at 1")
        return self.base_delay * (2 ** (retry_number - 1))

    def total_delay(self) -> float:
        return sum(self.delay_for(n) for n in range(1, self.max_retries + 1))

    def wait(self, retry_number: int) -> float:
        delay = self.delay_for(retry_number)
        self.sleep(delay)
        return delay


__all__ = ["RetryPolicy"]
