"""Blocking token-bucket rate limiter for outbound provider calls."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable


class RateLimiter:
    """Token bucket refilled continuously at ``requests_per_minute``.

    ``acquire`` blocks until a token is available. A ``requests_per_minute``
    of ``None`` or ``<= 0`` disables limiting. The clock and sleep functions
    are injectable so callers (and tests) can control time.
    """

    def __init__(
        self,
        requests_per_minute: int | None,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.capacity = float(requests_per_minute) if requests_per_minute and requests_per_minute > 0 else None
        self.rate = self.capacity / 60.0 if self.capacity else None
        self.tokens = self.capacity or 0.0
        self._clock = clock
        self._sleep = sleep
        self._updated = clock()
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self.capacity is not None

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(now - self._updated, 0.0)
        self._updated = now
        if self.capacity is not None and self.rate is not None:
            self.tokens = min(self.capacity, self.tokens + elapsed * self.rate)

    def acquire(self) -> float:
        """Take one token, blocking as needed.

        Returns:
            Total seconds spent waiting.
        """
        if self.capacity is None or self.rate is None:
            return 0.0

        waited = 0.0
        while True:
            with self._lock:
                self._refill()
                if self.tokens >= 1.0:
                    self.tokens -= 1.0
                    return waited
                wait = (1.0 - self.tokens) / self.rate

            # Sleep outside the lock so other threads can refill and take tokens
            self._sleep(wait)
            waited += wait
