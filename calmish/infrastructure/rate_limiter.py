"""Fixed-window rate limiter keyed by client address.

Process-local bookkeeping only; counters are lost on restart.
"""

import math
import time
from typing import Callable

from calmish.core.errors import RateLimitExceededError


class FixedWindowRateLimiter:
    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        # client -> (window start, count)
        self._windows: dict[str, tuple[float, int]] = {}

    def hit(self, client: str) -> int:
        """Count one request. Returns requests left, raises when over the limit."""
        now = self._clock()
        start, count = self._windows.get(client, (now, 0))
        if now - start >= self.window_seconds:
            start, count = now, 0
        if count >= self.max_requests:
            retry_after = self.window_seconds - (now - start)
            raise RateLimitExceededError(math.ceil(retry_after * 1000))
        self._windows[client] = (start, count + 1)
        self._evict_expired(now)
        return self.max_requests - count - 1

    def _evict_expired(self, now: float) -> None:
        if len(self._windows) < 1024:
            return
        self._windows = {
            c: w for c, w in self._windows.items()
            if now - w[0] < self.window_seconds
        }
