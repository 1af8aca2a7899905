"""Rate limiter - fixed-window counting per client."""

import pytest

from calmish.core.errors import RateLimitExceededError
from calmish.infrastructure.rate_limiter import FixedWindowRateLimiter


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_allows_up_to_limit_then_rejects():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(3, 60, clock=clock)
    assert [limiter.hit("1.2.3.4") for _ in range(3)] == [2, 1, 0]
    clock.now = 15
    with pytest.raises(RateLimitExceededError) as exc:
        limiter.hit("1.2.3.4")
    assert exc.value.context.retry_after_ms == 45_000


def test_clients_counted_separately():
    limiter = FixedWindowRateLimiter(1, 60, clock=FakeClock())
    limiter.hit("a")
    assert limiter.hit("b") == 0
    with pytest.raises(RateLimitExceededError):
        limiter.hit("a")


def test_window_resets():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(1, 60, clock=clock)
    limiter.hit("a")
    clock.now = 60
    assert limiter.hit("a") == 0


def test_expired_windows_evicted():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(5, 10, clock=clock)
    for i in range(1024):
        limiter.hit(f"c{i}")
    clock.now = 20
    limiter.hit("fresh")
    assert list(limiter._windows) == ["fresh"]
