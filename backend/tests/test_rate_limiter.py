import pytest

from app.core.exceptions import RateLimitExceededError
from app.services.rate_limiter import InMemoryRateLimiter


class Clock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_allows_up_to_limit_per_key():
    limiter = InMemoryRateLimiter(limit=3, window_seconds=60, clock=Clock())

    assert [limiter.allow("ip-1") for _ in range(4)] == [True, True, True, False]
    assert limiter.allow("ip-2") is True


def test_window_slides():
    clock = Clock()
    limiter = InMemoryRateLimiter(limit=2, window_seconds=60, clock=clock)
    limiter.allow("ip")
    clock.now += 30
    limiter.allow("ip")

    assert limiter.allow("ip") is False
    clock.now += 31
    assert limiter.allow("ip") is True


def test_hit_raises_when_exhausted():
    limiter = InMemoryRateLimiter(limit=1, window_seconds=900, clock=Clock())
    limiter.hit("login:ip")

    with pytest.raises(RateLimitExceededError) as exc_info:
        limiter.hit("login:ip")
    assert exc_info.value.status_code == 429
    assert exc_info.value.code == "rate_limited"
