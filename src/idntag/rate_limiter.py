"""Minimum-interval rate limiter for the AcoustID lookup service.

AcoustID allows at most 3 requests per second per client. The limiter is an
explicit object owned by whoever builds the lookup client, so calls share it
only when the caller passes the same instance.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field

ACOUSTID_MIN_INTERVAL_SEC = 1.0 / 3


@dataclass
class RateLimiter:
    """
    Blocks callers until min_interval_sec has passed since the previous call.

    The first call never waits. Uses the monotonic clock so wall-clock
    adjustments do not shorten or stretch the interval.
    """

    min_interval_sec: float = ACOUSTID_MIN_INTERVAL_SEC
    _last_call: float | None = field(default=None, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @classmethod
    def from_millis(cls, min_interval_ms: int) -> RateLimiter:
        return cls(min_interval_sec=min_interval_ms / 1000.0)

    def seconds_until_ready(self) -> float:
        """Remaining wait before the next call would proceed (0 if ready)."""
        with self._lock:
            if self._last_call is None:
                return 0.0
            remaining = self._last_call + self.min_interval_sec - time.monotonic()
            return max(0.0, remaining)

    def wait(self) -> None:
        """Sleep until the interval has elapsed, then record this call."""
        with self._lock:
            if self._last_call is not None:
                next_allowed = self._last_call + self.min_interval_sec
                now = time.monotonic()
                if now < next_allowed:
                    time.sleep(next_allowed - now)
            self._last_call = time.monotonic()


## Tests


def test_rate_limiter_first_call_does_not_wait():
    limiter = RateLimiter(min_interval_sec=10.0)
    start = time.monotonic()
    limiter.wait()
    assert time.monotonic() - start < 1.0


def test_rate_limiter_enforces_interval():
    limiter = RateLimiter(min_interval_sec=0.05)
    limiter.wait()
    start = time.monotonic()
    limiter.wait()
    assert time.monotonic() - start >= 0.045


def test_rate_limiter_seconds_until_ready():
    limiter = RateLimiter(min_interval_sec=1.0)
    assert limiter.seconds_until_ready() == 0.0
    limiter.wait()
    assert 0.9 <= limiter.seconds_until_ready() <= 1.0


def test_rate_limiter_from_millis():
    limiter = RateLimiter.from_millis(333)
    assert abs(limiter.min_interval_sec - 0.333) < 1e-9
