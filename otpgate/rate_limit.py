"""
Rate limiting.

Two layers:
  • ``limiter`` – slowapi, keyed on client IP, applied to the HTTP route as a
    coarse flood guard.
  • ``AttemptLimiter`` – keyed on the normalized email (``otp:<email>``), so
    guesses against one address are throttled no matter where they come
    from.  Built on the same ``limits`` library slowapi uses, with a moving
    window.

The attempt limiter is created by the app lifespan and injected into the
verification pipeline.  Its backing store comes from a ``limits`` storage URI:
``memory://`` keeps counters in this process only (lost on restart, not
shared between workers); a ``redis://`` URI shares them across instances.
"""

from __future__ import annotations

import logging
import math

from limits import RateLimitItemPerSecond
from limits.storage import Storage, storage_from_string
from limits.strategies import MovingWindowRateLimiter
from slowapi import Limiter
from slowapi.util import get_remote_address

from otpgate.config import OTP_VERIFY_IP_LIMIT

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)

# Named rate strings for use in @limiter.limit() decorators
VERIFY = OTP_VERIFY_IP_LIMIT


def _window_seconds(window_ms: int) -> int:
    return max(1, math.ceil(window_ms / 1000))


class AttemptLimiter:
    """
    Counts attempts per key inside a trailing window.

    ``check`` is a single check-and-increment on the storage, which holds a
    per-key lock for the memory backend (and a server-side script for
    Redis), so concurrent callers can never jointly exceed the budget.
    A denied check records nothing.  Expired keys are swept by the storage.
    """

    def __init__(self, storage_uri: str = "memory://") -> None:
        self._storage: Storage = storage_from_string(storage_uri)
        self._strategy = MovingWindowRateLimiter(self._storage)
        self.storage_uri = storage_uri

    def check(self, key: str, max_attempts: int, window_ms: int) -> bool:
        """True if the caller may proceed, False once the budget is spent."""
        if max_attempts <= 0:
            return False
        item = RateLimitItemPerSecond(max_attempts, _window_seconds(window_ms))
        allowed = self._strategy.hit(item, key)
        if not allowed:
            logger.debug("Attempt budget exhausted for key %s", key)
        return allowed

    def reset(self) -> None:
        """Drop every counter."""
        self._storage.reset()


def check_rate_limit(
    attempt_limiter: AttemptLimiter,
    key: str,
    max_attempts: int,
    window_ms: int,
) -> bool:
    return attempt_limiter.check(key, max_attempts, window_ms)
