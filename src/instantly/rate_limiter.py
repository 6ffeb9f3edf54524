"""
Rate Limiter
------------
Token bucket shared by every call made through one client.

Callers are never rejected: ``acquire`` reserves a token (letting the
count go negative) and then sleeps off the debt outside the lock, so
concurrent callers are served in the order they arrived.
"""

from __future__ import annotations

import logging
import time
from threading import Lock
from typing import Callable, Optional

from .config import RateLimit

_logger = logging.getLogger(__name__)


class TokenBucket:
    """
    Token bucket rate limiter.

    Thread-safe; ``clock`` and ``sleep`` are injectable for tests.
    """

    def __init__(
        self,
        rate_limit: Optional[RateLimit] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.rate_limit = rate_limit or RateLimit()
        self._clock = clock
        self._sleep = sleep
        self._rate = self.rate_limit.tokens_per_second
        self._tokens = float(self.rate_limit.burst)
        self._last_update = clock()
        self._lock = Lock()

    def acquire(self) -> float:
        """
        Take a token, blocking until it is available.

        Returns the number of seconds spent waiting.
        """
        with self._lock:
            self._refill()
            self._tokens -= 1.0
            wait = -self._tokens / self._rate if self._tokens < 0 else 0.0

        if wait > 0:
            _logger.debug("Rate limit reached, waiting %.3fs", wait)
            self._sleep(wait)
        return wait

    def try_acquire(self) -> bool:
        """Take a token only if one is available right now."""
        with self._lock:
            self._refill()
            if self._tokens >= 1.0:
                self._tokens -= 1.0
                return True
            return False

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._last_update)
        self._last_update = now
        self._tokens = min(float(self.rate_limit.burst), self._tokens + elapsed * self._rate)

    @property
    def available_tokens(self) -> float:
        """Current token count; negative while callers are waiting on reservations."""
        with self._lock:
            self._refill()
            return self._tokens
