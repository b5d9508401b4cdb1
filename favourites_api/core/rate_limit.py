"""Per-identity rate limiting over a rolling time window.

State is kept in process memory only; it is not shared between workers and
starts empty after a restart.
"""

import logging
import threading
import time
from collections import deque
from typing import Callable

from favourites_api.core.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    """Allow at most ``max_requests`` per key within any ``window_seconds`` span.

    Each key keeps the timestamps of its accepted requests; timestamps older
    than the window are dropped before a new request is counted, and keys with
    no recent requests are forgotten. Rejected requests do not consume capacity.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the limiter.

        Args:
            max_requests: Requests allowed per key per window
            window_seconds: Length of the rolling window in seconds
            clock: Monotonic time source, replaceable in tests

        Raises:
            ValueError: If max_requests <= 0 or window_seconds <= 0
        """
        if max_requests <= 0:
            raise ValueError("max_requests must be > 0")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}
        self._last_sweep = clock()
        self._lock = threading.Lock()

    def hit(self, key: str) -> None:
        """Count one request for ``key``.

        Raises:
            RateLimitExceededError: If the key has no capacity left in the current window
        """
        now = self._clock()
        with self._lock:
            self._sweep(now)
            hits = self._prune(key, now)

            if hits is not None and len(hits) >= self.max_requests:
                retry_after = hits[0] + self.window_seconds - now
                raise RateLimitExceededError(retry_after=max(retry_after, 0.0))

            self._hits.setdefault(key, deque()).append(now)

    def remaining(self, key: str) -> int:
        """Number of requests ``key`` may still make in the current window."""
        now = self._clock()
        with self._lock:
            hits = self._prune(key, now)
            return self.max_requests - len(hits) if hits else self.max_requests

    def tracked_keys(self) -> int:
        """Number of keys currently holding request history."""
        with self._lock:
            return len(self._hits)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()

    def _prune(self, key: str, now: float) -> deque[float] | None:
        # Caller holds the lock. A key left with no hits in the window is dropped.
        hits = self._hits.get(key)
        if hits is None:
            return None
        cutoff = now - self.window_seconds
        while hits and hits[0] <= cutoff:
            hits.popleft()
        if not hits:
            del self._hits[key]
            return None
        return hits

    def _sweep(self, now: float) -> None:
        # Caller holds the lock. At most once per window, forget idle keys.
        if now - self._last_sweep < self.window_seconds:
            return
        self._last_sweep = now
        cutoff = now - self.window_seconds
        idle = [key for key, hits in self._hits.items() if hits[-1] <= cutoff]
        for key in idle:
            del self._hits[key]


def build_rate_limiter(settings) -> SlidingWindowRateLimiter | None:
    """Create the limiter described by settings, or None when rate limiting is disabled."""
    if not settings.rate_limit_enabled:
        logger.info("Rate limiting disabled")
        return None
    logger.info(
        f"Rate limiting enabled: {settings.rate_limit_requests} requests per "
        f"{settings.rate_limit_window_seconds:g}s per user"
    )
    return SlidingWindowRateLimiter(
        max_requests=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
