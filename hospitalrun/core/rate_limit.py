"""In-process fixed-window rate limiter."""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

import structlog

logger = structlog.get_logger()

# Seconds between sweeps of expired windows
CLEANUP_INTERVAL = 60


@dataclass
class RateLimitWindow:
    """Request counter for a single key."""

    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a rate limit check."""

    allowed: bool
    limit: int
    remaining: int
    reset_at: float


class RateLimiter:
    """Fixed-window rate limiter keyed by client address.

    Windows of clients that stop sending requests are dropped by a periodic
    sweep, so the table only holds keys seen within roughly the last
    ``window + cleanup_interval`` seconds.
    """

    def __init__(
        self,
        limit: int,
        window: int = 60,
        clock: Callable[[], float] = time.monotonic,
        cleanup_interval: float = CLEANUP_INTERVAL,
    ):
        """Initialize rate limiter with request limit and window in seconds."""
        self.limit = limit
        self.window = window
        self.cleanup_interval = cleanup_interval
        self._clock = clock
        self._windows: dict[str, RateLimitWindow] = {}
        self._lock = threading.Lock()
        self._last_cleanup = clock()

    def __len__(self) -> int:
        """Number of keys with a tracked window."""
        with self._lock:
            return len(self._windows)

    def _cleanup_expired(self, now: float) -> None:
        # Caller holds the lock
        if now - self._last_cleanup < self.cleanup_interval:
            return

        expired = [key for key, w in self._windows.items() if w.reset_at <= now]
        for key in expired:
            del self._windows[key]

        if expired:
            logger.debug("rate_limit_windows_pruned", count=len(expired))

        self._last_cleanup = now

    def check_rate_limit(self, key: str) -> RateLimitResult:
        """
        Count a request against the key's current window.

        Args:
            key: Rate limit key (e.g., client IP)

        Returns:
            Result describing whether the request is within the limit
        """
        now = self._clock()

        with self._lock:
            self._cleanup_expired(now)
            current = self._windows.get(key)

            if current is None or current.reset_at <= now:
                # First request or expired window
                current = RateLimitWindow(count=1, reset_at=now + self.window)
                self._windows[key] = current
                return RateLimitResult(True, self.limit, self.limit - 1, current.reset_at)

            if current.count >= self.limit:
                return RateLimitResult(False, self.limit, 0, current.reset_at)

            current.count += 1
            return RateLimitResult(
                True,
                self.limit,
                max(0, self.limit - current.count),
                current.reset_at,
            )

    def retry_after(self, result: RateLimitResult) -> int:
        """Seconds until the window of a rejected request resets."""
        return max(1, int(result.reset_at - self._clock() + 0.999))

    def reset(self) -> None:
        """Forget all counters."""
        with self._lock:
            self._windows.clear()
            self._last_cleanup = self._clock()
