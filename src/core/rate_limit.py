"""Fixed-window request counters keyed by client identifier.

Each client gets a window that opens on its first request and lasts
``window_seconds``. Requests inside the window increment the counter; once
the counter passes ``max_requests`` every further request in the same window
is rejected. The next request after the window closes opens a new one.

The limiter is shared by all in-flight requests, so every read-modify-write
of the counter table happens under a single lock and counts are exact.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from math import ceil

from loguru import logger

type Clock = Callable[[], float]

# Prune expired windows at most this often (in hits)
_PRUNE_EVERY_HITS = 1000


@dataclass(frozen=True, slots=True)
class RateLimitDecision:
    """Outcome of counting one request against a client's window."""

    allowed: bool
    limit: int
    remaining: int
    reset_after: float

    @property
    def retry_after_seconds(self) -> int:
        """Whole seconds until the current window closes (at least 1)."""
        return max(1, ceil(self.reset_after))


@dataclass(slots=True)
class _Window:
    started_at: float
    count: int


class FixedWindowRateLimiter:
    """Thread-safe fixed-window counter table.

    Args:
        max_requests: Requests allowed per window.
        window_seconds: Window length in seconds.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Clock = time.monotonic,
    ) -> None:
        if max_requests <= 0:
            msg = "max_requests must be positive"
            raise ValueError(msg)
        if window_seconds <= 0:
            msg = "window_seconds must be positive"
            raise ValueError(msg)

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()
        self._hits_since_prune = 0

    def hit(self, key: str) -> RateLimitDecision:
        """Count one request for ``key`` and decide whether it may proceed.

        Args:
            key: Client identifier, usually the client IP address.

        Returns:
            RateLimitDecision: Whether the request is allowed and the quota left.
        """
        with self._lock:
            now = self._clock()
            self._maybe_prune(now)

            window = self._windows.get(key)
            if window is None or now - window.started_at >= self.window_seconds:
                window = _Window(started_at=now, count=0)
                self._windows[key] = window

            window.count += 1
            reset_after = window.started_at + self.window_seconds - now

            return RateLimitDecision(
                allowed=window.count <= self.max_requests,
                limit=self.max_requests,
                remaining=max(0, self.max_requests - window.count),
                reset_after=reset_after,
            )

    def reset(self, key: str | None = None) -> None:
        """Forget the counter for one client, or for every client.

        Args:
            key: Client identifier to reset. Resets all clients when None.
        """
        with self._lock:
            if key is None:
                self._windows.clear()
            else:
                self._windows.pop(key, None)

    def tracked_clients(self) -> int:
        """Number of clients with a counter currently held in memory."""
        with self._lock:
            return len(self._windows)

    def _maybe_prune(self, now: float) -> None:
        """Drop expired windows. Caller must hold the lock."""
        self._hits_since_prune += 1
        if self._hits_since_prune < _PRUNE_EVERY_HITS:
            return

        self._hits_since_prune = 0
        expired = [
            key
            for key, window in self._windows.items()
            if now - window.started_at >= self.window_seconds
        ]
        for key in expired:
            del self._windows[key]

        if expired:
            logger.debug("Pruned {} expired rate limit windows", len(expired))
