"""In-memory fixed-window rate limiter with suspicious-activity blocking.

Notes:
- Per-process only: state resets on restart and is not shared between
  instances, so it is a best-effort deterrent.
- Thread-safe: uses a lock around shared state.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from prediction_tracker.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult


@dataclass
class _ClientState:
    window_start: float
    count: int
    blocked_until: float | None = None


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter using a per-client fixed time window.

    Each client's window opens with its first request and lasts
    ``window_seconds``. Requests over ``limit`` are rejected until the window
    closes. Clients that keep going past ``suspicious_limit`` within one
    window are blocked outright for ``block_seconds``.

    Rejected requests still count towards the window, which is what lets a
    client that ignores 429s reach the suspicious ceiling.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: int,
        suspicious_limit: int | None = None,
        block_seconds: int = 3600,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limit: Maximum number of allowed units per window.
            window_seconds: Size of the window in seconds.
            suspicious_limit: Units per window after which the client is
                blocked; defaults to ten times ``limit``.
            block_seconds: Length of the block once triggered.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If any bound is invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")
        if suspicious_limit is None:
            suspicious_limit = limit * 10
        if suspicious_limit <= limit:
            raise ValueError("suspicious_limit must be greater than limit")
        if block_seconds < 1:
            raise ValueError("block_seconds must be >= 1")

        self._limit = limit
        self._window_seconds = window_seconds
        self._suspicious_limit = suspicious_limit
        self._block_seconds = block_seconds
        self._clock = clock
        self._lock = threading.RLock()
        self._state_by_key: dict[str, _ClientState] = {}
        self._last_prune: float | None = None

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    def __len__(self) -> int:
        with self._lock:
            return len(self._state_by_key)

    def _rejected(self, *, now: float, until: float, blocked: bool) -> RateLimitResult:
        return RateLimitResult(
            allowed=False,
            limit=self._limit,
            remaining=0,
            reset_at=int(math.ceil(until)),
            retry_after_seconds=max(0, int(math.ceil(until - now))),
            blocked=blocked,
        )

    def _maybe_prune_locked(self, now: float) -> None:
        if self._last_prune is None:
            self._last_prune = now
            return
        if now - self._last_prune >= self._window_seconds:
            self._prune_locked(now)
            self._last_prune = now

    def _prune_locked(self, now: float) -> int:
        stale = [
            key
            for key, state in self._state_by_key.items()
            if now >= state.window_start + self._window_seconds
            and (state.blocked_until is None or now >= state.blocked_until)
        ]
        for key in stale:
            del self._state_by_key[key]
        return len(stale)

    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Consume rate limit budget for the provided key.

        Args:
            key: Unique identifier for rate limiting.
            cost: Units to consume (default 1).

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If key is empty or cost is invalid.
        """
        if cost < 1:
            raise ValueError("cost must be >= 1")
        if not key:
            raise ValueError("key must be a non-empty string")

        now = self._clock()

        with self._lock:
            self._maybe_prune_locked(now)
            state = self._state_by_key.get(key)

            if state is not None and state.blocked_until is not None:
                if now < state.blocked_until:
                    return self._rejected(now=now, until=state.blocked_until, blocked=True)
                state.blocked_until = None

            if state is None or now >= state.window_start + self._window_seconds:
                state = _ClientState(window_start=now, count=cost)
                self._state_by_key[key] = state
            else:
                state.count += cost

            if state.count > self._suspicious_limit:
                state.blocked_until = now + self._block_seconds
                return self._rejected(now=now, until=state.blocked_until, blocked=True)

            window_end = state.window_start + self._window_seconds
            if state.count > self._limit:
                return self._rejected(now=now, until=window_end, blocked=False)

            return RateLimitResult(
                allowed=True,
                limit=self._limit,
                remaining=self._limit - state.count,
                reset_at=int(math.ceil(window_end)),
                retry_after_seconds=None,
            )

    def prune(self) -> int:
        """Remove clients whose window and block have both expired."""
        with self._lock:
            removed = self._prune_locked(self._clock())
            self._last_prune = self._clock()
            return removed

    def reset(self) -> None:
        with self._lock:
            self._state_by_key.clear()
            self._last_prune = None
