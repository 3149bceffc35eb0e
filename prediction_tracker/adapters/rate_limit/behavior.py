"""In-memory request pattern tracker.

Flags clients that hammer the same few endpoints or submit too often within a
short look-back window. Like the rate limiter, state is per-process and
volatile.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable


WRITE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


@dataclass(frozen=True)
class BehaviorVerdict:
    """Outcome of recording one request.

    Attributes:
        allowed: False when the pattern looks automated.
        reason: Machine-readable reason when rejected.
        recent_requests: Requests seen in the window, including this one.
        unique_actions: Distinct actions among the most recent ones.
        recent_writes: Write requests seen in the window.
    """

    allowed: bool
    reason: str | None
    recent_requests: int
    unique_actions: int
    recent_writes: int


@dataclass
class _Activity:
    events: deque[tuple[float, str]] = field(default_factory=deque)


class InMemoryBehaviorTracker:
    """Track per-client actions and reject suspicious request patterns."""

    def __init__(
        self,
        *,
        window_seconds: int = 300,
        max_repetitive_requests: int = 30,
        min_unique_actions: int = 3,
        max_writes: int = 10,
        action_history: int = 10,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")
        if action_history < 1:
            raise ValueError("action_history must be >= 1")

        self._window_seconds = window_seconds
        self._max_repetitive_requests = max_repetitive_requests
        self._min_unique_actions = min_unique_actions
        self._max_writes = max_writes
        self._action_history = action_history
        self._clock = clock
        self._lock = threading.RLock()
        self._activity_by_key: dict[str, _Activity] = {}
        self._last_prune: float | None = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._activity_by_key)

    def record(self, key: str, method: str, path: str) -> BehaviorVerdict:
        """Record a request and judge the client's recent pattern.

        Args:
            key: Client identifier.
            method: HTTP method of the request.
            path: Request path.

        Returns:
            BehaviorVerdict for the current request.
        """
        now = self._clock()
        cutoff = now - self._window_seconds
        action = f"{method.upper()} {path}"

        with self._lock:
            if self._last_prune is None:
                self._last_prune = now
            elif now - self._last_prune >= self._window_seconds:
                self._prune_locked(cutoff)
                self._last_prune = now

            activity = self._activity_by_key.setdefault(key, _Activity())
            events = activity.events
            while events and events[0][0] <= cutoff:
                events.popleft()
            events.append((now, action))

            recent_requests = len(events)
            latest = [name for _, name in list(events)[-self._action_history:]]
            unique_actions = len(set(latest))
            recent_writes = sum(1 for _, name in events if name.split(" ", 1)[0] in WRITE_METHODS)

        reason = None
        if (
            recent_requests > self._max_repetitive_requests
            and unique_actions < self._min_unique_actions
        ):
            reason = "repetitive_requests"
        elif recent_writes > self._max_writes:
            reason = "too_many_submissions"

        return BehaviorVerdict(
            allowed=reason is None,
            reason=reason,
            recent_requests=recent_requests,
            unique_actions=unique_actions,
            recent_writes=recent_writes,
        )

    def _prune_locked(self, cutoff: float) -> int:
        stale = [
            key
            for key, activity in self._activity_by_key.items()
            if not activity.events or activity.events[-1][0] <= cutoff
        ]
        for key in stale:
            del self._activity_by_key[key]
        return len(stale)

    def prune(self) -> int:
        """Drop clients with no activity inside the window."""
        cutoff = self._clock() - self._window_seconds
        with self._lock:
            return self._prune_locked(cutoff)

    def reset(self) -> None:
        with self._lock:
            self._activity_by_key.clear()
            self._last_prune = None
