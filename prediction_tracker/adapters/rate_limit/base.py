"""Rate limiter interfaces.

The API depends on this abstraction (not the concrete implementation) so the
process-local store can be swapped for a shared one (e.g., Redis) when the
service runs as several instances.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit consume operation.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when rejected).
        reset_at: UNIX epoch seconds when the current window (or block) ends.
        retry_after_seconds: Suggested wait time in seconds when rejected.
        blocked: True when the client is serving a suspicious-activity cooldown.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None
    blocked: bool = False


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Consume rate limit budget for a given key.

        Args:
            key: Unique client identifier (e.g., namespaced IP address).
            cost: Units to consume (default 1).

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    @abstractmethod
    def prune(self) -> int:
        """Drop state that no longer affects any decision.

        Returns:
            Number of keys removed.
        """
        raise NotImplementedError

    @abstractmethod
    def reset(self) -> None:
        """Forget all tracked clients."""
        raise NotImplementedError
