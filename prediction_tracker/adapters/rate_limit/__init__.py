"""Rate limiting and abuse-tracking adapters.

This package provides a small abstraction layer so the service can start with
in-memory state and later migrate to Redis or another shared store without
changing the API layer.
"""

from prediction_tracker.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from prediction_tracker.adapters.rate_limit.behavior import BehaviorVerdict, InMemoryBehaviorTracker
from prediction_tracker.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "BehaviorVerdict",
    "InMemoryBehaviorTracker",
    "InMemoryFixedWindowRateLimiter",
    "RateLimitResult",
]
