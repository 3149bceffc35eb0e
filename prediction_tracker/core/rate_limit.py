"""Rate limiting dependencies for FastAPI routes.

This module wires the rate limiting adapters into the HTTP layer.

Design goals:
- Minimal coupling: API routes depend on dependency functions only.
- Swap-friendly: storage backend can be replaced (e.g., Redis) behind an
  abstract interface.

Rate limiting strategy:
- Per-client fixed window keyed by connection IP.
- "api" scope applies to every /api request; "write" scope adds a much
  stricter budget on submissions.
- Clients that blow far past their budget are blocked for a cooldown.
"""

from __future__ import annotations

import hashlib
import logging

from fastapi import Request, Response

from prediction_tracker.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from prediction_tracker.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from prediction_tracker.core.config import settings
from prediction_tracker.core.errors import RateLimitAppError

logger = logging.getLogger(__name__)

API_SCOPE = "api"
WRITE_SCOPE = "write"

_limiters: dict[str, AbstractRateLimiter] = {}
_limiter_configs: dict[str, tuple[int, int, int, int]] = {}


def _scope_config(scope: str) -> tuple[int, int, int, int]:
    """Return (limit, window, suspicious_limit, block_seconds) for a scope."""
    app_settings = settings.app
    if scope == WRITE_SCOPE:
        return (
            app_settings.write_rate_limit_requests,
            app_settings.write_rate_limit_window_seconds,
            app_settings.write_rate_limit_suspicious_requests,
            app_settings.rate_limit_block_seconds,
        )
    return (
        app_settings.rate_limit_requests,
        app_settings.rate_limit_window_seconds,
        app_settings.rate_limit_suspicious_requests,
        app_settings.rate_limit_block_seconds,
    )


def get_rate_limiter(scope: str = API_SCOPE) -> AbstractRateLimiter:
    """Return the process-wide rate limiter for a scope.

    Instances are created on first use and cached in-module to preserve state
    across requests. If configuration changes (primarily in tests), the
    limiter is rebuilt.

    Args:
        scope: Limiter scope, "api" or "write".

    Returns:
        AbstractRateLimiter: Configured limiter instance.
    """

    config = _scope_config(scope)

    if scope not in _limiters or _limiter_configs.get(scope) != config:
        limit, window_seconds, suspicious_limit, block_seconds = config
        _limiters[scope] = InMemoryFixedWindowRateLimiter(
            limit=limit,
            window_seconds=window_seconds,
            suspicious_limit=max(suspicious_limit, limit + 1),
            block_seconds=block_seconds,
        )
        _limiter_configs[scope] = config

    return _limiters[scope]


def reset_rate_limiters() -> None:
    """Drop all limiter instances and their state."""
    _limiters.clear()
    _limiter_configs.clear()


def get_client_address(request: Request) -> str:
    """Resolve the client address used for abuse tracking.

    The connection peer is used unless APP_TRUST_FORWARDED_FOR is enabled, in
    which case the first X-Forwarded-For hop wins.
    """
    if settings.app.trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop

    return request.client.host if request.client else "unknown"


def hash_client_key(key: str) -> str:
    """Hash a client key for logging without exposing addresses."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def _build_headers(result: RateLimitResult) -> dict[str, str]:
    if not settings.app.rate_limit_include_headers:
        return {}
    headers = {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset_at),
    }
    if not result.allowed:
        headers["Retry-After"] = str(result.retry_after_seconds or 0)
    return headers


def _enforce(request: Request, response: Response, scope: str) -> None:
    if not settings.app.rate_limit_enabled:
        return

    limiter = get_rate_limiter(scope)
    key = f"{scope}:ip:{get_client_address(request)}"
    key_hash = hash_client_key(key)

    result = limiter.consume(key)
    if result.allowed:
        logger.debug(
            "rate_limit.allowed",
            extra={
                "scope": scope,
                "key_hash": key_hash,
                "limit": result.limit,
                "remaining": result.remaining,
            },
        )
        # Submission budget runs after the API one, so it wins on POSTs
        response.headers.update(_build_headers(result))
        return

    retry_after = result.retry_after_seconds or 0
    logger.warning(
        "rate_limit.blocked" if result.blocked else "rate_limit.exceeded",
        extra={
            "scope": scope,
            "key_hash": key_hash,
            "limit": result.limit,
            "retry_after_s": retry_after,
        },
    )

    if result.blocked:
        message = "Too many requests. Access is temporarily suspended."
    else:
        message = "Rate limit exceeded. Try again later."

    raise RateLimitAppError(
        code="rate_limited",
        message=message,
        details={"retry_after": retry_after},
        headers=_build_headers(result) or None,
    )


async def enforce_rate_limit(request: Request, response: Response) -> None:
    """FastAPI dependency enforcing the general API budget.

    Budget headers are added to allowed responses as well.

    Raises:
        RateLimitAppError: 429 when the client exceeded its budget.
    """
    _enforce(request, response, API_SCOPE)


async def enforce_write_rate_limit(request: Request, response: Response) -> None:
    """FastAPI dependency enforcing the stricter submission budget.

    Raises:
        RateLimitAppError: 429 when the client exceeded its budget.
    """
    _enforce(request, response, WRITE_SCOPE)
