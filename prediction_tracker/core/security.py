"""Request guards for basic abuse mitigation.

Each guard is a FastAPI dependency so routes opt in declaratively:

- ``enforce_ip_filter``: static allow/deny lists.
- ``detect_bots``: automation user agents and proxy-chained requests.
- ``analyze_behavior``: repetitive or write-heavy request patterns.
- ``read_json_body``: body size limit and JSON object parsing.
- ``check_honeypot``: hidden form fields that humans never fill.
- ``check_captcha``: optional answer/token comparison.

Guards raise AppError subclasses; the global handlers render them.
"""

from __future__ import annotations

import hmac
import json
import logging
import re
from typing import Annotated, Any

from fastapi import Depends, Header, Request

from prediction_tracker.adapters.rate_limit.behavior import InMemoryBehaviorTracker
from prediction_tracker.core.config import parse_csv_setting, settings
from prediction_tracker.core.errors import (
    AbuseAppError,
    PayloadTooLargeAppError,
    RateLimitAppError,
    ValidationAppError,
)
from prediction_tracker.core.rate_limit import get_client_address, hash_client_key

logger = logging.getLogger(__name__)

SUSPICIOUS_USER_AGENTS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"bot",
        r"crawler",
        r"spider",
        r"scraper",
        r"curl",
        r"wget",
        r"python",
        r"java",
        r"perl",
        r"php",
        r"ruby",
        r"go-http",
        r"postman",
        r"insomnia",
        r"httpie",
    )
]
ALLOWED_CRAWLERS = re.compile(r"googlebot|bingbot|slurp", re.IGNORECASE)
PROXY_HEADERS = ("x-forwarded-for", "x-real-ip", "x-originating-ip")
MIN_USER_AGENT_LENGTH = 10
MAX_PROXY_HEADERS = 2

_behavior_tracker: InMemoryBehaviorTracker | None = None
_behavior_config: tuple[int, int, int, int] | None = None


def get_behavior_tracker() -> InMemoryBehaviorTracker:
    """Return the process-wide behavior tracker, rebuilt on config change."""

    global _behavior_tracker, _behavior_config

    app_settings = settings.app
    config = (
        app_settings.behavior_window_seconds,
        app_settings.behavior_max_repetitive_requests,
        app_settings.behavior_min_unique_actions,
        app_settings.behavior_max_writes,
    )

    if _behavior_tracker is None or _behavior_config != config:
        _behavior_tracker = InMemoryBehaviorTracker(
            window_seconds=app_settings.behavior_window_seconds,
            max_repetitive_requests=app_settings.behavior_max_repetitive_requests,
            min_unique_actions=app_settings.behavior_min_unique_actions,
            max_writes=app_settings.behavior_max_writes,
        )
        _behavior_config = config

    return _behavior_tracker


def reset_behavior_tracker() -> None:
    """Drop the behavior tracker and its state."""

    global _behavior_tracker, _behavior_config
    _behavior_tracker = None
    _behavior_config = None


def _access_denied(code: str, message: str) -> AbuseAppError:
    return AbuseAppError(code=code, message=message)


def classify_user_agent(user_agent: str | None, proxy_header_count: int = 0) -> str | None:
    """Return a rejection reason for a client fingerprint, or None if acceptable.

    Examples:
        >>> classify_user_agent("curl/8.4.0")
        'automated_user_agent'
        >>> classify_user_agent("Mozilla/5.0 (compatible; Googlebot/2.1)") is None
        True
        >>> classify_user_agent("")
        'invalid_user_agent'
    """
    user_agent = user_agent or ""

    if any(pattern.search(user_agent) for pattern in SUSPICIOUS_USER_AGENTS):
        if not ALLOWED_CRAWLERS.search(user_agent):
            return "automated_user_agent"

    if len(user_agent) < MIN_USER_AGENT_LENGTH:
        return "invalid_user_agent"

    if proxy_header_count > MAX_PROXY_HEADERS:
        return "suspicious_headers"

    return None


_BOT_MESSAGES = {
    "automated_user_agent": "Automated requests are not allowed",
    "invalid_user_agent": "Invalid user agent",
    "suspicious_headers": "Suspicious request headers",
}


async def enforce_ip_filter(request: Request) -> None:
    """Reject denylisted addresses, and anything off a non-empty allowlist."""

    address = get_client_address(request)
    denylist = parse_csv_setting(settings.app.ip_denylist)
    allowlist = parse_csv_setting(settings.app.ip_allowlist)

    if address in denylist:
        logger.warning("ip_filter.denied", extra={"key_hash": hash_client_key(address)})
        raise _access_denied("ip_blocked", "Your IP address is blocked")

    if allowlist and address not in allowlist:
        logger.warning("ip_filter.not_allowed", extra={"key_hash": hash_client_key(address)})
        raise _access_denied("ip_not_allowed", "Your IP address is not authorized")


async def detect_bots(
    request: Request,
    user_agent: Annotated[str | None, Header()] = None,
) -> None:
    """Reject requests that look automated.

    Raises:
        AbuseAppError: 403 when the user agent or headers look automated.
    """
    if not settings.app.bot_detection_enabled:
        return

    proxy_header_count = sum(1 for header in PROXY_HEADERS if request.headers.get(header))
    reason = classify_user_agent(user_agent, proxy_header_count)
    if reason is None:
        return

    logger.warning(
        "bot_detection.rejected",
        extra={
            "reason": reason,
            "user_agent_length": len(user_agent or ""),
            "proxy_header_count": proxy_header_count,
        },
    )
    raise _access_denied(reason, _BOT_MESSAGES[reason])


async def analyze_behavior(request: Request) -> None:
    """Reject clients with repetitive or write-heavy request patterns.

    Raises:
        RateLimitAppError: 429 when the recent pattern looks automated.
    """
    if not settings.app.behavior_analysis_enabled:
        return

    address = get_client_address(request)
    verdict = get_behavior_tracker().record(address, request.method, request.url.path)
    if verdict.allowed:
        return

    logger.warning(
        "behavior_analysis.rejected",
        extra={
            "reason": verdict.reason,
            "key_hash": hash_client_key(address),
            "recent_requests": verdict.recent_requests,
            "unique_actions": verdict.unique_actions,
            "recent_writes": verdict.recent_writes,
        },
    )

    if verdict.reason == "too_many_submissions":
        message = "Too many submissions. Please slow down."
    else:
        message = "Suspicious activity detected. Please wait before making more requests."

    raise RateLimitAppError(code=verdict.reason or "suspicious_activity", message=message)


async def read_json_body(request: Request) -> dict[str, Any]:
    """Read the request body enforcing the size limit and parse a JSON object.

    The declared Content-Length is checked first so oversized uploads are
    rejected before being read; the actual body length is checked as well.

    Returns:
        The decoded JSON object.

    Raises:
        PayloadTooLargeAppError: 413 if the body exceeds APP_MAX_BODY_BYTES.
        ValidationAppError: 400 if the body is not a JSON object.
    """
    max_bytes = settings.app.max_body_bytes

    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > max_bytes:
        logger.warning(
            "body_limit.rejected_by_header",
            extra={"content_length": int(declared), "max_bytes": max_bytes},
        )
        raise PayloadTooLargeAppError(
            code="payload_too_large",
            message=f"Request size exceeds {max_bytes} bytes limit",
            details={"max_bytes": max_bytes},
        )

    raw = await request.body()
    if len(raw) > max_bytes:
        logger.warning(
            "body_limit.rejected_by_read",
            extra={"size": len(raw), "max_bytes": max_bytes},
        )
        raise PayloadTooLargeAppError(
            code="payload_too_large",
            message=f"Request size exceeds {max_bytes} bytes limit",
            details={"max_bytes": max_bytes},
        )

    try:
        body = json.loads(raw or b"null")
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as exc:
        raise ValidationAppError(
            code="invalid_json",
            message="Request body must be valid JSON",
            details={"errors": ["Request body must be valid JSON"]},
        ) from exc

    if not isinstance(body, dict):
        raise ValidationAppError(
            code="invalid_json",
            message="Request body must be a JSON object",
            details={"errors": ["Request body must be a JSON object"]},
        )

    return body


async def check_honeypot(body: Annotated[dict[str, Any], Depends(read_json_body)]) -> None:
    """Reject submissions that filled any hidden honeypot field.

    Raises:
        AbuseAppError: 403 when a honeypot field is non-empty.
    """
    if not settings.app.honeypot_enabled:
        return

    filled = sorted(
        name
        for name in parse_csv_setting(settings.app.honeypot_fields)
        if body.get(name)
    )
    if not filled:
        return

    logger.warning("honeypot.triggered", extra={"fields": filled})
    raise _access_denied("bot_detected", "Automated submission detected")


async def check_captcha(
    body: Annotated[dict[str, Any], Depends(read_json_body)],
    x_captcha_token: Annotated[str | None, Header(alias="X-Captcha-Token")] = None,
) -> None:
    """Verify the CAPTCHA answer against the issued token when one is sent.

    Raises:
        ValidationAppError: 400 when the answer does not match the token.
    """
    if not settings.app.captcha_enabled:
        return

    answer = body.get("captcha_answer")
    if answer in (None, ""):
        return

    if x_captcha_token and hmac.compare_digest(
        str(answer).encode(), x_captcha_token.encode()
    ):
        return

    logger.warning("captcha.failed", extra={"token_present": bool(x_captcha_token)})
    raise ValidationAppError(
        code="captcha_failed",
        message="Please solve the CAPTCHA correctly",
        details={"errors": ["CAPTCHA verification failed"]},
    )
