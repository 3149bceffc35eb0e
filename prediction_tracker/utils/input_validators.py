"""Field-level validation rules for submitted JSON payloads.

Every rule appends human-readable messages to a shared ``FieldErrors``
collector instead of raising, so a request reports all of its problems at
once and is either accepted whole or rejected whole.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from enum import Enum
from typing import Any, TypeVar
from urllib.parse import urlparse

from prediction_tracker.utils.text_sanitizer import contains_dangerous_content, sanitize_text

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)

MAX_FIELD_LENGTHS: dict[str, int] = {
    "predictor_name": 100,
    "prediction_text": 1000,
    "target_description": 500,
    "notes": 2000,
    "outcome_description": 2000,
    "verified_by": 100,
    "source_url": 2048,
    "evidence_url": 2048,
}
DEFAULT_MAX_LENGTH = 5000

SCORE_MIN = 1
SCORE_MAX = 10


class FieldErrors:
    """Ordered collection of validation messages."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def add(self, message: str) -> None:
        self.messages.append(message)

    def __bool__(self) -> bool:
        return bool(self.messages)

    def __len__(self) -> int:
        return len(self.messages)


def _label(field: str) -> str:
    return field.replace("_", " ").capitalize()


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_text(
    body: dict[str, Any],
    field: str,
    errors: FieldErrors,
    *,
    required: bool = False,
) -> str | None:
    """Validate a free-text field and return its sanitized value.

    Checks presence, type and the injection blocklist, then HTML-escapes
    the text and applies the length limit to the escaped value.
    """
    value = body.get(field)
    if _is_blank(value):
        if required:
            errors.add(f"{_label(field)} is required")
        return None

    if not isinstance(value, str):
        errors.add(f"{_label(field)} must be a string")
        return None

    if contains_dangerous_content(value):
        logger.warning("input_validation.dangerous_content", extra={"field": field})
        errors.add(f"{_label(field)} contains potentially malicious content")
        return None

    # The limit applies to the stored, escaped form
    sanitized = sanitize_text(value)
    max_length = MAX_FIELD_LENGTHS.get(field, DEFAULT_MAX_LENGTH)
    if len(sanitized) > max_length:
        errors.add(f"{_label(field)} must be at most {max_length} characters")
        return None

    return sanitized


def validate_url(body: dict[str, Any], field: str, errors: FieldErrors) -> str | None:
    """Validate an optional absolute http(s) URL; URLs are not HTML-escaped."""
    value = body.get(field)
    if _is_blank(value):
        return None

    if not isinstance(value, str):
        errors.add(f"{_label(field)} must be a string")
        return None

    value = value.strip()
    max_length = MAX_FIELD_LENGTHS.get(field, DEFAULT_MAX_LENGTH)
    if len(value) > max_length:
        errors.add(f"{_label(field)} must be at most {max_length} characters")
        return None

    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        errors.add(f"{_label(field)} must be an http or https URL")
        return None

    if contains_dangerous_content(value) or any(ch in value for ch in "<>\"'` "):
        logger.warning("input_validation.dangerous_content", extra={"field": field})
        errors.add(f"{_label(field)} contains potentially malicious content")
        return None

    return value


def validate_score(body: dict[str, Any], field: str, errors: FieldErrors) -> int | None:
    """Validate an optional 1-10 integer score.

    Integers and integer strings (as sent by HTML range inputs) are accepted;
    booleans, fractions and out-of-range values are rejected.
    """
    value = body.get(field)
    if _is_blank(value):
        return None

    score: int | None = None
    if isinstance(value, bool):
        score = None
    elif isinstance(value, int):
        score = value
    elif isinstance(value, float) and value.is_integer():
        score = int(value)
    elif isinstance(value, str) and value.strip().lstrip("-").isdigit():
        score = int(value.strip())

    if score is None or not SCORE_MIN <= score <= SCORE_MAX:
        errors.add(f"{_label(field)} must be an integer between {SCORE_MIN} and {SCORE_MAX}")
        return None

    return score


def validate_choice(
    body: dict[str, Any],
    field: str,
    choices: type[E],
    errors: FieldErrors,
    *,
    required: bool = False,
    default: E | None = None,
) -> E | None:
    """Validate enum membership (case-insensitive)."""
    value = body.get(field)
    if _is_blank(value):
        if required:
            errors.add(f"{_label(field)} is required")
        return default

    if isinstance(value, str):
        try:
            return choices(value.strip().lower())
        except ValueError:
            pass

    allowed = ", ".join(choice.value for choice in choices)
    errors.add(f"{_label(field)} must be one of: {allowed}")
    return None


def validate_date(
    body: dict[str, Any],
    field: str,
    errors: FieldErrors,
    *,
    required: bool = False,
) -> date | None:
    """Validate an ISO ``YYYY-MM-DD`` date."""
    value = body.get(field)
    if _is_blank(value):
        if required:
            errors.add(f"{_label(field)} is required")
        return None

    text = value.strip() if isinstance(value, str) else ""
    if len(text) == 10:
        try:
            return datetime.strptime(text, "%Y-%m-%d").date()
        except ValueError:
            pass

    errors.add(f"{_label(field)} must be a valid date (YYYY-MM-DD)")
    return None