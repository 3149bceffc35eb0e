"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from prediction_tracker.core.logging import (
    JsonFormatter,
    RequestIdFilter,
    SensitiveDataFilter,
    clear_request_id,
    set_request_id,
)


@pytest.fixture
def log_stream():
    """Logger wired to an in-memory stream through the production filters."""

    logger = logging.getLogger("test_redaction")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    yield logger, stream

    logger.handlers.clear()


def test_sensitive_filter_redacts_captcha_values(log_stream):
    logger, stream = log_stream

    logger.info(
        "captcha.failed",
        extra={
            "captcha_answer": "42",
            "x-captcha-token": "token-value-123",
            "token_present": True,
        },
    )

    output = stream.getvalue()

    assert "token-value-123" not in output
    assert '"42"' not in output
    assert "[REDACTED]" in output
    assert "token_present" in output


def test_sensitive_filter_redacts_client_addresses(log_stream):
    logger, stream = log_stream

    logger.info(
        "ip_filter.denied",
        extra={"client_ip": "203.0.113.7", "key_hash": "abc123"},
    )

    output = stream.getvalue()

    assert "203.0.113.7" not in output
    assert "abc123" in output


def test_sensitive_filter_allows_safe_fields(log_stream):
    logger, stream = log_stream

    logger.info(
        "prediction.created",
        extra={
            "prediction_id": 17,
            "category": "technology",
            "route": "/api/predictions",
        },
    )

    output = stream.getvalue()

    assert "/api/predictions" in output
    assert "technology" in output
    assert "[REDACTED]" not in output


def test_sensitive_filter_redacts_nested_dicts(log_stream):
    logger, stream = log_stream

    logger.info(
        "nested_event",
        extra={
            "headers": {
                "authorization": "Bearer secret-key",
                "user-agent": "pytest-agent",
            },
        },
    )

    output = stream.getvalue()

    assert "secret-key" not in output
    assert "[REDACTED]" in output
    assert "pytest-agent" in output


def test_json_formatter_includes_request_id(log_stream):
    logger, stream = log_stream

    set_request_id("req-789")
    try:
        logger.info("stats.read")
    finally:
        clear_request_id()

    payload = json.loads(stream.getvalue().strip())

    assert payload["message"] == "stats.read"
    assert payload["request_id"] == "req-789"
