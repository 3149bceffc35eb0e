"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment variables are set before any import that might load settings, so
the whole suite runs against an in-memory SQLite database with budgets large
enough not to interfere with functional tests.
"""

import os

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ["DB_URL"] = "sqlite://"
os.environ.setdefault("DB_SEED_ON_STARTUP", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("APP_RATE_LIMIT_REQUESTS", "1000")
os.environ.setdefault("APP_RATE_LIMIT_SUSPICIOUS_REQUESTS", "10000")
os.environ.setdefault("APP_WRITE_RATE_LIMIT_REQUESTS", "1000")
os.environ.setdefault("APP_WRITE_RATE_LIMIT_SUSPICIOUS_REQUESTS", "10000")
os.environ.setdefault("APP_BEHAVIOR_MAX_REPETITIVE_REQUESTS", "1000")
os.environ.setdefault("APP_BEHAVIOR_MAX_WRITES", "1000")

from typing import Iterator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from prediction_tracker.core.rate_limit import reset_rate_limiters  # noqa: E402
from prediction_tracker.core.security import reset_behavior_tracker  # noqa: E402
from prediction_tracker.db.database import SessionLocal, drop_db, init_db  # noqa: E402
from prediction_tracker.main import app  # noqa: E402

BROWSER_USER_AGENT = "Mozilla/5.0 (X11; Linux x86_64) Gecko/20100101 Firefox/128.0"


@pytest.fixture(autouse=True)
def fresh_state() -> Iterator[None]:
    """Give every test empty tables and empty abuse-tracking state."""
    drop_db()
    init_db()
    reset_rate_limiters()
    reset_behavior_tracker()
    yield
    reset_rate_limiters()
    reset_behavior_tracker()


@pytest.fixture
def db_session() -> Iterator[Session]:
    """Database session bound to the test engine."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client() -> TestClient:
    """FastAPI test client sending a regular browser user agent."""
    return TestClient(app, headers={"User-Agent": BROWSER_USER_AGENT})


@pytest.fixture
def valid_prediction() -> dict:
    return {
        "predictor_name": "Ada Lovelace",
        "prediction_text": "Machines will compose elaborate pieces of music",
        "predicted_date": "2020-01-01",
        "target_date": "2030-12-31",
        "target_description": "A machine-composed piece is performed by an orchestra",
        "category": "technology",
        "confidence_level": 7,
        "source_url": "https://example.com/notes",
        "notes": "From the translator's notes",
    }


@pytest.fixture
def valid_verification() -> dict:
    return {
        "outcome": "correct",
        "outcome_description": "An orchestra performed a machine-composed symphony",
        "evidence_url": "https://example.com/evidence",
        "verified_by": "Charles Babbage",
        "confidence_score": 9,
        "notes": "Reviewed by two editors",
    }
