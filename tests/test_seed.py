"""Tests for database seeding."""

from sqlalchemy import func, select

from prediction_tracker.db.models import Prediction, Tag, Verification
from prediction_tracker.db.seed import DEFAULT_TAGS, SAMPLE_PREDICTIONS, seed_database
from prediction_tracker.services.prediction_service import PredictionService


def test_seed_inserts_tags_and_samples(db_session):
    inserted = seed_database(db_session)

    assert inserted == len(SAMPLE_PREDICTIONS)
    assert db_session.scalar(select(func.count(Tag.id))) == len(DEFAULT_TAGS)
    assert db_session.scalar(select(func.count(Verification.id))) == 1


def test_seed_is_idempotent(db_session):
    seed_database(db_session)

    assert seed_database(db_session) == 0
    assert db_session.scalar(select(func.count(Prediction.id))) == len(SAMPLE_PREDICTIONS)
    assert db_session.scalar(select(func.count(Tag.id))) == len(DEFAULT_TAGS)


def test_seed_tags_only(db_session):
    assert seed_database(db_session, include_samples=False) == 0
    assert db_session.scalar(select(func.count(Prediction.id))) == 0


def test_seeded_data_feeds_stats_and_tags(db_session):
    seed_database(db_session)
    service = PredictionService(db_session)

    stats = service.get_stats()
    assert stats.total_predictions == 5
    assert stats.verified_predictions == 1
    silver = next(p for p in stats.predictor_stats if p.predictor_name == "Nate Silver")
    assert silver.accuracy == 0.0

    gates = next(p for p in service.list_predictions() if p.predictor_name == "Bill Gates")
    assert gates.tags == ["Health", "Technology"]
