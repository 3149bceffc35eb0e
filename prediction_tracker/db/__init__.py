from __future__ import annotations

from prediction_tracker.db.database import Base, SessionLocal, engine, get_db, init_db
from prediction_tracker.db.models import Prediction, PredictionTag, Tag, Verification

__all__ = [
    "Base",
    "Prediction",
    "PredictionTag",
    "SessionLocal",
    "Tag",
    "Verification",
    "engine",
    "get_db",
    "init_db",
]
