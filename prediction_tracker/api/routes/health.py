from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from prediction_tracker.db.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(db: Session = Depends(get_db)) -> dict:
    """Liveness check with a database round trip.

    Not rate limited so load balancers can poll it freely. The process is
    reported alive even when the database is unreachable; ``database``
    tells the two apart.

    Returns:
        dict: ``status`` ("ok") and ``database`` ("ok" or "unavailable").
    """

    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as exc:
        logger.warning("health.database_unavailable", extra={"error_type": type(exc).__name__})
        database = "unavailable"

    return {"status": "ok", "database": database}
