"""Guard chains and service dependencies shared by the API routers.

Order matters: cheap header checks run first, then request accounting, and
only then is the body read.
"""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.orm import Session

from prediction_tracker.core.rate_limit import enforce_rate_limit, enforce_write_rate_limit
from prediction_tracker.core.security import (
    analyze_behavior,
    check_captcha,
    check_honeypot,
    detect_bots,
    enforce_ip_filter,
)
from prediction_tracker.db.database import get_db
from prediction_tracker.services.prediction_service import PredictionService

# Applied to every /api route
API_GUARDS = [
    Depends(enforce_ip_filter),
    Depends(detect_bots),
    Depends(analyze_behavior),
    Depends(enforce_rate_limit),
]

# Added on top of API_GUARDS for submissions
SUBMISSION_GUARDS = [
    Depends(enforce_write_rate_limit),
    Depends(check_honeypot),
    Depends(check_captcha),
]


def get_prediction_service(db: Session = Depends(get_db)) -> PredictionService:
    return PredictionService(db)
