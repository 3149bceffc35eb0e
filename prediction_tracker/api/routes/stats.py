from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from prediction_tracker.api.dependencies import API_GUARDS, get_prediction_service
from prediction_tracker.schemas.predictions import StatsResponse
from prediction_tracker.services.prediction_service import PredictionService

router = APIRouter(prefix="/api", tags=["Stats"], dependencies=API_GUARDS)


@router.get("/stats", response_model=StatsResponse)
def get_stats(
    service: Annotated[PredictionService, Depends(get_prediction_service)],
) -> StatsResponse:
    """Aggregate statistics.

    Returns totals (all / verified / pending), the verification rate, counts
    per outcome and per category, and each predictor's track record with
    accuracy = correct / verified.
    """
    return service.get_stats()
