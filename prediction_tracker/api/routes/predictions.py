from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Path, Query

from prediction_tracker.api.dependencies import (
    API_GUARDS,
    SUBMISSION_GUARDS,
    get_prediction_service,
)
from prediction_tracker.core.errors import ValidationAppError
from prediction_tracker.core.security import read_json_body
from prediction_tracker.schemas.predictions import (
    CreatedResponse,
    PredictionDetailResponse,
    PredictionListResponse,
)
from prediction_tracker.services.prediction_service import MAX_PREDICTION_ID, PredictionService
from prediction_tracker.services.submission_validator import (
    validate_prediction_submission,
    validate_verification_submission,
)

router = APIRouter(prefix="/api", tags=["Predictions"], dependencies=API_GUARDS)


@router.get("/predictions", response_model=PredictionListResponse)
def list_predictions(
    service: Annotated[PredictionService, Depends(get_prediction_service)],
    category: Annotated[str | None, Query(description="Filter by category")] = None,
    status: Annotated[
        str | None, Query(description="Filter by derived status: verified, pending or overdue")
    ] = None,
) -> PredictionListResponse:
    """List predictions, newest first.

    Each entry carries its derived status (verified / overdue / pending) and
    its verification, if any.
    """
    return PredictionListResponse(
        predictions=service.list_predictions(category=category, status=status)
    )


@router.get("/predictions/{prediction_id}", response_model=PredictionDetailResponse)
def get_prediction(
    prediction_id: Annotated[int, Path(description="Prediction id")],
    service: Annotated[PredictionService, Depends(get_prediction_service)],
) -> PredictionDetailResponse:
    """Fetch one prediction joined with its verification."""
    return PredictionDetailResponse(prediction=service.get_prediction(prediction_id))


@router.post(
    "/predictions",
    response_model=CreatedResponse,
    dependencies=SUBMISSION_GUARDS,
)
def create_prediction(
    body: Annotated[dict[str, Any], Depends(read_json_body)],
    service: Annotated[PredictionService, Depends(get_prediction_service)],
) -> CreatedResponse:
    """Submit a new prediction.

    Required: ``predictor_name``, ``prediction_text``, ``predicted_date``
    (YYYY-MM-DD, not in the future). Optional: ``target_date`` (after the
    predicted date), ``target_description``, ``category``,
    ``confidence_level`` (1-10), ``source_url``, ``notes``.

    All validation problems are reported together with a 400.
    """
    data = validate_prediction_submission(body, today=service.today)
    prediction_id = service.create_prediction(data)
    return CreatedResponse(id=prediction_id, message="Prediction added successfully")


@router.post(
    "/predictions/{prediction_id}/verify",
    response_model=CreatedResponse,
    dependencies=SUBMISSION_GUARDS,
)
def verify_prediction(
    prediction_id: Annotated[int, Path(description="Prediction id")],
    body: Annotated[dict[str, Any], Depends(read_json_body)],
    service: Annotated[PredictionService, Depends(get_prediction_service)],
) -> CreatedResponse:
    """Record the real-world outcome of a prediction.

    Required: ``outcome``, ``outcome_description``, ``verified_by``.
    Optional: ``evidence_url``, ``confidence_score`` (1-10), ``notes``.
    A prediction can be verified once; later attempts get a 400.
    """
    if not 1 <= prediction_id <= MAX_PREDICTION_ID:
        raise ValidationAppError(
            code="invalid_prediction_id",
            message="Invalid prediction ID",
            details={"errors": ["Invalid prediction ID"]},
        )

    data = validate_verification_submission(body)
    verification_id = service.create_verification(prediction_id, data)
    return CreatedResponse(id=verification_id, message="Verification added successfully")
