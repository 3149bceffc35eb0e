"""Validation of prediction and verification submissions.

Turns a raw JSON object into a sanitized input model or raises a single
ValidationAppError listing every problem found.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from prediction_tracker.core.errors import ValidationAppError
from prediction_tracker.schemas.predictions import (
    Category,
    Outcome,
    PredictionCreate,
    VerificationCreate,
)
from prediction_tracker.utils.input_validators import (
    FieldErrors,
    validate_choice,
    validate_date,
    validate_score,
    validate_text,
    validate_url,
)

logger = logging.getLogger(__name__)


def _raise_if_invalid(errors: FieldErrors, kind: str) -> None:
    if not errors:
        return

    logger.info(
        "submission.rejected",
        extra={"kind": kind, "error_count": len(errors)},
    )
    raise ValidationAppError(
        code="validation_failed",
        message="; ".join(errors.messages),
        details={"errors": errors.messages},
    )


def validate_prediction_submission(
    body: dict[str, Any], *, today: date | None = None
) -> PredictionCreate:
    """Validate and sanitize a prediction submission.

    Args:
        body: Decoded JSON request body.
        today: Reference date for the "not in the future" rule.

    Returns:
        PredictionCreate with escaped text and parsed dates.

    Raises:
        ValidationAppError: With ``details.errors`` listing every violation.
    """
    today = today or date.today()
    errors = FieldErrors()

    predictor_name = validate_text(body, "predictor_name", errors, required=True)
    prediction_text = validate_text(body, "prediction_text", errors, required=True)
    predicted_date = validate_date(body, "predicted_date", errors, required=True)
    target_date = validate_date(body, "target_date", errors)
    target_description = validate_text(body, "target_description", errors)
    category = validate_choice(body, "category", Category, errors, default=Category.GENERAL)
    confidence_level = validate_score(body, "confidence_level", errors)
    source_url = validate_url(body, "source_url", errors)
    notes = validate_text(body, "notes", errors)

    if predicted_date is not None and predicted_date > today:
        errors.add("Predicted date cannot be in the future")

    if predicted_date is not None and target_date is not None and target_date <= predicted_date:
        errors.add("Target date must be after the predicted date")

    _raise_if_invalid(errors, "prediction")

    return PredictionCreate(
        predictor_name=predictor_name,
        prediction_text=prediction_text,
        predicted_date=predicted_date,
        target_date=target_date,
        target_description=target_description,
        category=category,
        confidence_level=confidence_level,
        source_url=source_url,
        notes=notes,
    )


def validate_verification_submission(body: dict[str, Any]) -> VerificationCreate:
    """Validate and sanitize a verification submission.

    ``notes`` may also be sent as ``verification_notes`` (the form field name).

    Raises:
        ValidationAppError: With ``details.errors`` listing every violation.
    """
    errors = FieldErrors()

    if body.get("notes") in (None, "") and "verification_notes" in body:
        body = {**body, "notes": body["verification_notes"]}

    outcome = validate_choice(body, "outcome", Outcome, errors, required=True)
    outcome_description = validate_text(body, "outcome_description", errors, required=True)
    verified_by = validate_text(body, "verified_by", errors, required=True)
    evidence_url = validate_url(body, "evidence_url", errors)
    confidence_score = validate_score(body, "confidence_score", errors)
    notes = validate_text(body, "notes", errors)

    _raise_if_invalid(errors, "verification")

    return VerificationCreate(
        outcome=outcome,
        outcome_description=outcome_description,
        verified_by=verified_by,
        evidence_url=evidence_url,
        confidence_score=confidence_score,
        notes=notes,
    )
