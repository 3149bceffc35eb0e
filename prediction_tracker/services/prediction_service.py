"""Prediction tracking service: submissions, lookups and accuracy statistics.

Every operation is a single read or a single insert; the database's own
atomicity is the only transaction boundary. The one-verification-per-
prediction rule is an application check, so two concurrent verifications of
the same prediction can both succeed; reads then use the earliest one.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date
from typing import Iterator

from sqlalchemy import case, exists, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, aliased, selectinload

from prediction_tracker.core.errors import DatabaseAppError, NotFoundAppError, ValidationAppError
from prediction_tracker.db.models import Prediction, Verification
from prediction_tracker.schemas.predictions import (
    Category,
    CategoryCount,
    Outcome,
    OutcomeCount,
    PredictionCreate,
    PredictionResponse,
    PredictionStatus,
    PredictorStats,
    StatsResponse,
    VerificationCreate,
    VerificationResponse,
)

logger = logging.getLogger(__name__)

# Largest id a 64-bit INTEGER primary key can hold
MAX_PREDICTION_ID = 2**63 - 1


def derive_status(
    target_date: date | None, is_verified: bool, today: date | None = None
) -> PredictionStatus:
    """Derive the display status of a prediction.

    - verified: a verification exists (regardless of target date)
    - overdue: the target date has passed without a verification
    - pending: anything else, including open-ended predictions

    Examples:
        >>> derive_status(None, False).value
        'pending'
        >>> derive_status(date(2000, 1, 1), True).value
        'verified'
    """
    if is_verified:
        return PredictionStatus.VERIFIED
    today = today or date.today()
    if target_date is not None and target_date < today:
        return PredictionStatus.OVERDUE
    return PredictionStatus.PENDING


def _percentage(part: int, whole: int) -> float | None:
    if not whole:
        return None
    return round(part / whole * 100, 1)


def _prediction_not_found(prediction_id: int) -> NotFoundAppError:
    return NotFoundAppError(
        code="prediction_not_found",
        message="Prediction not found",
        details={"prediction_id": prediction_id},
    )


def _parse_filter(value: str | None, choices, field: str):
    if value is None or not value.strip():
        return None
    try:
        return choices(value.strip().lower())
    except ValueError as exc:
        allowed = ", ".join(choice.value for choice in choices)
        message = f"{field.capitalize()} filter must be one of: {allowed}"
        raise ValidationAppError(
            code="invalid_filter",
            message=message,
            details={"errors": [message], "field": field},
        ) from exc


class PredictionService:
    """Business operations over predictions and verifications.

    Args:
        db: SQLAlchemy session scoped to the current request.
        today: Optional fixed reference date (defaults to the current date per call).
    """

    def __init__(self, db: Session, *, today: date | None = None) -> None:
        self._db = db
        self._today = today

    @property
    def today(self) -> date:
        return self._today or date.today()

    @contextmanager
    def _database_errors(self, operation: str) -> Iterator[None]:
        """Roll back and surface storage failures as DatabaseAppError."""
        try:
            yield
        except SQLAlchemyError as exc:
            self._db.rollback()
            logger.error(
                "database.operation_failed",
                extra={"operation": operation, "error_type": type(exc).__name__},
            )
            raise DatabaseAppError(
                code="database_error",
                message="The request could not be completed. Please try again later.",
            ) from exc

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_response(self, prediction: Prediction) -> PredictionResponse:
        """Build the API representation, including derived status."""
        verification = prediction.verification
        return PredictionResponse(
            id=prediction.id,
            predictor_name=prediction.predictor_name,
            prediction_text=prediction.prediction_text,
            predicted_date=prediction.predicted_date,
            target_date=prediction.target_date,
            target_description=prediction.target_description,
            category=prediction.category,
            confidence_level=prediction.confidence_level,
            source_url=prediction.source_url,
            notes=prediction.notes,
            created_at=prediction.created_at,
            status=derive_status(prediction.target_date, verification is not None, self.today),
            tags=[tag.name for tag in prediction.tags],
            verification=(
                VerificationResponse.model_validate(verification) if verification else None
            ),
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_prediction(self, data: PredictionCreate) -> int:
        """Insert a prediction and return its id."""
        prediction = Prediction(
            predictor_name=data.predictor_name,
            prediction_text=data.prediction_text,
            predicted_date=data.predicted_date,
            target_date=data.target_date,
            target_description=data.target_description,
            category=data.category.value,
            confidence_level=data.confidence_level,
            source_url=data.source_url,
            notes=data.notes,
        )

        with self._database_errors("create_prediction"):
            self._db.add(prediction)
            self._db.commit()
            self._db.refresh(prediction)

        logger.info(
            "prediction.created",
            extra={"prediction_id": prediction.id, "category": prediction.category},
        )
        return prediction.id

    def create_verification(self, prediction_id: int, data: VerificationCreate) -> int:
        """Attach the verification of record to an existing prediction.

        Raises:
            NotFoundAppError: The prediction does not exist.
            ValidationAppError: The prediction already has a verification.
        """
        if not 1 <= prediction_id <= MAX_PREDICTION_ID:
            raise _prediction_not_found(prediction_id)

        with self._database_errors("create_verification.lookup"):
            found = self._db.scalar(select(Prediction.id).where(Prediction.id == prediction_id))
            already_verified = self._db.scalar(
                select(exists().where(Verification.prediction_id == prediction_id))
            )

        if found is None:
            raise _prediction_not_found(prediction_id)
        if already_verified:
            raise ValidationAppError(
                code="already_verified",
                message="Prediction already verified",
                details={"errors": ["Prediction already verified"], "prediction_id": prediction_id},
            )

        verification = Verification(
            prediction_id=prediction_id,
            outcome=data.outcome.value,
            outcome_description=data.outcome_description,
            evidence_url=data.evidence_url,
            verified_by=data.verified_by,
            confidence_score=data.confidence_score,
            notes=data.notes,
        )

        with self._database_errors("create_verification"):
            self._db.add(verification)
            self._db.commit()
            self._db.refresh(verification)

        logger.info(
            "verification.created",
            extra={
                "prediction_id": prediction_id,
                "verification_id": verification.id,
                "outcome": verification.outcome,
            },
        )
        return verification.id

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_predictions(
        self, *, category: str | None = None, status: str | None = None
    ) -> list[PredictionResponse]:
        """List predictions newest first, optionally filtered.

        Raises:
            ValidationAppError: Unknown category or status filter.
        """
        category_filter = _parse_filter(category, Category, "category")
        status_filter = _parse_filter(status, PredictionStatus, "status")

        stmt = (
            select(Prediction)
            .options(selectinload(Prediction.verifications), selectinload(Prediction.tags))
            .order_by(Prediction.created_at.desc(), Prediction.id.desc())
        )

        if category_filter is not None:
            stmt = stmt.where(Prediction.category == category_filter.value)

        is_verified = exists().where(Verification.prediction_id == Prediction.id)
        today = self.today
        if status_filter is PredictionStatus.VERIFIED:
            stmt = stmt.where(is_verified)
        elif status_filter is PredictionStatus.OVERDUE:
            stmt = stmt.where(
                ~is_verified,
                Prediction.target_date.is_not(None),
                Prediction.target_date < today,
            )
        elif status_filter is PredictionStatus.PENDING:
            stmt = stmt.where(
                ~is_verified,
                or_(Prediction.target_date.is_(None), Prediction.target_date >= today),
            )

        with self._database_errors("list_predictions"):
            predictions = self._db.scalars(stmt).all()
            return [self.to_response(prediction) for prediction in predictions]

    def get_prediction(self, prediction_id: int) -> PredictionResponse:
        """Fetch one prediction joined with its verification.

        Raises:
            NotFoundAppError: The prediction does not exist.
        """
        if not 1 <= prediction_id <= MAX_PREDICTION_ID:
            raise _prediction_not_found(prediction_id)

        stmt = (
            select(Prediction)
            .options(selectinload(Prediction.verifications), selectinload(Prediction.tags))
            .where(Prediction.id == prediction_id)
        )
        with self._database_errors("get_prediction"):
            prediction = self._db.scalar(stmt)
            if prediction is not None:
                return self.to_response(prediction)

        raise _prediction_not_found(prediction_id)

    def get_stats(self) -> StatsResponse:
        """Aggregate counts by outcome, by category, and per-predictor accuracy."""
        # Only the earliest verification of each prediction counts.
        first_verification = (
            select(
                Verification.prediction_id.label("prediction_id"),
                func.min(Verification.id).label("verification_id"),
            )
            .group_by(Verification.prediction_id)
            .subquery()
        )
        record = aliased(Verification)

        with self._database_errors("get_stats"):
            total = self._db.scalar(select(func.count(Prediction.id))) or 0
            verified = self._db.scalar(select(func.count()).select_from(first_verification)) or 0

            outcome_rows = self._db.execute(
                select(record.outcome, func.count(record.id))
                .join(first_verification, first_verification.c.verification_id == record.id)
                .group_by(record.outcome)
                .order_by(func.count(record.id).desc(), record.outcome)
            ).all()

            category_rows = self._db.execute(
                select(Prediction.category, func.count(Prediction.id))
                .group_by(Prediction.category)
                .order_by(func.count(Prediction.id).desc(), Prediction.category)
            ).all()

            predictor_rows = self._db.execute(
                select(
                    Prediction.predictor_name,
                    func.count(Prediction.id),
                    func.count(record.id),
                    func.coalesce(
                        func.sum(case((record.outcome == Outcome.CORRECT.value, 1), else_=0)), 0
                    ),
                )
                .outerjoin(first_verification, first_verification.c.prediction_id == Prediction.id)
                .outerjoin(record, record.id == first_verification.c.verification_id)
                .group_by(Prediction.predictor_name)
                .order_by(func.count(Prediction.id).desc(), Prediction.predictor_name)
            ).all()

        return StatsResponse(
            total_predictions=total,
            verified_predictions=verified,
            pending_predictions=total - verified,
            verification_rate=_percentage(verified, total),
            outcome_stats=[
                OutcomeCount(outcome=outcome, count=count) for outcome, count in outcome_rows
            ],
            category_stats=[
                CategoryCount(category=category, count=count) for category, count in category_rows
            ],
            predictor_stats=[
                PredictorStats(
                    predictor_name=name,
                    total_predictions=total_count,
                    verified_predictions=verified_count,
                    correct_predictions=int(correct),
                    accuracy=_percentage(int(correct), verified_count),
                )
                for name, total_count, verified_count, correct in predictor_rows
            ],
        )
