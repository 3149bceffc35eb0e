"""Pydantic schemas and enums for predictions, verifications and statistics."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Enums
# =============================================================================


class Category(str, Enum):
    """Subject area of a prediction."""

    GENERAL = "general"
    TECHNOLOGY = "technology"
    ECONOMICS = "economics"
    POLITICS = "politics"
    CLIMATE = "climate"
    SPORTS = "sports"
    HEALTH = "health"
    SOCIETY = "society"
    SCIENCE = "science"


class Outcome(str, Enum):
    """Recorded real-world result of a prediction."""

    CORRECT = "correct"
    INCORRECT = "incorrect"
    PARTIALLY_CORRECT = "partially_correct"
    TOO_EARLY = "too_early"
    UNPROVABLE = "unprovable"


class PredictionStatus(str, Enum):
    """Derived lifecycle state; never stored."""

    VERIFIED = "verified"
    OVERDUE = "overdue"
    PENDING = "pending"


# =============================================================================
# Validated inputs
# =============================================================================


class PredictionCreate(BaseModel):
    """A prediction submission that passed validation and sanitization."""

    predictor_name: str
    prediction_text: str
    predicted_date: date
    target_date: date | None = None
    target_description: str | None = None
    category: Category = Category.GENERAL
    confidence_level: int | None = Field(None, ge=1, le=10)
    source_url: str | None = None
    notes: str | None = None


class VerificationCreate(BaseModel):
    """A verification submission that passed validation and sanitization."""

    outcome: Outcome
    outcome_description: str
    verified_by: str
    evidence_url: str | None = None
    confidence_score: int | None = Field(None, ge=1, le=10)
    notes: str | None = None


# =============================================================================
# Responses
# =============================================================================


class CreatedResponse(BaseModel):
    """Acknowledgement returned by the submission endpoints."""

    id: int = Field(..., description="Identifier of the created row.")
    message: str


class VerificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    outcome: Outcome
    outcome_description: str
    evidence_url: str | None = None
    verified_by: str
    verification_date: datetime
    confidence_score: int | None = None
    notes: str | None = None


class PredictionResponse(BaseModel):
    """A prediction with its derived status and verification, if any."""

    id: int
    predictor_name: str
    prediction_text: str
    predicted_date: date
    target_date: date | None = None
    target_description: str | None = None
    category: str
    confidence_level: int | None = None
    source_url: str | None = None
    notes: str | None = None
    created_at: datetime
    status: PredictionStatus
    tags: list[str] = Field(default_factory=list)
    verification: VerificationResponse | None = None


class PredictionListResponse(BaseModel):
    predictions: list[PredictionResponse]


class PredictionDetailResponse(BaseModel):
    prediction: PredictionResponse


class OutcomeCount(BaseModel):
    outcome: Outcome
    count: int


class CategoryCount(BaseModel):
    category: str
    count: int


class PredictorStats(BaseModel):
    """Per-predictor track record."""

    predictor_name: str
    total_predictions: int
    verified_predictions: int
    correct_predictions: int
    accuracy: float | None = Field(
        None,
        description="Correct / verified as a percentage (one decimal); null when nothing is verified.",
    )


class StatsResponse(BaseModel):
    """Aggregate accuracy statistics."""

    total_predictions: int
    verified_predictions: int
    pending_predictions: int
    verification_rate: float | None = Field(
        None,
        description="Verified / total as a percentage (one decimal); null when there are no predictions.",
    )
    outcome_stats: list[OutcomeCount]
    category_stats: list[CategoryCount]
    predictor_stats: list[PredictorStats]
