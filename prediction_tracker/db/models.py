"""Relational models: predictions, verifications, tags and their join table."""

from __future__ import annotations

from datetime import UTC, date, datetime
from typing import List, Optional

from sqlalchemy import (
    CheckConstraint, Date, DateTime, ForeignKey, Index, Integer, String, Text
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from prediction_tracker.db.database import Base
from prediction_tracker.schemas.predictions import Category, Outcome


def _utcnow() -> datetime:
    return datetime.now(UTC)


_OUTCOME_VALUES = ", ".join(f"'{outcome.value}'" for outcome in Outcome)


class Prediction(Base):
    """A recorded claim about a future event.

    Rows are immutable once created; deleting one cascades to its
    verifications and tag links.
    """

    __tablename__ = "predictions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    predictor_name: Mapped[str] = mapped_column(String(100), nullable=False)
    prediction_text: Mapped[str] = mapped_column(Text, nullable=False)

    # When the prediction was made
    predicted_date: Mapped[date] = mapped_column(Date, nullable=False)
    # When it should be evaluated; open-ended when null
    target_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    target_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    category: Mapped[str] = mapped_column(
        String(20), default=Category.GENERAL.value, nullable=False
    )
    confidence_level: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    source_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, onupdate=_utcnow, nullable=False
    )

    verifications: Mapped[List["Verification"]] = relationship(
        "Verification",
        back_populates="prediction",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Verification.id",
    )
    tags: Mapped[List["Tag"]] = relationship(
        "Tag",
        secondary="prediction_tags",
        order_by="Tag.name",
        viewonly=True,
    )

    __table_args__ = (
        CheckConstraint(
            "confidence_level IS NULL OR (confidence_level >= 1 AND confidence_level <= 10)",
            name="ck_predictions_confidence_level",
        ),
        Index("idx_predictions_predictor", "predictor_name"),
        Index("idx_predictions_date", "predicted_date"),
        Index("idx_predictions_target_date", "target_date"),
        Index("idx_predictions_category", "category"),
    )

    @property
    def verification(self) -> Optional["Verification"]:
        """The verification of record (the earliest, should a race add more)."""
        return self.verifications[0] if self.verifications else None


class Verification(Base):
    """The recorded real-world outcome matched to a prediction.

    At most one per prediction is enforced by the service, not the schema.
    """

    __tablename__ = "verifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    prediction_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("predictions.id", ondelete="CASCADE"), nullable=False
    )
    outcome: Mapped[str] = mapped_column(String(20), nullable=False)
    outcome_description: Mapped[str] = mapped_column(Text, nullable=False)
    evidence_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    verified_by: Mapped[str] = mapped_column(String(100), nullable=False)
    verification_date: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, nullable=False
    )
    confidence_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)

    prediction: Mapped["Prediction"] = relationship("Prediction", back_populates="verifications")

    __table_args__ = (
        CheckConstraint(f"outcome IN ({_OUTCOME_VALUES})", name="ck_verifications_outcome"),
        CheckConstraint(
            "confidence_score IS NULL OR (confidence_score >= 1 AND confidence_score <= 10)",
            name="ck_verifications_confidence_score",
        ),
        Index("idx_verifications_prediction_id", "prediction_id"),
        Index("idx_verifications_outcome", "outcome"),
    )


class Tag(Base):
    """Free-form label attached to predictions (seed data only)."""

    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)

    __table_args__ = (
        Index("idx_tags_name", "name"),
    )


class PredictionTag(Base):
    """Many-to-many link between predictions and tags."""

    __tablename__ = "prediction_tags"

    prediction_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("predictions.id", ondelete="CASCADE"), primary_key=True
    )
    tag_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)
