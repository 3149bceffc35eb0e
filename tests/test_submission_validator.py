"""Tests for whole-submission validation of predictions and verifications."""

from datetime import date

import pytest

from prediction_tracker.core.errors import ValidationAppError
from prediction_tracker.schemas.predictions import Category, Outcome
from prediction_tracker.services.submission_validator import (
    validate_prediction_submission,
    validate_verification_submission,
)

TODAY = date(2025, 6, 1)


def _errors(exc_info) -> list[str]:
    return exc_info.value.details["errors"]


class TestPredictionSubmission:
    def test_minimal_submission(self):
        data = validate_prediction_submission(
            {
                "predictor_name": "Jane Doe",
                "prediction_text": "Bitcoin will reach 100k by 2025",
                "predicted_date": "2023-01-01",
            },
            today=TODAY,
        )

        assert data.predicted_date == date(2023, 1, 1)
        assert data.category is Category.GENERAL
        assert data.target_date is None
        assert data.confidence_level is None

    def test_full_submission(self, valid_prediction):
        data = validate_prediction_submission(valid_prediction, today=TODAY)

        assert data.category is Category.TECHNOLOGY
        assert data.confidence_level == 7
        assert data.notes == "From the translator&#x27;s notes"
        assert data.source_url == "https://example.com/notes"

    @pytest.mark.parametrize("level", [1, 10])
    def test_confidence_boundaries_accepted(self, valid_prediction, level):
        valid_prediction["confidence_level"] = level

        assert validate_prediction_submission(valid_prediction, today=TODAY).confidence_level == level

    @pytest.mark.parametrize("level", [0, 11])
    def test_confidence_out_of_range_rejected(self, valid_prediction, level):
        valid_prediction["confidence_level"] = level

        with pytest.raises(ValidationAppError) as exc_info:
            validate_prediction_submission(valid_prediction, today=TODAY)

        assert _errors(exc_info) == ["Confidence level must be an integer between 1 and 10"]

    def test_missing_prediction_text(self, valid_prediction):
        del valid_prediction["prediction_text"]

        with pytest.raises(ValidationAppError) as exc_info:
            validate_prediction_submission(valid_prediction, today=TODAY)

        assert exc_info.value.code == "validation_failed"
        assert _errors(exc_info) == ["Prediction text is required"]

    def test_all_problems_reported_together(self):
        with pytest.raises(ValidationAppError) as exc_info:
            validate_prediction_submission(
                {"category": "astrology", "source_url": "ftp://x"}, today=TODAY
            )

        errors = _errors(exc_info)
        assert "Predictor name is required" in errors
        assert "Prediction text is required" in errors
        assert "Predicted date is required" in errors
        assert any(e.startswith("Category must be one of") for e in errors)
        assert "Source url must be an http or https URL" in errors
        assert exc_info.value.message == "; ".join(errors)

    def test_predicted_date_in_future_rejected(self, valid_prediction):
        valid_prediction["predicted_date"] = "2025-06-02"
        valid_prediction["target_date"] = "2026-01-01"

        with pytest.raises(ValidationAppError) as exc_info:
            validate_prediction_submission(valid_prediction, today=TODAY)

        assert _errors(exc_info) == ["Predicted date cannot be in the future"]

    def test_predicted_date_today_accepted(self, valid_prediction):
        valid_prediction["predicted_date"] = "2025-06-01"

        assert validate_prediction_submission(valid_prediction, today=TODAY).predicted_date == TODAY

    @pytest.mark.parametrize("target", ["2020-01-01", "2019-12-31"])
    def test_target_date_must_follow_predicted_date(self, valid_prediction, target):
        valid_prediction["target_date"] = target

        with pytest.raises(ValidationAppError) as exc_info:
            validate_prediction_submission(valid_prediction, today=TODAY)

        assert _errors(exc_info) == ["Target date must be after the predicted date"]

    def test_script_in_text_rejected(self, valid_prediction):
        valid_prediction["prediction_text"] = "<script>alert('x')</script>"

        with pytest.raises(ValidationAppError) as exc_info:
            validate_prediction_submission(valid_prediction, today=TODAY)

        assert _errors(exc_info) == ["Prediction text contains potentially malicious content"]


class TestVerificationSubmission:
    def test_valid_submission(self, valid_verification):
        data = validate_verification_submission(valid_verification)

        assert data.outcome is Outcome.CORRECT
        assert data.confidence_score == 9
        assert data.verified_by == "Charles Babbage"

    def test_required_fields(self):
        with pytest.raises(ValidationAppError) as exc_info:
            validate_verification_submission({})

        assert _errors(exc_info) == [
            "Outcome is required",
            "Outcome description is required",
            "Verified by is required",
        ]

    def test_unknown_outcome(self, valid_verification):
        valid_verification["outcome"] = "maybe"

        with pytest.raises(ValidationAppError) as exc_info:
            validate_verification_submission(valid_verification)

        assert _errors(exc_info) == [
            "Outcome must be one of: correct, incorrect, partially_correct, too_early, unprovable"
        ]

    def test_form_notes_alias(self, valid_verification):
        del valid_verification["notes"]
        valid_verification["verification_notes"] = "Checked twice"

        assert validate_verification_submission(valid_verification).notes == "Checked twice"

    @pytest.mark.parametrize("score", [0, 11])
    def test_confidence_score_out_of_range(self, valid_verification, score):
        valid_verification["confidence_score"] = score

        with pytest.raises(ValidationAppError):
            validate_verification_submission(valid_verification)
