"""Default tags and sample predictions for fresh databases.

Seeding is idempotent: tags are inserted by name when missing, and sample
predictions only go into an empty predictions table.
"""

from __future__ import annotations

import logging
from datetime import date, datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from prediction_tracker.db.models import Prediction, PredictionTag, Tag, Verification

logger = logging.getLogger(__name__)


DEFAULT_TAGS: list[tuple[str, str]] = [
    ("Technology", "Predictions about tech innovations, AI, software, hardware"),
    ("Economics", "Financial markets, economic trends, business predictions"),
    ("Politics", "Political events, elections, policy changes"),
    ("Climate", "Weather, climate change, environmental predictions"),
    ("Sports", "Sports outcomes, records, tournament predictions"),
    ("Health", "Medical breakthroughs, health trends, pandemic predictions"),
    ("Society", "Social trends, cultural changes, demographic shifts"),
    ("Science", "Scientific discoveries, space exploration, research findings"),
]

SAMPLE_PREDICTIONS: list[dict] = [
    {
        "predictor_name": "Elon Musk",
        "prediction_text": "Tesla will be producing 20 million vehicles per year by 2030",
        "predicted_date": date(2020, 9, 22),
        "target_date": date(2030, 12, 31),
        "target_description": "Tesla annual vehicle production reaches 20 million units",
        "category": "technology",
        "confidence_level": 8,
        "source_url": "https://twitter.com/elonmusk/status/1308420369042845696",
        "notes": "Bold prediction made during Battery Day event",
        "tags": ["Technology"],
    },
    {
        "predictor_name": "Ray Kurzweil",
        "prediction_text": "AI will pass the Turing test by 2029",
        "predicted_date": date(2005, 1, 1),
        "target_date": date(2029, 12, 31),
        "target_description": "An AI system convincingly passes the Turing test in a formal setting",
        "category": "technology",
        "confidence_level": 9,
        "source_url": "https://example.com/kurzweil-prediction",
        "notes": "Part of his predictions in The Singularity is Near",
        "tags": ["Technology"],
    },
    {
        "predictor_name": "Warren Buffett",
        "prediction_text": "The Dow Jones will hit 100,000 in my lifetime",
        "predicted_date": date(2017, 5, 6),
        "target_date": date(2024, 12, 31),
        "target_description": "Dow Jones Industrial Average reaches 100,000 points",
        "category": "economics",
        "confidence_level": 7,
        "source_url": "https://example.com/buffett-prediction",
        "notes": "Made during Berkshire Hathaway annual meeting",
        "tags": ["Economics"],
    },
    {
        "predictor_name": "Bill Gates",
        "prediction_text": "Most countries will have switched to synthetic meat by 2035",
        "predicted_date": date(2021, 2, 14),
        "target_date": date(2035, 12, 31),
        "target_description": "Majority of developed countries primary meat consumption is synthetic/lab-grown",
        "category": "technology",
        "confidence_level": 6,
        "source_url": "https://example.com/gates-meat-prediction",
        "notes": "Discussed in his book and interviews about climate change",
        "tags": ["Technology", "Health"],
    },
    {
        "predictor_name": "Nate Silver",
        "prediction_text": "Donald Trump will not be the 2024 Republican nominee",
        "predicted_date": date(2022, 11, 15),
        "target_date": date(2024, 7, 15),
        "target_description": "Someone other than Trump gets the Republican nomination for 2024 presidential election",
        "category": "politics",
        "confidence_level": 5,
        "source_url": "https://example.com/silver-trump-prediction",
        "notes": "Analysis based on polling trends and historical data",
        "tags": ["Politics"],
        "verification": {
            "outcome": "incorrect",
            "outcome_description": "Donald Trump secured the Republican nomination for 2024",
            "evidence_url": "https://example.com/trump-nomination-news",
            "verified_by": "Prediction Tracker System",
            "verification_date": datetime(2024, 7, 16, 10, 0, 0),
            "confidence_score": 10,
            "notes": "Trump officially became the Republican nominee at the 2024 RNC",
        },
    },
]


def seed_tags(db: Session) -> dict[str, int]:
    """Insert missing default tags and return a name → id mapping."""
    existing = {tag.name: tag for tag in db.scalars(select(Tag))}
    for name, description in DEFAULT_TAGS:
        if name not in existing:
            tag = Tag(name=name, description=description)
            db.add(tag)
            existing[name] = tag
    db.flush()
    return {name: tag.id for name, tag in existing.items()}


def seed_database(db: Session, *, include_samples: bool = True) -> int:
    """Seed default tags and, for an empty table, the sample predictions.

    Returns:
        Number of sample predictions inserted.
    """
    tag_ids = seed_tags(db)

    inserted = 0
    has_predictions = db.scalar(select(func.count(Prediction.id))) or 0
    if include_samples and not has_predictions:
        for sample in SAMPLE_PREDICTIONS:
            fields = {k: v for k, v in sample.items() if k not in ("tags", "verification")}
            prediction = Prediction(**fields)
            db.add(prediction)
            db.flush()

            for tag_name in sample["tags"]:
                db.add(PredictionTag(prediction_id=prediction.id, tag_id=tag_ids[tag_name]))

            if "verification" in sample:
                db.add(Verification(prediction_id=prediction.id, **sample["verification"]))

            inserted += 1

    db.commit()
    logger.info(
        "database.seeded",
        extra={"tags": len(tag_ids), "sample_predictions": inserted},
    )
    return inserted
