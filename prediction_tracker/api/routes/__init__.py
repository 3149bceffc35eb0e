from __future__ import annotations

from prediction_tracker.api.routes.health import router as health_router
from prediction_tracker.api.routes.predictions import router as predictions_router
from prediction_tracker.api.routes.stats import router as stats_router

__all__ = ["health_router", "predictions_router", "stats_router"]
