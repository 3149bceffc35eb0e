from __future__ import annotations

"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) to
keep tests and the ASGI entry point building the same application.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from prediction_tracker.api.routes import health_router, predictions_router, stats_router
from prediction_tracker.core.config import parse_csv_setting, settings
from prediction_tracker.core.exception_handlers import setup_exception_handlers
from prediction_tracker.core.logging import configure_logging
from prediction_tracker.core.middleware import request_id_middleware, security_headers_middleware
from prediction_tracker.core.openapi import apply_openapi_customizations
from prediction_tracker.db.database import SessionLocal, init_db
from prediction_tracker.db.seed import seed_database

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables (and optionally seed) on startup."""
    logger.info("app.starting", extra={"app_env": settings.app_env})
    init_db()
    if settings.database.seed_on_startup:
        with SessionLocal() as db:
            seed_database(db)

    yield

    logger.info("app.stopping")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Prediction Tracker API",
        description=(
            "Record predictions, attach the real-world outcome once it is known, "
            "and follow accuracy statistics per outcome, category and predictor. "
            "Submissions are protected by rate limiting, bot and honeypot checks, "
            "and input sanitization."
        ),
        version="0.1.0",
        debug=settings.app.debug,
        lifespan=lifespan,
    )

    # Middleware (last added runs first)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=sorted(parse_csv_setting(settings.app.cors_origins)),
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "X-Requested-With", "X-Captcha-Token", "X-Request-ID"],
        max_age=86400,
    )
    app.middleware("http")(security_headers_middleware)
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(predictions_router)
    app.include_router(stats_router)
    app.include_router(health_router)

    # OpenAPI customizations (tags, guard responses)
    apply_openapi_customizations(app)

    return app
