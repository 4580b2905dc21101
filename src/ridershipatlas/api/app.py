# Use postponed evaluation of annotations so type hints stay as strings at runtime.
from __future__ import annotations

# `FastAPI` exposes the pivot/aggregate results as JSON for whatever chart layer sits in front.
from fastapi import FastAPI

# API routes are defined in a separate module to keep the app factory small and testable.
from ridershipatlas.api.routes import router

# `RidershipService` owns the in-memory files and memoized aggregates for this process.
from ridershipatlas.api.service import RidershipService

# `AppConfig` is the typed config model so we can avoid globals and magic strings.
from ridershipatlas.config.models import AppConfig

# Central logging configuration keeps scripts and the API on the same format/level.
from ridershipatlas.utils.logging import configure_logging


# This app factory builds the FastAPI application from a typed config.
def create_app(config: AppConfig) -> FastAPI:
    # Pitfall: `logging.basicConfig(...)` is a no-op if handlers already exist (common in tests),
    # so treat this as best-effort for local/dev.
    configure_logging(config.logging)

    app = FastAPI(title=config.app.name)

    # Store the service on `app.state` so route handlers can reach it without module globals.
    app.state.ridership_service = RidershipService(config)

    app.include_router(router)
    return app
