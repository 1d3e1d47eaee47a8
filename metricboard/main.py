"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from metricboard import __version__
from metricboard.api.routes import build_api_router
from metricboard.config import AppSettings, get_settings
from metricboard.core.logging import setup_logging
from metricboard.core.telemetry import setup_telemetry
from metricboard.db.database import Database
from metricboard.domain import utcnow
from metricboard.errors import register_error_handlers
from metricboard.schemas import HealthResponse
from metricboard.security import token_lifetime

logger = logging.getLogger(__name__)


def create_app(database: Database | None = None, settings: AppSettings | None = None) -> FastAPI:
    settings = settings or get_settings()
    database_instance = database or Database(settings.database_url)

    setup_logging(settings.log_level)
    logger.info("Starting %s with settings %s", settings.app_name, settings.dict_for_logging())

    @asynccontextmanager
    async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
        await database_instance.create_all()
        yield

    app = FastAPI(title=settings.app_name, version=__version__, lifespan=_lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)
    app.include_router(
        build_api_router(
            database_instance,
            duplicate_prefix=settings.duplicate_name_prefix,
            token_lifetime=token_lifetime(settings),
        )
    )
    setup_telemetry(app, settings, engine=database_instance.engine)

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health() -> HealthResponse:
        """Return service readiness metadata."""

        return HealthResponse(status="ok", service=settings.app_name, timestamp=utcnow())

    return app


__all__ = ["create_app"]
