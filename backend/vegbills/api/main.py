"""Entry point for the FastAPI application.

This module constructs the FastAPI app, includes all routers and
sets up startup and shutdown events. When run with uvicorn it
initialises the database and loads configuration from
``vegbills.core.config``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vegbills.api.error_handlers import register_exception_handlers
from vegbills.api.routes.bills import router as bills_router
from vegbills.api.routes.cache import router as cache_router
from vegbills.api.routes.providers import router as providers_router
from vegbills.api.routes.signers import router as signers_router
from vegbills.api.routes.vegetables import router as vegetables_router
from vegbills.core import database
from vegbills.core.config import settings
from vegbills.core.observability import configure_logging, init_sentry
from vegbills.models.schemas import HealthStatus
from vegbills.services.cache import close_cache, get_cache
from vegbills.services.seed import seed_sample_data

# Configure logging
configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    # Startup
    logger.info("Starting up...")
    if init_sentry("api"):
        logger.info("Sentry SDK initialized (api)")
    await database.init_db()
    if settings.SEED_SAMPLE_DATA:
        async with database.AsyncSessionLocal() as session:
            await seed_sample_data(session, await get_cache())
    yield
    # Shutdown
    logger.info("Shutting down...")
    await close_cache()
    await database.engine.dispose()


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        lifespan=lifespan,
    )

    # Development allows any origin; elsewhere only the configured ones
    allow_origins = ["*"] if settings.is_development else list(settings.BACKEND_CORS_ORIGINS or [])
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=allow_origins != ["*"],
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    register_exception_handlers(app)

    app.include_router(bills_router)
    app.include_router(vegetables_router)
    app.include_router(providers_router)
    app.include_router(signers_router)
    app.include_router(cache_router)

    @app.api_route("/health", methods=["GET", "HEAD"], response_model=HealthStatus)
    async def health_check():
        """Health check endpoint (supports GET & HEAD)."""
        return {"status": "healthy"}

    return app


app = create_app()
