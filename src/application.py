"""FastAPI application factory and bootstrap helpers."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.errors import register_exception_handlers
from src.api.middleware import RequestLoggingMiddleware
from src.api.routes import include_api_routes
from src.config import settings
from src.logging_config import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events."""
    logger.info("Starting %s web API host", settings.APP_NAME)
    yield
    logger.info("Stopping %s web API host", settings.APP_NAME)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    setup_logging(
        settings.APP_NAME,
        environment=settings.ENVIRONMENT,
        level=settings.LOG_LEVEL,
        log_format=settings.LOG_FORMAT,
    )

    app = FastAPI(
        title="Product Catalog",
        description="In-memory product catalog with structured, correlation-tagged logs",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.docs_enabled else None,
        redoc_url="/redoc" if settings.docs_enabled else None,
        openapi_url="/openapi.json" if settings.docs_enabled else None,
    )

    _configure_cors(app)
    # Added last so it wraps CORS and sees every request first.
    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app)
    include_api_routes(app)

    return app


def _configure_cors(app: FastAPI) -> None:
    """Allow broad access in non-production environments."""

    if settings.is_production:
        return

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Location", "X-Request-ID"],
    )
