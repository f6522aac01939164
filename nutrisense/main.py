"""
FastAPI application factory with middleware, routing, and lifecycle management.
"""

import time
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from nutrisense.api.v1.router import api_router
from nutrisense.core.config import Settings, get_settings
from nutrisense.core.logging import configure_logging
from nutrisense.db.database import Database
from nutrisense.services.notifications.interfaces import INotificationDispatcher
from nutrisense.services.recompute import RecomputeService

logger = structlog.get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    dispatcher: Optional[INotificationDispatcher] = None,
) -> FastAPI:
    """
    Build the API application.

    Args:
        settings: Settings to use; environment-specific settings by default
        database: Store handle to use; built from ``settings.database_url`` by default
        dispatcher: Notification backend for high-severity alerts
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan management."""
        configure_logging(settings)
        logger.info("Starting NutriSense engine", environment=settings.environment)

        db = database or Database(settings.database_url, echo=settings.database_echo)
        if settings.environment in ("development", "test"):
            db.create_all()

        app.state.database = db
        app.state.recompute_service = RecomputeService(db, settings.tuning, dispatcher)
        logger.info("Application startup complete")

        yield

        logger.info("Shutting down NutriSense engine")
        await app.state.recompute_service.drain()
        if database is None:
            db.dispose()
            logger.info("Database connections closed")
        logger.info("Application shutdown complete")

    app = FastAPI(
        title=settings.app_name,
        description="Nutrition reliability scoring, consumption modeling and health alerts",
        version=settings.version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all HTTP requests with timing."""
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time

        logger.info(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            process_time=round(process_time, 4),
        )
        response.headers["X-Process-Time"] = str(process_time)
        return response

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.error(
            "Unhandled exception",
            method=request.method,
            path=request.url.path,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "message": "An unexpected error occurred. Please try again later.",
            },
        )

    @app.get("/health")
    async def health_check():
        """Basic health check endpoint."""
        return {
            "status": "healthy",
            "service": "nutrisense-engine",
            "version": settings.version,
            "environment": settings.environment,
        }

    app.include_router(api_router, prefix=settings.api_prefix)
    return app
