"""
Main FastAPI application entry point.

This module sets up the FastAPI app with exception handlers, routes, and lifecycle events.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .api import cloudwatch_router, healthz_router, metrics_router
from .config import Settings, get_settings
from .core.exceptions import ForwarderException
from .core.forwarder import CloudWatchForwarder
from .core.metrics import MetricsCollector
from .core.sender import IngestionSender
from .log_config import configure_logging


def create_lifespan_handler(settings: Settings) -> Any:
    """Create a lifespan handler with access to settings."""
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """
        FastAPI lifespan context manager.

        Opens the shared HTTP session on startup and closes it on shutdown.
        """
        logger = structlog.get_logger(__name__)
        logger.info("Starting CloudWatch forwarder service", version=app.version)

        metrics_collector = MetricsCollector()
        app.state.metrics = metrics_collector
        app.state.settings = settings

        sender = IngestionSender(settings.destination, metrics=metrics_collector)
        forwarder = CloudWatchForwarder(settings, sender=sender, metrics=metrics_collector)
        app.state.forwarder = forwarder
        await forwarder.start()

        try:
            logger.info("CloudWatch forwarder service started successfully")
            yield
        finally:
            logger.info("Shutting down CloudWatch forwarder service")
            await forwarder.stop()
            logger.info("CloudWatch forwarder service shutdown complete")

    return lifespan


async def forwarder_exception_handler(request: Request, exc: ForwarderException) -> JSONResponse:
    """Handle forwarder exceptions."""
    logger = structlog.get_logger(__name__)
    logger.error(
        "Forwarder exception occurred",
        error=str(exc),
        status_code=exc.status_code,
        path=request.url.path,
        method=request.method,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error_code,
            "message": str(exc),
            "details": exc.details,
        },
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger = structlog.get_logger(__name__)
    logger.error(
        "Unexpected exception occurred",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred",
        },
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    This factory function ensures all configuration is applied
    whether running via uvicorn or from tests.
    """
    settings = settings or get_settings()

    configure_logging(settings.log_level, json_logs=not settings.debug)

    app = FastAPI(
        title="CloudWatch Forwarder",
        description="CloudWatch Logs subscription → log-ingestion endpoint",
        version="0.1.0",
        lifespan=create_lifespan_handler(settings),
    )

    app.add_exception_handler(ForwarderException, forwarder_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(cloudwatch_router, prefix="/v1", tags=["cloudwatch"])
    app.include_router(metrics_router, tags=["metrics"])
    app.include_router(healthz_router, tags=["health"])

    @app.get("/", include_in_schema=False)
    async def root() -> Dict[str, str]:
        """Root endpoint with service information."""
        return {
            "service": "CloudWatch Forwarder",
            "version": app.version,
            "docs": "/docs",
        }

    return app


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "cloudwatch_forwarder.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
