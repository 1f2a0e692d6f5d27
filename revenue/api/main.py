"""FastAPI application for the revenue configuration registry.

This module wires the application together:
- Application lifecycle (database check on startup, pool disposal on shutdown)
- Middleware registration in the correct order
- Exception handler registration
- One router per configuration kind under ``/api/v1/configurations``
- Health and info endpoints
- OpenTelemetry instrumentation

Middleware run in reverse order of registration, so the last one added is
the first to see a request.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, cast

from fastapi import FastAPI, Request
from loguru import logger

from revenue.api.constants import API_PREFIX
from revenue.api.middleware.error_handler import register_exception_handlers
from revenue.api.middleware.request_context import RequestContextMiddleware
from revenue.api.middleware.request_logging import RequestLoggingMiddleware
from revenue.api.routes import include_configuration_routes
from revenue.api.utils.responses import ORJSONResponse
from revenue.core.config import Settings, get_settings
from revenue.core.logging import setup_logging
from revenue.core.observability import instrument_app, setup_tracing
from revenue.domain.registry.kinds import KINDS
from revenue.infrastructure.database.session import (
    check_database_connection,
    close_database,
    get_engine,
)
from revenue.infrastructure.dependencies import create_memory_store


def _uses_database(settings: Settings) -> bool:
    return settings.registry_config.store_backend == "database"


@asynccontextmanager
async def lifespan(app_instance: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifespan events.

    Args:
        app_instance: The FastAPI application instance.

    Yields:
        None: Nothing is yielded, this is just a lifespan context.

    Raises:
        RuntimeError: If the database backend is configured and unreachable.
    """
    settings: Settings = app_instance.state.settings

    if _uses_database(settings):
        is_healthy, error_msg = await check_database_connection()
        if not is_healthy:
            logger.error("Database connection failed during startup: {}", error_msg)
            msg = f"Database connection failed: {error_msg}"
            raise RuntimeError(msg)
        logger.info("Database connection successful")
    else:
        logger.info("Using in-memory configuration store")

    logger.info(
        "Application startup complete - {} v{}",
        app_instance.title,
        app_instance.version,
    )

    yield

    logger.info("Application shutdown initiated")
    if _uses_database(settings):
        await close_database()
    logger.info("Application shutdown complete")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings instance. If not provided, will use
            get_settings().

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()

    setup_logging(settings)
    setup_tracing(settings)

    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=settings.openapi_url,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )
    application.state.settings = settings
    if not _uses_database(settings):
        application.state.memory_store = create_memory_store(settings)

    # Register exception handlers BEFORE middleware
    register_exception_handlers(application)

    # 2. Request logging (runs inside the correlation id context)
    application.add_middleware(RequestLoggingMiddleware, log_config=settings.log_config)

    # 1. Request context (creates correlation and request ids)
    application.add_middleware(RequestContextMiddleware)

    include_configuration_routes(application)

    @application.get("/")
    async def root() -> dict[str, Any]:
        """List the configuration kinds and where they are served."""
        return {
            "message": settings.app_name,
            "configurations": {
                name: f"{API_PREFIX}/{name}" for name in KINDS
            },
        }

    @application.get("/health")
    async def health() -> dict[str, object]:
        """Health check endpoint for monitoring and container orchestration.

        Returns:
            dict[str, object]: Status, store backend and, for the database
                backend, whether the database answered.
        """
        backend = settings.registry_config.store_backend
        health_status: dict[str, object] = {"status": "healthy", "store": backend}
        if not _uses_database(settings):
            return health_status

        is_healthy, error_msg = await check_database_connection()
        health_status["database"] = is_healthy

        if is_healthy:
            pool = cast("Any", get_engine().pool)
            logger.bind(
                metric_type="db.pool.health",
                checked_out=pool.checkedout(),
                size=pool.size(),
                overflow=pool.overflow(),
            ).info("Database pool health check")
        else:
            # Report "degraded" rather than failing the health check outright
            logger.warning("Database health check failed: {}", error_msg)
            health_status["status"] = "degraded"

        return health_status

    @application.get("/info")
    async def info(request: Request) -> dict[str, Any]:
        """Get application information."""
        app_settings: Settings = request.app.state.settings
        return {
            "app_name": app_settings.app_name,
            "version": app_settings.app_version,
            "environment": app_settings.environment,
            "debug": app_settings.debug,
            "store_backend": app_settings.registry_config.store_backend,
            "timezone": app_settings.registry_config.timezone,
        }

    instrument_app(application, settings)

    return application


app = create_app()
