"""FastAPI application factory and configuration.

This module provides the application factory function for creating
and configuring the FastAPI application with all middleware, routes,
and lifecycle handlers.
"""

import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from engagetrack.core.config import get_settings
from engagetrack.core.logging import (
    bind_correlation_id,
    clear_context,
    configure_logging,
    get_logger,
)
from engagetrack.domain.exceptions import ErrorKind, RoleManagementError
from engagetrack.infrastructure.api.schemas import ErrorResponse, SkippedResponse
from engagetrack.infrastructure.persistence.database import (
    close_database,
    get_db_manager,
    init_database,
)

logger = get_logger(__name__)

ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.PERMISSION_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorKind.INVARIANT_VIOLATION: status.HTTP_409_CONFLICT,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.TRANSIENT_BACKEND_FAILURE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events for the application.

    Args:
        app: FastAPI application instance.

    Yields:
        None: Control is yielded to the application during its lifetime.
    """
    settings = get_settings()

    configure_logging(settings)

    logger.info(
        "Starting Engagement Tracker",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    try:
        await init_database()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        raise

    yield

    logger.info("Shutting down Engagement Tracker")

    notifier = getattr(app.state, "role_change_notifier", None)
    if notifier is not None:
        await notifier.drain()
        logger.info("Pending role change notifications drained")

    await close_database()
    logger.info("Database connection closed")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Role management service for Engagement Tracker",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    register_health_check(app)
    register_routes(app)
    register_exception_handlers(app)
    register_middleware(app)

    return app


def register_health_check(app: FastAPI) -> None:
    """Register health check endpoints.

    Args:
        app: FastAPI application instance.
    """

    @app.get("/health", tags=["health"])
    async def health_check():
        """Basic health check endpoint.

        Returns 200 if the service is running. Does not check
        database connectivity or other dependencies.
        """
        return {
            "status": "healthy",
            "service": "Engagement Tracker",
            "version": get_settings().app_version,
        }

    @app.get("/ready", tags=["health"])
    async def readiness_check():
        """Readiness check endpoint, including database connectivity."""
        db_healthy = await get_db_manager().check_connection()

        if db_healthy:
            return {
                "status": "ready",
                "service": "Engagement Tracker",
                "version": get_settings().app_version,
                "database": "connected",
            }
        return JSONResponse(
            status_code=503,
            content={
                "status": "not_ready",
                "service": "Engagement Tracker",
                "database": "disconnected",
            },
        )

    @app.get("/live", tags=["health"])
    async def liveness_check():
        """Liveness check endpoint."""
        return {
            "status": "alive",
            "service": "Engagement Tracker",
            "version": get_settings().app_version,
        }


def register_routes(app: FastAPI) -> None:
    """Register API routes.

    Args:
        app: FastAPI application instance.
    """
    from engagetrack.infrastructure.api.routes import (
        audit_log_router,
        roles_router,
        super_admin_router,
        users_router,
    )

    settings = get_settings()

    app.include_router(users_router, prefix=f"{settings.api_prefix}/users", tags=["users"])
    app.include_router(roles_router, prefix=f"{settings.api_prefix}/roles", tags=["roles"])
    app.include_router(
        super_admin_router, prefix=f"{settings.api_prefix}/super-admin", tags=["super-admin"]
    )
    app.include_router(
        audit_log_router, prefix=f"{settings.api_prefix}/role-audit-logs", tags=["audit"]
    )

    @app.get(settings.api_prefix, tags=["root"])
    async def api_root():
        """API root endpoint."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "api_version": "v1",
        }


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers.

    Args:
        app: FastAPI application instance.
    """

    @app.exception_handler(RoleManagementError)
    async def role_management_exception_handler(request: Request, exc: RoleManagementError):
        """Translate role management errors into their HTTP responses.

        Already-in-state is not an error: it is reported as a skipped success.
        """
        if exc.kind is ErrorKind.ALREADY_IN_STATE:
            return JSONResponse(
                status_code=status.HTTP_200_OK,
                content=SkippedResponse(message=exc.message).model_dump(),
            )

        status_code = ERROR_STATUS.get(exc.kind, status.HTTP_400_BAD_REQUEST)
        logger.info(
            "Role management request rejected",
            path=str(request.url.path),
            method=request.method,
            error=exc.kind.value,
            reason=exc.message,
        )
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(error=exc.kind.value, message=exc.message).model_dump(),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle uncaught exceptions."""
        logger.error(
            "Unhandled exception",
            path=str(request.url),
            method=request.method,
            error=str(exc),
            exc_type=type(exc).__name__,
        )
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "internal_error",
                "message": str(exc) if get_settings().debug else "An unexpected error occurred",
            },
        )


def register_middleware(app: FastAPI) -> None:
    """Register custom middleware.

    Args:
        app: FastAPI application instance.
    """

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        """Log every request and bind a correlation ID for its duration."""
        correlation_id = request.headers.get("X-Correlation-ID", f"cid_{uuid.uuid4().hex[:12]}")
        bind_correlation_id(correlation_id)

        logger.info(
            "Request started",
            method=request.method,
            path=str(request.url.path),
        )

        try:
            response = await call_next(request)
            logger.info(
                "Request completed",
                method=request.method,
                path=str(request.url.path),
                status_code=response.status_code,
            )
            response.headers["X-Correlation-ID"] = correlation_id
            return response
        finally:
            clear_context()


# Create the application instance
app = create_app()
