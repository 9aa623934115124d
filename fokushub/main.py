"""FastAPI application entry point for the FokusHub participant service.

This module initializes the FastAPI application, sets up logging and the
draft store, registers routers, and converts service errors into responses.
"""

import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fokushub.config import get_settings
from fokushub.logging_config import (
    bind_request_context,
    get_logger,
    reset_request_context,
    setup_logging,
)
from fokushub.models.database import init_db
from fokushub.routes import admin, health, onboarding, verification
from fokushub.services.api_client import ApiConnectionError, ApiError
from fokushub.services.notices import NoticeError

# Initialize logger (will be configured during startup)
logger = get_logger(__name__)

SERVICE_NAME = "FokusHub Participant Service"
VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Startup:
    - Configure logging
    - Create draft store tables
    - Log application startup information

    Shutdown:
    - Log shutdown event

    Args:
        app: FastAPI application instance

    Yields:
        None
    """
    # Startup
    settings = get_settings()
    setup_logging()
    init_db()

    logger.info(
        f"{SERVICE_NAME} starting - "
        f"Environment: {settings.environment}, "
        f"Log Level: {settings.log_level}, "
        f"Platform: {settings.api_base_url}, "
        f"Drafts: {settings.database_url.split('@')[-1] if '@' in settings.database_url else settings.database_url}, "
        f"Version: {settings.git_commit_sha}"
    )

    yield

    # Shutdown
    logger.info(f"{SERVICE_NAME} shutting down")


# Initialize FastAPI application
app = FastAPI(
    title=SERVICE_NAME,
    description="Onboarding, verification and admin workflows over the FokusHub platform API",
    version=VERSION,
    lifespan=lifespan
)


@app.middleware("http")
async def request_context(request: Request, call_next):
    """Stamp every log record of a request with its request ID."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    token = bind_request_context(request_id=request_id)
    try:
        response = await call_next(request)
    finally:
        reset_request_context(token)
    response.headers["X-Request-ID"] = request_id
    return response


# Root endpoint
@app.get("/")
async def root() -> dict:
    """Root endpoint with basic API information.

    Returns:
        dict: API information and status
    """
    settings = get_settings()
    return {
        "service": SERVICE_NAME,
        "version": VERSION,
        "environment": settings.environment,
        "status": "operational"
    }


# Register routers
app.include_router(health.router, tags=["Health"])
app.include_router(onboarding.router, tags=["Onboarding"])
app.include_router(verification.router, tags=["Verification"])
app.include_router(admin.router, tags=["Admin"])


@app.exception_handler(NoticeError)
async def notice_error_handler(request: Request, exc: NoticeError) -> JSONResponse:
    """Wizard, settings, health and matching errors with their user notice."""
    logger.info(f"{type(exc).__name__} for {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status,
        content={
            "message": exc.message,
            "notice": exc.notice.model_dump(mode="json") if exc.notice else None,
        }
    )


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Relay a platform error with its status and every field it sent."""
    logger.warning(f"Platform error {exc.status} for {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status,
        content={**exc.payload, "message": exc.message}
    )


@app.exception_handler(ApiConnectionError)
async def api_connection_error_handler(request: Request, exc: ApiConnectionError) -> JSONResponse:
    logger.error(f"Platform unreachable for {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status,
        content={"message": exc.message}
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for unhandled exceptions.

    Logs all unhandled exceptions and returns a generic error response
    to prevent leaking sensitive information.

    Args:
        request: FastAPI request object
        exc: Exception that was raised

    Returns:
        JSONResponse: Generic error response
    """
    logger.error(
        f"Unhandled exception for {request.method} {request.url}: {exc}",
        exc_info=True
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": "An unexpected error occurred. Please try again later."
        }
    )
