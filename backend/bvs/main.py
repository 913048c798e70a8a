"""
FastAPI application entry point with health endpoints and service routing.

This module provides the main FastAPI application instance with CORS
configuration, request correlation, health check endpoints and problem detail
(RFC 7807) error responses.
"""

import re
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bvs.api.v1 import storage_router, users_router
from bvs.core.config import get_settings
from bvs.core.constants import ERROR_TYPE_BASE_URL, ErrorCodes
from bvs.core.exceptions import BVSError
from bvs.core.logging import (
    clear_context,
    configure_logging,
    get_logger,
    get_request_id,
    log_performance,
    set_request_id,
)
from bvs.database.connection import check_database_health, close_database_connections

configure_logging()
logger = get_logger(__name__)

PROBLEM_MEDIA_TYPE = "application/problem+json"


def _error_type(code: str) -> str:
    return f"{ERROR_TYPE_BASE_URL}/{code.lower().replace('_', '-')}"


def problem_response(
    request: Request,
    status_code: int,
    title: str,
    detail: str,
    code: str,
    extra: Optional[dict[str, Any]] = None,
) -> JSONResponse:
    """
    Build an RFC 7807 problem detail response.

    Args:
        request: Request that failed
        status_code: HTTP status
        title: Short summary of the problem type
        detail: Human readable explanation of this occurrence
        code: Machine readable error code
        extra: Additional members merged into the document

    Returns:
        JSON response with ``application/problem+json`` media type
    """
    content: dict[str, Any] = {
        "type": _error_type(code),
        "title": title,
        "status": status_code,
        "detail": detail,
        "instance": request.url.path,
        "errorCode": code,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "request_id": get_request_id() or request.headers.get("X-Request-ID", ""),
    }
    if extra:
        content.update(extra)
    return JSONResponse(
        status_code=status_code,
        content=content,
        media_type=PROBLEM_MEDIA_TYPE,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan context manager for startup and shutdown events.

    Args:
        app: FastAPI application instance

    Yields:
        None during application runtime
    """
    settings = get_settings()

    logger.info(
        "Application starting",
        environment=settings.environment,
        debug=settings.debug,
        version=settings.app_version,
    )

    yield

    logger.info("Application shutting down")
    with log_performance(logger, "application_shutdown"):
        await close_database_connections()


settings = get_settings()
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="BVS platform backend API",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    debug=settings.debug,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    """
    Middleware for request logging and correlation ID management.

    Args:
        request: Incoming HTTP request
        call_next: Next middleware or route handler

    Returns:
        HTTP response with X-Request-ID header
    """
    request_id = set_request_id(request.headers.get("X-Request-ID"))

    logger.info(
        "Request received",
        method=request.method,
        path=request.url.path,
        client_host=request.client.host if request.client else None,
    )

    try:
        with log_performance(
            logger,
            "request_processing",
            method=request.method,
            path=request.url.path,
        ):
            response = await call_next(request)

        response.headers["X-Request-ID"] = request_id

        logger.info(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
        )
        return response

    except Exception as e:
        logger.error(
            "Request failed",
            method=request.method,
            path=request.url.path,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise
    finally:
        clear_context()


@app.exception_handler(BVSError)
async def bvs_exception_handler(request: Request, exc: BVSError) -> JSONResponse:
    """Render service errors as problem details with their own status code."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "Request failed with service error",
        **{
            **exc.context,
            "method": request.method,
            "path": request.url.path,
            "error_code": exc.code,
            "error": exc.message,
        },
    )
    return problem_response(
        request,
        status_code=exc.status_code,
        title=exc.title,
        detail=exc.message,
        code=exc.code,
    )


def _format_validation_error(error: dict[str, Any]) -> str:
    location = [str(part) for part in error.get("loc", ()) if part != "body"]
    field = ".".join(location) or "request"
    message = re.sub(r"^Value error, ", "", error.get("msg", "Invalid value"))
    return f"{field}: {message}"


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle request validation errors with a 400 problem detail.

    Args:
        request: HTTP request that caused validation error
        exc: Validation exception with error details

    Returns:
        Problem detail listing every invalid field
    """
    errors = [_format_validation_error(e) for e in exc.errors()]
    logger.warning(
        "Request validation failed",
        method=request.method,
        path=request.url.path,
        errors=errors,
    )
    return problem_response(
        request,
        status_code=status.HTTP_400_BAD_REQUEST,
        title="Validation Error",
        detail="Request validation failed",
        code=ErrorCodes.VALIDATION_ERROR,
        extra={"errors": errors},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions with a generic problem detail.

    Internal details are logged, never returned.
    """
    logger.error(
        "Unhandled exception",
        method=request.method,
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True,
    )
    return problem_response(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        title="Internal Server Error",
        detail="An unexpected error occurred",
        code=ErrorCodes.INTERNAL_ERROR,
    )


@app.get("/health", tags=["Health"], summary="Health check endpoint")
async def health_check() -> dict[str, str]:
    """Always returns 200 OK while the process is running."""
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }


@app.get("/ready", tags=["Health"], summary="Readiness check endpoint")
async def readiness_check():
    """
    Readiness check endpoint for orchestration.

    Returns 503 when the database is unreachable.
    """
    if not await check_database_health(max_retries=1):
        logger.warning("Readiness check failed", database="unhealthy")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "service": settings.app_name,
                "database": "unhealthy",
            },
        )

    return {
        "status": "ready",
        "service": settings.app_name,
        "version": settings.app_version,
        "database": "healthy",
    }


@app.get("/live", tags=["Health"], summary="Liveness check endpoint")
async def liveness_check() -> dict[str, str]:
    return {
        "status": "alive",
        "service": settings.app_name,
        "version": settings.app_version,
    }


app.include_router(users_router, prefix=settings.api_prefix)
app.include_router(storage_router, prefix=settings.api_prefix)
