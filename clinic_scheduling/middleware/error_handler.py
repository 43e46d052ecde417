"""Exception handlers rendering every error as ``{"error", "code", "message", "path"}``."""

from typing import Any

import structlog
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from clinic_scheduling.core.exceptions import AppException, SchedulingError

logger = structlog.get_logger(__name__)


def _error_response(
    request: Request, status_code: int, error: str, code: str, message: Any, **extra: Any
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "code": code,
            "message": message,
            **extra,
            "path": str(request.url),
        },
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Handle application exceptions, including scheduling rejections.

    The ``code`` field is stable and meant for clients to branch on.
    """
    if isinstance(exc, SchedulingError):
        logger.info("scheduling_rejected", code=exc.code, path=request.url.path)
    return _error_response(
        request, exc.status_code, exc.__class__.__name__, exc.code, exc.message
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    return _error_response(request, exc.status_code, "HTTPException", "http_error", exc.detail)


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Drop non-serialisable context (e.g. raised ValueError objects) from pydantic errors."""
    return [
        {key: value for key, value in error.items() if key != "ctx"} for error in exc.errors()
    ]


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Handle request validation errors, listing each failing field under ``details``."""
    return _error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "ValidationError",
        "validation_error",
        "Request validation failed",
        details=jsonable_errors(exc),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled_exception", path=request.url.path, error=str(exc), exc_info=exc)
    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "InternalServerError",
        "internal_error",
        "An unexpected error occurred",
    )
