"""Exception handlers translating registry errors into HTTP responses.

Status mapping:
- ``ValidationError`` and request validation failures: 400
- ``NotFoundError``: 404
- ``ConflictError``: 409
- ``StoreUnavailableError`` and anything unexpected: 500

Every response body is an ``ErrorResponse``.
"""

import traceback
from typing import Final

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import Response
from loguru import logger
from starlette.exceptions import HTTPException

from revenue.api.schemas.errors import ErrorResponse, ServiceInfo
from revenue.api.utils.responses import ORJSONResponse
from revenue.core.config import Settings, get_settings
from revenue.core.context import RequestContext
from revenue.core.error_context import sanitize_error_context
from revenue.core.exceptions import (
    ConflictError,
    ErrorCode,
    NotFoundError,
    RevenueError,
    Severity,
    StoreUnavailableError,
    ValidationError,
)

_STATUS_BY_ERROR: Final[tuple[tuple[type[RevenueError], int], ...]] = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (StoreUnavailableError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)

_ERROR_CODE_BY_STATUS: Final[dict[int, ErrorCode]] = {
    status.HTTP_400_BAD_REQUEST: ErrorCode.VALIDATION_ERROR,
    status.HTTP_404_NOT_FOUND: ErrorCode.NOT_FOUND,
    status.HTTP_405_METHOD_NOT_ALLOWED: ErrorCode.VALIDATION_ERROR,
    status.HTTP_409_CONFLICT: ErrorCode.CONFLICT,
}


def _settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()


def get_service_info(settings: Settings) -> ServiceInfo:
    """Create ServiceInfo from application settings."""
    return ServiceInfo(
        name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )


def status_for(exc: RevenueError) -> int:
    """HTTP status for a registry error; unknown subclasses map to 500."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _respond(status_code: int, error_response: ErrorResponse) -> Response:
    return ORJSONResponse(
        status_code=status_code,
        content=error_response.model_dump(mode="json"),
    )


async def revenue_error_handler(request: Request, exc: Exception) -> Response:
    """Handle RevenueError exceptions raised by the registry or the stores.

    Raises:
        TypeError: If exc is not a RevenueError instance
    """
    if not isinstance(exc, RevenueError):
        raise TypeError(f"Expected RevenueError, got {type(exc).__name__}")

    settings = _settings(request)
    status_code = status_for(exc)
    error_context = sanitize_error_context(
        exc,
        {
            "request_method": request.method,
            "request_path": str(request.url.path),
            "error_code": exc.error_code,
        },
    )

    log = logger.error if exc.should_alert else logger.warning
    log(
        "Handling {exception_type}: {message}",
        exception_type=type(exc).__name__,
        message=exc.message,
        status_code=status_code,
        **error_context,
    )

    debug_info = None
    if settings.environment == "development":
        debug_info = {
            "stack_trace": exc.stack_trace,
            "error_context": exc.context,
            "exception_type": type(exc).__name__,
            "fingerprint": exc.fingerprint,
        }
        if exc.cause:
            debug_info["cause"] = {
                "type": type(exc.cause).__name__,
                "message": str(exc.cause),
            }

    return _respond(
        status_code,
        ErrorResponse(
            error_code=exc.error_code,
            message=exc.message,
            details=exc.context or None,
            correlation_id=RequestContext.get_correlation_id(),
            request_id=RequestContext.get_request_id(),
            severity=exc.severity.value,
            service_info=get_service_info(settings),
            debug_info=debug_info,
        ),
    )


async def validation_error_handler(request: Request, exc: Exception) -> Response:
    """Handle request body, path and query validation failures with 400.

    Raises:
        TypeError: If exc is not a RequestValidationError instance
    """
    if not isinstance(exc, RequestValidationError):
        raise TypeError(f"Expected RequestValidationError, got {type(exc).__name__}")

    # Group messages by field path, e.g. ['body', 'tax_percent'] -> 'tax_percent'
    field_errors: dict[str, list[str]] = {}
    for error in exc.errors():
        location = error.get("loc", ())
        field_name = ".".join(str(part) for part in location[1:]) or "root"
        field_errors.setdefault(field_name, []).append(
            error.get("msg", "Invalid value")
        )

    logger.warning(
        "Request validation failed",
        status_code=status.HTTP_400_BAD_REQUEST,
        **sanitize_error_context(
            exc,
            {
                "path": str(request.url.path),
                "method": request.method,
                "validation_errors": field_errors,
            },
        ),
    )

    return _respond(
        status.HTTP_400_BAD_REQUEST,
        ErrorResponse(
            error_code=ErrorCode.VALIDATION_ERROR.value,
            message="Request validation failed",
            details={"validation_errors": field_errors},
            correlation_id=RequestContext.get_correlation_id(),
            request_id=RequestContext.get_request_id(),
            severity=Severity.LOW.value,
            service_info=get_service_info(_settings(request)),
        ),
    )


async def http_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle Starlette HTTPException (unknown routes, wrong methods).

    Raises:
        TypeError: If exc is not an HTTPException instance
    """
    if not isinstance(exc, HTTPException):
        raise TypeError(f"Expected HTTPException, got {type(exc).__name__}")

    error_code = _ERROR_CODE_BY_STATUS.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
    severity = (
        Severity.HIGH
        if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR
        else Severity.LOW
    )

    logger.warning(
        "HTTP exception",
        **sanitize_error_context(
            exc,
            {
                "status": exc.status_code,
                "method": request.method,
                "path": str(request.url.path),
                "detail": exc.detail,
            },
        ),
    )

    return _respond(
        exc.status_code,
        ErrorResponse(
            error_code=error_code.value,
            message=str(exc.detail),
            correlation_id=RequestContext.get_correlation_id(),
            request_id=RequestContext.get_request_id(),
            severity=severity.value,
            service_info=get_service_info(_settings(request)),
        ),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle anything unexpected with a 500, hiding details in production."""
    settings = _settings(request)

    logger.exception(
        "Unhandled exception: {exception_type}",
        exception_type=type(exc).__name__,
        **sanitize_error_context(
            exc,
            {
                "request_method": request.method,
                "request_path": str(request.url.path),
            },
        ),
    )

    if settings.environment == "production":
        message = "An internal server error occurred"
        details = None
        debug_info = None
    else:
        message = f"Internal server error: {type(exc).__name__}"
        details = {"error": str(exc), "type": type(exc).__name__}
        debug_info = {
            "stack_trace": traceback.format_tb(exc.__traceback__),
            "exception_type": type(exc).__name__,
        }

    return _respond(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorResponse(
            error_code=ErrorCode.INTERNAL_ERROR.value,
            message=message,
            details=details,
            correlation_id=RequestContext.get_correlation_id(),
            request_id=RequestContext.get_request_id(),
            severity=Severity.CRITICAL.value,
            service_info=get_service_info(settings),
            debug_info=debug_info,
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application."""
    app.add_exception_handler(RevenueError, revenue_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.debug("Exception handlers registered")
