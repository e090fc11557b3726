"""
Global exception handlers for FastAPI application.

This module provides:
- Centralized exception handling
- Structured error responses
- Request ID tracing
- Error logging with context
"""

import traceback
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import (
    IntegrityError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError as SQLAlchemyTimeoutError,
)
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.exceptions import (
    ErrorCode,
    ServiceLaneException,
)
from app.core.logging import get_logger

logger = get_logger(__name__)

HTTP_STATUS_CODES: dict[int, ErrorCode] = {
    status.HTTP_400_BAD_REQUEST: ErrorCode.BAD_REQUEST,
    status.HTTP_401_UNAUTHORIZED: ErrorCode.UNAUTHORIZED,
    status.HTTP_403_FORBIDDEN: ErrorCode.FORBIDDEN,
    status.HTTP_404_NOT_FOUND: ErrorCode.NOT_FOUND,
    status.HTTP_409_CONFLICT: ErrorCode.CONFLICT,
}


# =============================================================================
# Error Response Builder
# =============================================================================


def build_error_response(
    request: Request,
    request_id: str,
    code: ErrorCode,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """
    Build a standardized error response.

    Args:
        request: The failed request
        request_id: Unique request identifier
        code: Error code enum
        message: Error message
        details: Additional error details
        status_code: HTTP status code
        headers: Extra response headers

    Returns:
        JSONResponse with structured error body
    """
    content = {
        "error": {
            "code": code.value,
            "message": message,
            "details": details or {},
            "request_id": request_id,
        },
        "statusCode": status_code,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "path": request.url.path,
        "method": request.method,
    }

    return JSONResponse(
        status_code=status_code,
        content=content,
        headers=headers,
    )


def get_request_id(request: Request) -> str:
    """Extract request ID from request state."""
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


def remember_error(request: Request, message: str) -> None:
    """Keep the message around for the access log line."""
    request.state.error_message = message


# =============================================================================
# Exception Handlers
# =============================================================================


async def servicelane_exception_handler(
    request: Request,
    exc: ServiceLaneException,
) -> JSONResponse:
    """Handle ServiceLane custom exceptions."""
    request_id = get_request_id(request)

    logger.warning(
        f"ServiceLane exception: {exc.message}",
        extra={
            "request_id": request_id,
            "error_code": exc.code.value,
            "details": exc.details,
            "path": request.url.path,
        },
    )
    remember_error(request, exc.message)

    headers = None
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}

    return build_error_response(
        request=request,
        request_id=request_id,
        code=exc.code,
        message=exc.message,
        details=exc.details,
        status_code=exc.status_code,
        headers=headers,
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Handle framework HTTP errors (unknown route, bearer missing, ...)."""
    request_id = get_request_id(request)
    message = exc.detail if isinstance(exc.detail, str) else "HTTP error"
    remember_error(request, message)

    return build_error_response(
        request=request,
        request_id=request_id,
        code=HTTP_STATUS_CODES.get(exc.status_code, ErrorCode.BAD_REQUEST),
        message=message,
        details={} if isinstance(exc.detail, str) else {"detail": exc.detail},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Handle request body/query validation errors as 400 Bad Request."""
    request_id = get_request_id(request)

    errors = []
    for error in exc.errors():
        field_path = " -> ".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field_path,
            "message": error["msg"],
            "type": error["type"],
        })

    logger.warning(
        "Validation error",
        extra={
            "request_id": request_id,
            "errors": errors,
            "path": request.url.path,
        },
    )
    remember_error(request, "Validation error")

    return build_error_response(
        request=request,
        request_id=request_id,
        code=ErrorCode.VALIDATION_ERROR,
        message="Validation error",
        details={"validation_errors": errors},
        status_code=status.HTTP_400_BAD_REQUEST,
    )


async def sqlalchemy_exception_handler(
    request: Request,
    exc: SQLAlchemyError,
) -> JSONResponse:
    """Handle SQLAlchemy database errors."""
    request_id = get_request_id(request)

    if isinstance(exc, OperationalError):
        code = ErrorCode.DATABASE_CONNECTION
        message = "Database connection error"
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    elif isinstance(exc, IntegrityError):
        code = ErrorCode.DATABASE_INTEGRITY
        message = "Database integrity error"
        status_code = status.HTTP_409_CONFLICT
    elif isinstance(exc, SQLAlchemyTimeoutError):
        code = ErrorCode.DATABASE_TIMEOUT
        message = "Database timeout"
        status_code = status.HTTP_504_GATEWAY_TIMEOUT
    else:
        code = ErrorCode.DATABASE_ERROR
        message = "Database error"
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    log_details = {
        "request_id": request_id,
        "error_type": type(exc).__name__,
        "path": request.url.path,
    }
    if settings.DEBUG:
        log_details["error_message"] = str(exc)
        log_details["traceback"] = traceback.format_exc()

    logger.error(f"Database error: {type(exc).__name__}", extra=log_details)
    if status_code < 500:
        remember_error(request, message)

    details = {}
    if settings.DEBUG:
        details["error_type"] = type(exc).__name__
        details["error_message"] = str(exc)[:200]

    return build_error_response(
        request=request,
        request_id=request_id,
        code=code,
        message=message,
        details=details,
        status_code=status_code,
    )


async def generic_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle all unhandled exceptions."""
    request_id = get_request_id(request)

    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {exc}",
        extra={
            "request_id": request_id,
            "error_type": type(exc).__name__,
            "path": request.url.path,
            "method": request.method,
        },
        exc_info=exc,
    )

    # Production responses never carry internals
    message = "Internal server error"
    details = {}
    if not settings.is_production:
        message = str(exc) or message
        if settings.DEBUG:
            details["error_type"] = type(exc).__name__

    return build_error_response(
        request=request,
        request_id=request_id,
        code=ErrorCode.INTERNAL_ERROR,
        message=message,
        details=details,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


# =============================================================================
# Setup Function
# =============================================================================


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(ServiceLaneException, servicelane_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)

    # Generic handler for unhandled exceptions (must be last)
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.info("Exception handlers registered")
