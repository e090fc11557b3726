"""
Custom exception classes for ServiceLane.

This module defines a hierarchy of exceptions with:
- Structured error responses
- Proper HTTP status codes
- Error codes for client-side handling

Service methods raise these; ``app.core.error_handlers`` turns them into
JSON responses.
"""

from enum import StrEnum
from typing import Any

from fastapi import HTTPException, status

# =============================================================================
# Error Codes Enum
# =============================================================================


class ErrorCode(StrEnum):
    """Standardized error codes for client-side handling."""

    # General errors (1xxx)
    INTERNAL_ERROR = "ERR_1000"
    VALIDATION_ERROR = "ERR_1001"
    NOT_FOUND = "ERR_1002"
    UNAUTHORIZED = "ERR_1003"
    FORBIDDEN = "ERR_1004"
    BAD_REQUEST = "ERR_1007"
    CONFLICT = "ERR_1008"

    # Database errors (2xxx)
    DATABASE_ERROR = "ERR_2000"
    DATABASE_CONNECTION = "ERR_2001"
    DATABASE_TIMEOUT = "ERR_2002"
    DATABASE_INTEGRITY = "ERR_2003"
    POSTGRES_ERROR = "ERR_2010"

    # Marketplace rule violations (4xxx)
    INVALID_STATE = "ERR_4001"
    PROVIDER_STATUS = "ERR_4002"
    CSRF_MISSING = "ERR_4003"
    CSRF_INVALID = "ERR_4004"

    # Authentication errors (5xxx)
    AUTH_ERROR = "ERR_5000"
    INVALID_CREDENTIALS = "ERR_5001"
    TOKEN_EXPIRED = "ERR_5002"
    TOKEN_INVALID = "ERR_5003"
    REFRESH_TOKEN_INVALID = "ERR_5004"
    ACCOUNT_INACTIVE = "ERR_5005"


# =============================================================================
# Default Error Messages
# =============================================================================


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INTERNAL_ERROR: "Internal server error",
    ErrorCode.VALIDATION_ERROR: "Invalid input data",
    ErrorCode.NOT_FOUND: "The requested resource was not found",
    ErrorCode.UNAUTHORIZED: "Authentication required",
    ErrorCode.FORBIDDEN: "You do not have permission to perform this action",
    ErrorCode.BAD_REQUEST: "Bad request",
    ErrorCode.CONFLICT: "The resource already exists",
    ErrorCode.DATABASE_ERROR: "A database error occurred",
    ErrorCode.DATABASE_CONNECTION: "Could not connect to the database",
    ErrorCode.DATABASE_TIMEOUT: "The database operation timed out",
    ErrorCode.DATABASE_INTEGRITY: "A data integrity error occurred",
    ErrorCode.POSTGRES_ERROR: "PostgreSQL error",
    ErrorCode.INVALID_STATE: "The resource is not in a valid state for this action",
    ErrorCode.PROVIDER_STATUS: "Provider status does not allow this action",
    ErrorCode.CSRF_MISSING: "CSRF token missing",
    ErrorCode.CSRF_INVALID: "CSRF token invalid",
    ErrorCode.AUTH_ERROR: "Authentication error",
    ErrorCode.INVALID_CREDENTIALS: "Invalid email or password",
    ErrorCode.TOKEN_EXPIRED: "Session expired, please log in again",
    ErrorCode.TOKEN_INVALID: "Invalid token",
    ErrorCode.REFRESH_TOKEN_INVALID: "Invalid refresh token",
    ErrorCode.ACCOUNT_INACTIVE: "User account is inactive",
}


def get_error_message(code: ErrorCode, fallback: str | None = None) -> str:
    """Get the default message for an error code."""
    return ERROR_MESSAGES.get(code, fallback or "Unknown error")


# =============================================================================
# Base Exception Classes
# =============================================================================


class ServiceLaneException(Exception):
    """
    Base exception class for all ServiceLane exceptions.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Additional error context
        status_code: HTTP status code
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
            }
        }

    def to_http_exception(self) -> HTTPException:
        """Convert to FastAPI HTTPException."""
        return HTTPException(
            status_code=self.status_code,
            detail=self.to_dict(),
        )


# =============================================================================
# Client Errors
# =============================================================================


class ValidationException(ServiceLaneException):
    """Exception for validation errors."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        error_details = details or {}
        if field:
            error_details["field"] = field

        super().__init__(
            message=message,
            code=ErrorCode.VALIDATION_ERROR,
            details=error_details,
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class BadRequestException(ServiceLaneException):
    """Raised when a request is well formed but breaks a marketplace rule."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            code=ErrorCode.INVALID_STATE,
            details=details,
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class NotFoundException(ServiceLaneException):
    """Exception for resource not found errors."""

    def __init__(
        self,
        message: str,
        resource_type: str | None = None,
        resource_id: str | None = None,
    ):
        details = {}
        if resource_type:
            details["resource_type"] = resource_type
        if resource_id:
            details["resource_id"] = str(resource_id)

        super().__init__(
            message=message,
            code=ErrorCode.NOT_FOUND,
            details=details,
            status_code=status.HTTP_404_NOT_FOUND,
        )


class ConflictException(ServiceLaneException):
    """Exception for unique-constraint style conflicts."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            code=ErrorCode.CONFLICT,
            details=details,
            status_code=status.HTTP_409_CONFLICT,
        )


# =============================================================================
# Database Exceptions
# =============================================================================


class DatabaseException(ServiceLaneException):
    """Base exception for database errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.DATABASE_ERROR,
        details: dict[str, Any] | None = None,
        original_error: Exception | None = None,
    ):
        error_details = details or {}
        if original_error:
            error_details["original_error"] = str(original_error)

        super().__init__(
            message=message,
            code=code,
            details=error_details,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
        self.original_error = original_error


class PostgresException(DatabaseException):
    """Exception for PostgreSQL errors."""

    def __init__(
        self,
        message: str = "PostgreSQL error",
        details: dict[str, Any] | None = None,
        original_error: Exception | None = None,
    ):
        super().__init__(
            message=message,
            code=ErrorCode.POSTGRES_ERROR,
            details=details,
            original_error=original_error,
        )


class PostgresConnectionException(PostgresException):
    """Exception for PostgreSQL connection errors."""

    def __init__(
        self,
        message: str = "Could not connect to the PostgreSQL database",
        original_error: Exception | None = None,
    ):
        super().__init__(
            message=message,
            details={"type": "connection"},
            original_error=original_error,
        )
        self.code = ErrorCode.DATABASE_CONNECTION


# =============================================================================
# Authentication / Authorization Exceptions
# =============================================================================


class AuthenticationException(ServiceLaneException):
    """Base exception for authentication errors."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.AUTH_ERROR,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            code=code,
            details=details,
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


class InvalidCredentialsException(AuthenticationException):
    """Exception for invalid login credentials."""

    def __init__(
        self,
        message: str = "Invalid email or password",
    ):
        super().__init__(
            message=message,
            code=ErrorCode.INVALID_CREDENTIALS,
        )


class TokenExpiredException(AuthenticationException):
    """Exception for expired tokens."""

    def __init__(
        self,
        message: str = "Session expired, please log in again",
    ):
        super().__init__(
            message=message,
            code=ErrorCode.TOKEN_EXPIRED,
        )


class InvalidTokenException(AuthenticationException):
    """Exception for invalid tokens."""

    def __init__(
        self,
        message: str = "Invalid token",
        code: ErrorCode = ErrorCode.TOKEN_INVALID,
    ):
        super().__init__(
            message=message,
            code=code,
        )


class ForbiddenException(ServiceLaneException):
    """Exception for forbidden access."""

    def __init__(
        self,
        message: str = "You do not have permission to perform this action",
        details: dict[str, Any] | None = None,
        code: ErrorCode = ErrorCode.FORBIDDEN,
    ):
        super().__init__(
            message=message,
            code=code,
            details=details,
            status_code=status.HTTP_403_FORBIDDEN,
        )
