# Core module
"""
Core module for the ServiceLane backend.

This module provides:
- Configuration management (config.py)
- Custom exceptions and error codes (exceptions.py)
- Global error handlers (error_handlers.py)
- Structured logging and request logging (logging.py)
- JWT and password utilities (security.py)
- CSRF protection (csrf.py)
"""

from app.core.config import settings, get_settings
from app.core.exceptions import (
    # Base exceptions
    ServiceLaneException,
    ValidationException,
    BadRequestException,
    NotFoundException,
    ConflictException,
    # Database exceptions
    DatabaseException,
    PostgresException,
    PostgresConnectionException,
    # Authentication exceptions
    AuthenticationException,
    InvalidCredentialsException,
    TokenExpiredException,
    InvalidTokenException,
    ForbiddenException,
    # Error codes
    ErrorCode,
    get_error_message,
)
from app.core.logging import (
    setup_logging,
    get_logger,
)

__all__ = [
    # Config
    "settings",
    "get_settings",
    # Exceptions
    "ServiceLaneException",
    "ValidationException",
    "BadRequestException",
    "NotFoundException",
    "ConflictException",
    "DatabaseException",
    "PostgresException",
    "PostgresConnectionException",
    "AuthenticationException",
    "InvalidCredentialsException",
    "TokenExpiredException",
    "InvalidTokenException",
    "ForbiddenException",
    "ErrorCode",
    "get_error_message",
    # Logging
    "setup_logging",
    "get_logger",
]
