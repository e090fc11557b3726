"""
Logging configuration for ServiceLane.

Provides:
- Structured JSON logging with request correlation
- Request ID tracking across the request lifecycle
- User tracking for authenticated requests
- A one-line, optionally colored, access log per request
- Configurable log levels per module
"""

from __future__ import annotations

import logging
import os
import sys
import time
import uuid
from collections.abc import Callable
from contextvars import ContextVar
from datetime import datetime, UTC
from typing import Any, Optional, TYPE_CHECKING

from pythonjsonlogger import jsonlogger
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import settings

if TYPE_CHECKING:
    from starlette.responses import Response
    from starlette.requests import Request

# Context variables for request correlation
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar("user_id", default=None)

# ANSI escape codes used by the access log
RESET = "\x1b[0m"
DIM = "\x1b[2m"
RED = "\x1b[31m"
GREEN = "\x1b[32m"
YELLOW = "\x1b[33m"
BLUE = "\x1b[34m"
CYAN = "\x1b[36m"


class StructuredJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter with service and request context fields.

    Adds:
    - Timestamp in ISO format
    - Log level and logger name
    - Service name and environment
    - Request ID and user ID from context
    - Exception info when present
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._hostname = os.uname().nodename if hasattr(os, "uname") else "unknown"

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = datetime.now(UTC).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["service"] = {
            "name": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "environment": settings.ENVIRONMENT,
            "host": self._hostname,
        }
        log_record["source"] = {
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = request_id_var.get()
        if request_id:
            log_record["request_id"] = request_id

        user_id = user_id_var.get()
        if user_id:
            log_record["user_id"] = user_id

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, _ = record.exc_info
            log_record["error"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "stack_trace": self.formatException(record.exc_info),
            }

        # Plain text in a JSON log is unreadable
        if isinstance(log_record.get("message"), str):
            log_record["message"] = strip_ansi(log_record["message"])

        for key in [k for k, v in log_record.items() if v is None]:
            del log_record[key]


def strip_ansi(text: str) -> str:
    """Remove the access-log color codes from a message."""
    for code in (RESET, DIM, RED, GREEN, YELLOW, BLUE, CYAN):
        text = text.replace(code, "")
    return text


def status_color(status_code: int) -> str:
    """Pick the access-log color for an HTTP status code."""
    if status_code >= 500:
        return RED
    if status_code >= 400:
        return YELLOW
    if status_code >= 300:
        return CYAN
    return GREEN


def format_request_line(
    *,
    method: str,
    path: str,
    status_code: int,
    duration_ms: float,
    request_id: str,
    user_id: str | None = None,
    user_email: str | None = None,
    error_message: str | None = None,
    colors: bool = True,
) -> str:
    """
    Build the one-line access log entry for a finished request.

    The trace id is the first 8 characters of the user id when the caller
    is authenticated, so every line for the same user shares it; otherwise
    it is the first 8 characters of the request id.
    """
    trace_id = (user_id or request_id)[:8]
    user_label = f"[{user_email}]" if user_email else "[Guest]"
    duration = f"+{int(round(duration_ms))}ms"

    if not colors:
        line = f"[{trace_id}] {user_label} {method} {path} {status_code} {duration}"
        return f"{line} - {error_message}" if error_message else line

    color = status_color(status_code)
    line = (
        f"{DIM}[{trace_id}]{RESET} {user_label} {BLUE}{method}{RESET} "
        f"{path} {color}{status_code}{RESET} {duration}"
    )
    if error_message:
        line = f"{line} - {RED}{error_message}{RESET}"
    return line


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Writes one access log line per request when the response is ready.

    Features:
    - Uses the incoming X-Request-ID or generates one
    - Picks up the user id and email stored on request.state by the
      auth dependency
    - Appends the error message recorded by the exception handlers
    - Echoes X-Request-ID and X-Response-Time on the response
    """

    # High-frequency probes are not logged
    EXCLUDED_PATHS = {"/health", "/api/v1/health"}

    def __init__(self, app, colors: bool | None = None):
        super().__init__(app)
        self.colors = settings.LOG_COLORS if colors is None else colors
        self.logger = get_logger("http")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        request_id_token = request_id_var.set(request_id)

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - start_time) * 1000
            self.logger.error(
                self._line(request, 500, duration_ms, request_id),
                extra={"event": "request_error", "method": request.method, "path": request.url.path},
                exc_info=True,
            )
            request_id_var.reset(request_id_token)
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000

        if response.status_code >= 500:
            log_level = logging.ERROR
        elif response.status_code >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        if request.url.path not in self.EXCLUDED_PATHS:
            self.logger.log(
                log_level,
                self._line(request, response.status_code, duration_ms, request_id),
                extra={
                    "event": "request_complete",
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration_ms": round(duration_ms, 2),
                },
            )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"

        request_id_var.reset(request_id_token)
        return response

    def _line(self, request: Request, status_code: int, duration_ms: float, request_id: str) -> str:
        path = request.url.path
        if request.url.query:
            path = f"{path}?{request.url.query}"

        return format_request_line(
            method=request.method,
            path=path,
            status_code=status_code,
            duration_ms=duration_ms,
            request_id=request_id,
            user_id=getattr(request.state, "user_id", None),
            user_email=getattr(request.state, "user_email", None),
            error_message=getattr(request.state, "error_message", None),
            colors=self.colors,
        )


# Logger configuration by module
LOGGER_CONFIG: dict[str, int] = {
    "uvicorn": logging.INFO,
    "uvicorn.access": logging.WARNING,
    "uvicorn.error": logging.ERROR,
    "sqlalchemy.engine": logging.WARNING,
    "sqlalchemy.pool": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "passlib": logging.ERROR,
}


def setup_logging() -> None:
    """
    Configure application logging.

    JSON output for production, a pipe-separated text format for
    development, per-module levels from LOGGER_CONFIG and Sentry when a
    DSN is configured.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper()))
    root_logger.handlers = []

    console_handler = logging.StreamHandler(sys.stdout)

    if settings.LOG_FORMAT == "json":
        formatter = StructuredJsonFormatter(
            "%(timestamp)s %(level)s %(name)s %(message)s"
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        )

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    for logger_name, level in LOGGER_CONFIG.items():
        logging.getLogger(logger_name).setLevel(level)

    if settings.SENTRY_DSN:
        try:
            import sentry_sdk
            from sentry_sdk.integrations.fastapi import FastApiIntegration
            from sentry_sdk.integrations.logging import LoggingIntegration
            from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

            sentry_sdk.init(
                dsn=settings.SENTRY_DSN,
                environment=settings.ENVIRONMENT,
                release=f"servicelane@{settings.VERSION}",
                integrations=[
                    FastApiIntegration(),
                    SqlalchemyIntegration(),
                    LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
                ],
                traces_sample_rate=0.1 if settings.ENVIRONMENT == "production" else 1.0,
                send_default_pii=False,
            )
            logging.info("Sentry SDK initialized successfully")
        except ImportError:
            logging.warning("Sentry SDK not installed, skipping initialization")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the specified name.

    Args:
        name: Logger name, typically __name__ of the calling module

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)
