"""
CSRF Protection Middleware for FastAPI

Implements double-submit cookie pattern for CSRF protection.
"""

import secrets

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.core.config import settings
from app.core.error_handlers import build_error_response, get_request_id
from app.core.exceptions import ErrorCode
from app.core.logging import get_logger

logger = get_logger(__name__)

SAFE_METHODS = {"GET", "HEAD", "OPTIONS", "TRACE"}
CSRF_HEADER = "X-CSRF-Token"
CSRF_COOKIE = "csrf_token"


def generate_csrf_token() -> str:
    return secrets.token_urlsafe(32)


def set_csrf_cookie(response: Response, token: str) -> None:
    """Attach the CSRF cookie; it must stay readable by the SPA's JavaScript."""
    response.set_cookie(
        key=CSRF_COOKIE,
        value=token,
        httponly=False,
        samesite="strict",
        secure=settings.CSRF_COOKIE_SECURE,
        max_age=settings.CSRF_COOKIE_MAX_AGE,
    )


class CSRFMiddleware(BaseHTTPMiddleware):
    """
    CSRF protection middleware using double-submit cookie pattern.

    For state-changing requests (POST, PUT, PATCH, DELETE):
    - Client must send X-CSRF-Token header matching csrf_token cookie
    - Returns 403 if token is missing or mismatched
    - Requests authenticated with a bearer Authorization header are not
      cookie-authenticated, so they are let through

    For safe methods (GET, HEAD, OPTIONS, TRACE):
    - Automatically sets csrf_token cookie if not present
    """

    def __init__(self, app, exclude_paths: list[str] | None = None):
        """
        Initialize CSRF middleware.

        Args:
            app: The ASGI application
            exclude_paths: List of path prefixes to exclude from CSRF validation
        """
        super().__init__(app)
        self.exclude_paths = exclude_paths or []

    def is_excluded(self, path: str) -> bool:
        return any(path.startswith(prefix) for prefix in self.exclude_paths)

    async def dispatch(self, request: Request, call_next):
        """Process request with CSRF validation."""
        if self.is_excluded(request.url.path):
            return await call_next(request)

        if request.method in SAFE_METHODS:
            response = await call_next(request)
            return self._ensure_csrf_cookie(request, response)

        authorization = request.headers.get("Authorization", "")
        if authorization.lower().startswith("bearer "):
            return await call_next(request)

        token_header = request.headers.get(CSRF_HEADER)
        token_cookie = request.cookies.get(CSRF_COOKIE)

        if not token_header or not token_cookie:
            logger.warning(
                f"CSRF token missing - Method: {request.method}, "
                f"Path: {request.url.path}, "
                f"Header: {bool(token_header)}, Cookie: {bool(token_cookie)}"
            )
            return self._reject(request, ErrorCode.CSRF_MISSING, "CSRF token missing")

        if not secrets.compare_digest(token_header, token_cookie):
            logger.warning(
                f"CSRF token mismatch - Method: {request.method}, Path: {request.url.path}"
            )
            return self._reject(request, ErrorCode.CSRF_INVALID, "CSRF token invalid")

        return await call_next(request)

    def _reject(self, request: Request, code: ErrorCode, message: str) -> Response:
        request.state.error_message = message
        return build_error_response(
            request=request,
            request_id=get_request_id(request),
            code=code,
            message=message,
            details={"reason": "csrf_token_missing" if code == ErrorCode.CSRF_MISSING else "csrf_token_invalid"},
            status_code=403,
        )

    def _ensure_csrf_cookie(self, request: Request, response: Response) -> Response:
        """
        Ensure CSRF cookie is set on response.

        If cookie doesn't exist, generate new token and set cookie.
        """
        if not request.cookies.get(CSRF_COOKIE) and CSRF_COOKIE not in response.headers.get("set-cookie", ""):
            set_csrf_cookie(response, generate_csrf_token())
            logger.debug(f"CSRF cookie set for request: {request.url.path}")

        return response
