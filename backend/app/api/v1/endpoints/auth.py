"""
Authentication endpoints.

Provides signup, login, token refresh, the current user's profile and the
CSRF token endpoint. Also home to the authentication dependencies and the
role / provider-status guards used by every other router.
"""

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.schemas.auth import (
    AuthResponse,
    CsrfTokenResponse,
    LoginRequest,
    ProfileUpdate,
    SignupRequest,
    TokenPair,
    TokenRefresh,
    UserResponse,
)
from app.core.csrf import generate_csrf_token, set_csrf_cookie
from app.core.exceptions import (
    ErrorCode,
    ForbiddenException,
    InvalidTokenException,
    TokenExpiredException,
)
from app.core.logging import user_id_var
from app.core.security import ACCESS_TOKEN_TYPE, TokenExpired, decode_token
from app.db.postgres.models import ProviderStatus, User
from app.db.postgres.repositories import UserRepository
from app.db.postgres.session import get_db
from app.services.auth_service import AuthService, get_auth_service

router = APIRouter()
logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


# =============================================================================
# Dependencies
# =============================================================================


async def get_current_user(
    request: Request,
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Dependency to get the current authenticated user from JWT token.

    The user (with provider profile) is loaded from the primary database and
    its id and email are left on request.state for the access log.

    Raises:
        401: Missing, invalid or expired token, or unknown user
        403: Inactive user
    """
    try:
        payload = decode_token(token, expected_type=ACCESS_TOKEN_TYPE)
    except TokenExpired:
        raise TokenExpiredException()

    if not payload:
        logger.warning("Invalid token provided")
        raise InvalidTokenException()

    try:
        user_id = UUID(payload["sub"])
    except ValueError:
        # Invalid UUID format
        raise InvalidTokenException()

    user = await UserRepository(db).get_with_profile(user_id)
    if not user:
        logger.warning(f"User {user_id} not found")
        raise InvalidTokenException("User not found")

    if not user.is_active:
        raise ForbiddenException(message="User account is inactive", code=ErrorCode.ACCOUNT_INACTIVE)

    request.state.user_id = str(user.id)
    request.state.user_email = user.email
    user_id_var.set(str(user.id))
    return user


def require_roles(*roles: str):
    """
    Dependency factory for role-based access control.

    The user passes when they hold at least one of the given roles.

    Args:
        roles: Allowed roles

    Returns:
        Dependency function that checks user roles
    """

    async def role_checker(
        current_user: User = Depends(get_current_user),
    ) -> User:
        if not current_user.has_role(*roles):
            raise ForbiddenException(
                message=f"Access denied. Required roles: {', '.join(roles)}",
                details={"requiredRoles": list(roles), "userRoles": list(current_user.roles or [])},
            )
        return current_user

    return role_checker


PROVIDER_STATUS_MESSAGES: dict[str, str] = {
    ProviderStatus.NONE: "Please complete provider onboarding first",
    ProviderStatus.DRAFT: "Please complete your provider profile to access this feature",
    ProviderStatus.LIMITED: "Your account has limited access. Please complete verification",
    ProviderStatus.SUSPENDED: "Your provider account has been suspended",
}


def provider_status_message(current_status: str, reason: str | None = None) -> str:
    if current_status == ProviderStatus.SUSPENDED and reason:
        return reason
    return PROVIDER_STATUS_MESSAGES.get(current_status, "Your provider account cannot access this feature")


def require_provider_status(*statuses: str):
    """
    Dependency factory gating provider features on onboarding status.

    Usually combined with require_roles("provider").
    """
    allowed = [str(s) for s in statuses]

    async def status_checker(
        current_user: User = Depends(get_current_user),
    ) -> User:
        current_status = current_user.provider_status or ProviderStatus.NONE.value
        if current_status not in allowed:
            raise ForbiddenException(
                message=provider_status_message(current_status, current_user.provider_status_reason),
                code=ErrorCode.PROVIDER_STATUS,
                details={
                    "currentStatus": current_status,
                    "requiredStatuses": allowed,
                    "statusReason": current_user.provider_status_reason,
                },
            )
        return current_user

    return status_checker


# =============================================================================
# OpenAPI Response Examples
# =============================================================================

SIGNUP_RESPONSES: dict[int, dict[str, Any]] = {
    201: {"description": "Account created, tokens issued"},
    400: {"description": "Validation error"},
    409: {
        "description": "Email already registered",
        "content": {
            "application/json": {
                "example": {
                    "error": {
                        "code": "ERR_1008",
                        "message": "Email already registered",
                        "details": {"field": "email"},
                        "request_id": "3f2c8a40-...",
                    },
                    "statusCode": 409,
                    "path": "/api/v1/auth/signup",
                    "method": "POST",
                }
            }
        },
    },
}

LOGIN_RESPONSES: dict[int, dict[str, Any]] = {
    200: {"description": "Signed in"},
    401: {"description": "Invalid email or password"},
    403: {"description": "Account is inactive"},
}


# =============================================================================
# Endpoints
# =============================================================================


def _auth_response(service: AuthService, user: User) -> AuthResponse:
    access_token, refresh_token = service.issue_tokens(user)
    return AuthResponse(
        user=UserResponse.from_user(user),
        access_token=access_token,
        refresh_token=refresh_token,
    )


@router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses=SIGNUP_RESPONSES,
    summary="Create an account",
)
async def signup(
    data: SignupRequest,
    db: AsyncSession = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """
    Register a new owner or provider account.

    Returns the user together with an access / refresh token pair. A welcome
    email is sent best effort.
    """
    user = await service.signup(db, data)
    return _auth_response(service, user)


@router.post(
    "/login",
    response_model=AuthResponse,
    responses=LOGIN_RESPONSES,
    summary="Sign in with email and password",
)
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    user = await service.login(db, data.email, data.password)
    logger.info(f"User logged in: {user.id}")
    return _auth_response(service, user)


@router.post("/refresh", response_model=TokenPair, summary="Exchange a refresh token")
async def refresh_token(
    data: TokenRefresh,
    db: AsyncSession = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
) -> TokenPair:
    """Issue a new token pair for a valid refresh token."""
    user = await service.refresh(db, data.refresh_token)
    access_token, new_refresh_token = service.issue_tokens(user)
    return TokenPair(access_token=access_token, refresh_token=new_refresh_token)


@router.get("/me", response_model=UserResponse, summary="Current user")
async def get_me(
    current_user: User = Depends(get_current_user),
) -> UserResponse:
    return UserResponse.from_user(current_user)


@router.put("/profile", response_model=UserResponse, summary="Update own profile")
async def update_profile(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    """
    Update personal details; business_name, service_types and
    years_in_business create or update the provider profile.
    """
    user = await service.update_profile(db, current_user, data)
    return UserResponse.from_user(user)


@router.get("/csrf", response_model=CsrfTokenResponse, summary="Issue a CSRF token")
async def get_csrf_token(response: Response) -> CsrfTokenResponse:
    """
    Return a fresh CSRF token and set it as the `csrf_token` cookie.

    Browser clients echo it back in the X-CSRF-Token header on mutating
    requests.
    """
    token = generate_csrf_token()
    set_csrf_cookie(response, token)
    return CsrfTokenResponse(csrf_token=token)


__all__ = [
    "get_current_user",
    "require_provider_status",
    "require_roles",
    "router",
]
