"""
Account service: signup, login, token refresh and profile updates.
"""

from datetime import datetime, timezone
from functools import partial
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.schemas.auth import ProfileUpdate, SignupRequest
from app.core.exceptions import (
    ConflictException,
    ErrorCode,
    ForbiddenException,
    InvalidCredentialsException,
    InvalidTokenException,
    TokenExpiredException,
)
from app.core.logging import get_logger
from app.core.security import (
    REFRESH_TOKEN_TYPE,
    TokenExpired,
    create_access_token,
    create_refresh_token,
    decode_token,
    get_password_hash,
    verify_password,
)
from app.db.postgres.models import AuditAction, ProviderStatus, User, UserRole
from app.db.postgres.repositories import ProviderProfileRepository, UserRepository
from app.db.postgres.session import after_commit
from app.services.audit_service import diff_changes, get_audit_service
from app.services.email_service import get_email_service

logger = get_logger(__name__)

PROFILE_FIELDS = ("name", "phone", "address", "city", "state", "zip_code", "avatar_url", "bio")
PROVIDER_PROFILE_FIELDS = ("business_name", "service_types", "years_in_business")


class AuthService:
    """Authentication and account management."""

    def issue_tokens(self, user: User) -> tuple[str, str]:
        access_token = create_access_token(
            subject=str(user.id),
            additional_claims={"email": user.email, "roles": list(user.roles or [])},
        )
        refresh_token = create_refresh_token(subject=str(user.id))
        return access_token, refresh_token

    async def signup(self, db: AsyncSession, data: SignupRequest) -> User:
        """
        Create an account.

        A provider signup also gets the owner role, a draft provider status
        and an inactive provider profile to fill in during onboarding.

        Raises:
            ConflictException: Email already registered
        """
        repository = UserRepository(db)
        email = data.email.lower()

        if await repository.get_by_email(email):
            logger.warning(f"Signup attempt with existing email: {email}")
            raise ConflictException(message="Email already registered", details={"field": "email"})

        is_provider = data.role == UserRole.PROVIDER
        user = await repository.create(
            {
                "email": email,
                "hashed_password": get_password_hash(data.password),
                "name": data.name,
                "phone": data.phone,
                "roles": [UserRole.OWNER.value, UserRole.PROVIDER.value] if is_provider else [UserRole.OWNER.value],
                "provider_status": ProviderStatus.DRAFT.value if is_provider else ProviderStatus.NONE.value,
            }
        )
        if is_provider:
            await ProviderProfileRepository(db).create({"user_id": user.id, "is_active": False})

        logger.info(f"New user registered: {user.id}")

        await get_audit_service().log(
            db,
            user_id=user.id,
            entity_type="User",
            entity_id=user.id,
            action=AuditAction.CREATE,
            changes={"email": email, "roles": user.roles},
        )
        after_commit(db, partial(get_email_service().send_welcome, user.email, user.name))

        return await repository.get_with_profile(user.id)

    async def login(self, db: AsyncSession, email: str, password: str) -> User:
        """
        Check credentials.

        Raises:
            InvalidCredentialsException: Unknown email or wrong password
            ForbiddenException: Account deactivated
        """
        repository = UserRepository(db)
        user = await repository.get_by_email(email)

        if user is None or not verify_password(password, user.hashed_password):
            logger.warning(f"Failed login attempt for {email.lower()}")
            raise InvalidCredentialsException()

        if not user.is_active:
            raise ForbiddenException(message="User account is inactive", code=ErrorCode.ACCOUNT_INACTIVE)

        user.last_login_at = datetime.now(timezone.utc)
        await db.flush()
        return await repository.get_with_profile(user.id)

    async def refresh(self, db: AsyncSession, refresh_token: str) -> User:
        """
        Resolve the user behind a refresh token.

        Raises:
            TokenExpiredException / InvalidTokenException
        """
        try:
            payload = decode_token(refresh_token, expected_type=REFRESH_TOKEN_TYPE)
        except TokenExpired:
            raise TokenExpiredException()

        if payload is None:
            raise InvalidTokenException("Invalid refresh token", code=ErrorCode.REFRESH_TOKEN_INVALID)

        try:
            user_id = UUID(payload["sub"])
        except ValueError:
            raise InvalidTokenException("Invalid refresh token", code=ErrorCode.REFRESH_TOKEN_INVALID)

        user = await UserRepository(db).get_with_profile(user_id)
        if user is None or not user.is_active:
            raise InvalidTokenException("Invalid refresh token", code=ErrorCode.REFRESH_TOKEN_INVALID)
        return user

    async def update_profile(self, db: AsyncSession, user: User, data: ProfileUpdate) -> User:
        """Update the caller's own account; provider fields upsert the provider profile."""
        updates = data.model_dump(exclude_unset=True)

        user_updates = {k: v for k, v in updates.items() if k in PROFILE_FIELDS}
        before = {key: getattr(user, key) for key in user_updates}
        for key, value in user_updates.items():
            setattr(user, key, value)

        provider_updates = {k: v for k, v in updates.items() if k in PROVIDER_PROFILE_FIELDS}
        if provider_updates:
            profiles = ProviderProfileRepository(db)
            profile = await profiles.get_by_user(user.id)
            if profile is None:
                await profiles.create({"user_id": user.id, "is_active": False, **provider_updates})
            else:
                for key, value in provider_updates.items():
                    setattr(profile, key, value)

        await db.flush()

        await get_audit_service().log(
            db,
            user_id=user.id,
            entity_type="User",
            entity_id=user.id,
            action=AuditAction.UPDATE,
            changes={**diff_changes(before, user_updates), **provider_updates},
        )

        return await UserRepository(db).get_with_profile(user.id)


# Singleton instance
_auth_service: AuthService | None = None


def get_auth_service() -> AuthService:
    """Get or create auth service instance."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
