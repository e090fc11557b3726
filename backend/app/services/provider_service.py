"""
Provider directory, business profile and onboarding.

Onboarding moves a user from `none` to `draft` (start) and from `draft` to
`active` (complete, once the checklist is filled in). Admins can suspend a
provider with a reason.
"""

from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.schemas.provider import ProviderProfileUpdate
from app.core.exceptions import BadRequestException, NotFoundException
from app.core.logging import get_logger
from app.db.postgres.models import AuditAction, ProviderProfile, ProviderStatus, User, UserRole
from app.db.postgres.repositories import (
    JobRepository,
    ProviderProfileRepository,
    ReviewRepository,
    UserRepository,
)
from app.services.audit_service import get_audit_service

logger = get_logger(__name__)

FEATURED_LIMIT = 4
FEATURED_SPECIALTIES = 3


def onboarding_checklist(user: User, profile: ProviderProfile | None) -> list[dict[str, Any]]:
    """Items a provider must complete before activation."""
    return [
        {
            "id": "business_name",
            "label": "Business Name",
            "completed": bool(profile and profile.business_name),
        },
        {
            "id": "service_types",
            "label": "Service Types",
            "completed": bool(profile and profile.service_types),
        },
        {
            "id": "location",
            "label": "Shop Location",
            "completed": bool(
                profile
                and profile.shop_address
                and profile.shop_city
                and profile.shop_state
                and profile.shop_zip_code
            ),
        },
        {
            "id": "contact",
            "label": "Contact Info",
            "completed": bool(user.phone and user.email),
        },
        {
            "id": "personal_info",
            "label": "Personal Info",
            "completed": bool(user.address and user.city and user.state and user.zip_code),
        },
    ]


class ProviderService:
    async def featured(self, db: AsyncSession) -> list[dict[str, Any]]:
        providers = await UserRepository(db).list_active_providers(limit=FEATURED_LIMIT)
        return [
            {
                "id": provider.id,
                "name": (provider.provider_profile.business_name if provider.provider_profile else None)
                or provider.name,
                "specialties": list(provider.provider_profile.service_types or [])[:FEATURED_SPECIALTIES]
                if provider.provider_profile
                else [],
                "city": provider.provider_profile.shop_city if provider.provider_profile else provider.city,
                "state": provider.provider_profile.shop_state if provider.provider_profile else provider.state,
                "rating": provider.rating,
            }
            for provider in providers
        ]

    async def list_providers(self, db: AsyncSession, service_type: str | None, limit: int) -> list[User]:
        return await UserRepository(db).list_active_providers(service_type=service_type, limit=limit)

    async def get_provider(self, db: AsyncSession, provider_id: UUID) -> tuple[User, int, int]:
        """
        Returns:
            The provider (with profile), completed job count and review count
        """
        user = await UserRepository(db).get_with_profile(provider_id)
        if user is None or not user.is_provider:
            raise NotFoundException(
                message=f"Provider with ID {provider_id} not found",
                resource_type="Provider",
                resource_id=str(provider_id),
            )
        completed_jobs = await JobRepository(db).count_completed(provider_id)
        _, review_count = await ReviewRepository(db).rating_stats(provider_id)
        return user, completed_jobs, review_count

    async def update_profile(self, db: AsyncSession, user: User, data: ProviderProfileUpdate) -> User:
        updates = data.model_dump(exclude_unset=True)
        if updates.get("website") is not None:
            updates["website"] = str(updates["website"])

        profiles = ProviderProfileRepository(db)
        profile = await profiles.get_by_user(user.id)
        if profile is None:
            await profiles.create({"user_id": user.id, "is_active": False, **updates})
        else:
            for key, value in updates.items():
                setattr(profile, key, value)
            await db.flush()

        await get_audit_service().log(
            db,
            user_id=user.id,
            entity_type="ProviderProfile",
            entity_id=user.id,
            action=AuditAction.UPDATE,
            changes=updates,
        )
        return await UserRepository(db).get_with_profile(user.id)

    # -------------------------------------------------------------------------
    # Onboarding
    # -------------------------------------------------------------------------

    async def start_onboarding(self, db: AsyncSession, user: User) -> tuple[str, User]:
        if not user.has_role(UserRole.PROVIDER):
            user.roles = [*(user.roles or []), UserRole.PROVIDER.value]
        if user.provider_status == ProviderStatus.NONE:
            user.provider_status = ProviderStatus.DRAFT.value

        profiles = ProviderProfileRepository(db)
        if await profiles.get_by_user(user.id) is None:
            await profiles.create({"user_id": user.id, "is_active": False})
            message = "Provider onboarding started"
            logger.info(f"Provider onboarding started for user {user.id}")
        else:
            message = "Provider profile already exists"
        await db.flush()

        return message, await UserRepository(db).get_with_profile(user.id)

    async def onboarding_status(self, db: AsyncSession, user: User) -> dict[str, Any]:
        profile = await ProviderProfileRepository(db).get_by_user(user.id)
        checklist = onboarding_checklist(user, profile)
        completed = sum(1 for item in checklist if item["completed"])
        total = len(checklist)
        return {
            "status": user.provider_status,
            "checklist": checklist,
            "progress": {
                "completed": completed,
                "total": total,
                "percentage": round(completed / total * 100),
            },
            "canActivate": completed == total,
            "isActive": bool(profile and profile.is_active),
            "statusReason": user.provider_status_reason,
        }

    async def complete_onboarding(self, db: AsyncSession, user: User) -> tuple[str, User]:
        """
        Activate a provider whose checklist is complete.

        Raises:
            BadRequestException: Checklist incomplete
        """
        profile = await ProviderProfileRepository(db).get_by_user(user.id)
        missing = [item["id"] for item in onboarding_checklist(user, profile) if not item["completed"]]
        if profile is None or missing:
            raise BadRequestException(
                message="Provider profile incomplete. Please fill all required fields.",
                details={"missing": missing},
            )

        profile.is_active = True
        user.provider_status = ProviderStatus.ACTIVE.value
        user.provider_status_reason = None
        await db.flush()

        await get_audit_service().log(
            db,
            user_id=user.id,
            entity_type="ProviderProfile",
            entity_id=user.id,
            action=AuditAction.UPDATE,
            changes={"provider_status": ProviderStatus.ACTIVE.value, "is_active": True},
        )
        logger.info(f"Provider {user.id} onboarding completed and activated")
        return (
            "Provider onboarding complete! You can now submit quotes.",
            await UserRepository(db).get_with_profile(user.id),
        )

    async def deactivate(self, db: AsyncSession, provider_id: UUID, admin: User, reason: str | None) -> User:
        users = UserRepository(db)
        provider = await users.get(provider_id)
        if provider is None:
            raise NotFoundException(
                message=f"Provider with ID {provider_id} not found",
                resource_type="Provider",
                resource_id=str(provider_id),
            )

        profile = await ProviderProfileRepository(db).get_by_user(provider_id)
        if profile is not None:
            profile.is_active = False
        provider.provider_status = ProviderStatus.SUSPENDED.value
        provider.provider_status_reason = reason
        await db.flush()

        await get_audit_service().log(
            db,
            user_id=admin.id,
            entity_type="ProviderProfile",
            entity_id=provider_id,
            action=AuditAction.UPDATE,
            changes={"provider_status": ProviderStatus.SUSPENDED.value, "is_active": False},
            metadata={"reason": reason},
        )
        logger.warning(f"Provider {provider_id} suspended by admin {admin.id}")
        return await users.get_with_profile(provider_id)


# Singleton instance
_provider_service: ProviderService | None = None


def get_provider_service() -> ProviderService:
    """Get or create provider service instance."""
    global _provider_service
    if _provider_service is None:
        _provider_service = ProviderService()
    return _provider_service
