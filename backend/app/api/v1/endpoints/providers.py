"""
Provider endpoints - public directory, business profile and onboarding.

Onboarding flow:
    PUT  /providers/onboarding/start     -> role added, status "draft"
    PUT  /providers/profile              -> fill in business details
    GET  /providers/onboarding/status    -> checklist and progress
    POST /providers/onboarding/complete  -> status "active", may quote
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.endpoints.auth import get_current_user, require_roles
from app.api.v1.schemas.auth import UserResponse
from app.api.v1.schemas.provider import (
    DeactivateProviderRequest,
    FeaturedProvider,
    OnboardingResult,
    OnboardingStatusResponse,
    ProviderDetailResponse,
    ProviderProfileUpdate,
)
from app.db.postgres.models import User, UserRole
from app.db.postgres.session import get_db, get_read_db
from app.services.provider_service import ProviderService, get_provider_service

router = APIRouter()


# =============================================================================
# Public directory
# =============================================================================


@router.get(
    "/public/featured",
    response_model=List[FeaturedProvider],
    summary="Featured providers (public)",
)
async def featured_providers(
    db: AsyncSession = Depends(get_read_db),
    provider_service: ProviderService = Depends(get_provider_service),
):
    return await provider_service.featured(db)


@router.get("", response_model=List[UserResponse], summary="List active providers")
async def list_providers(
    service_type: Optional[str] = Query(None, description="Only providers offering this service"),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_read_db),
    provider_service: ProviderService = Depends(get_provider_service),
) -> List[UserResponse]:
    providers = await provider_service.list_providers(db, service_type, limit)
    return [UserResponse.from_user(provider) for provider in providers]


# =============================================================================
# Own profile and onboarding
# =============================================================================


@router.put("/profile", response_model=UserResponse, summary="Update business profile")
async def update_provider_profile(
    data: ProviderProfileUpdate,
    current_user: User = Depends(require_roles(UserRole.PROVIDER)),
    db: AsyncSession = Depends(get_db),
    provider_service: ProviderService = Depends(get_provider_service),
) -> UserResponse:
    """Create or update the caller's provider profile. Omitted fields are left unchanged."""
    user = await provider_service.update_profile(db, current_user, data)
    return UserResponse.from_user(user)


@router.put("/onboarding/start", response_model=OnboardingResult, summary="Start provider onboarding")
async def start_onboarding(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    provider_service: ProviderService = Depends(get_provider_service),
) -> OnboardingResult:
    message, user = await provider_service.start_onboarding(db, current_user)
    return OnboardingResult(message=message, user=UserResponse.from_user(user))


@router.get(
    "/onboarding/status",
    response_model=OnboardingStatusResponse,
    summary="Provider onboarding checklist",
)
async def onboarding_status(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    provider_service: ProviderService = Depends(get_provider_service),
):
    return await provider_service.onboarding_status(db, current_user)


@router.post(
    "/onboarding/complete",
    response_model=OnboardingResult,
    summary="Complete provider onboarding",
    responses={400: {"description": "Checklist incomplete"}},
)
async def complete_onboarding(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    provider_service: ProviderService = Depends(get_provider_service),
) -> OnboardingResult:
    message, user = await provider_service.complete_onboarding(db, current_user)
    return OnboardingResult(message=message, user=UserResponse.from_user(user))


# =============================================================================
# Single provider
# =============================================================================


@router.get("/{provider_id}", response_model=ProviderDetailResponse, summary="Get a provider")
async def get_provider(
    provider_id: UUID = Path(..., description="Provider user ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_read_db),
    provider_service: ProviderService = Depends(get_provider_service),
) -> ProviderDetailResponse:
    provider, completed_jobs, review_count = await provider_service.get_provider(db, provider_id)
    return ProviderDetailResponse.from_user(provider).model_copy(
        update={"completedJobs": completed_jobs, "totalReviews": review_count}
    )


@router.post(
    "/{provider_id}/deactivate",
    response_model=UserResponse,
    summary="Suspend a provider (admin)",
)
async def deactivate_provider(
    data: DeactivateProviderRequest,
    provider_id: UUID = Path(..., description="Provider user ID"),
    current_user: User = Depends(require_roles(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
    provider_service: ProviderService = Depends(get_provider_service),
) -> UserResponse:
    provider = await provider_service.deactivate(db, provider_id, current_user, data.reason)
    return UserResponse.from_user(provider)
