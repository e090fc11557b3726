"""
Provider directory, profile and onboarding schemas.
"""

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, HttpUrl

from app.api.v1.schemas.auth import UserResponse


class FeaturedProvider(BaseModel):
    """Landing page card for an active provider."""

    id: UUID
    name: str
    specialties: List[str] = Field(default_factory=list)
    city: Optional[str] = None
    state: Optional[str] = None
    rating: Optional[float] = None


class ProviderProfileUpdate(BaseModel):
    """Upsert of the caller's provider profile; omitted fields stay as they are."""

    business_name: Optional[str] = Field(None, min_length=1, max_length=200)
    service_types: Optional[List[str]] = None
    years_in_business: Optional[int] = Field(None, ge=0, le=200)
    shop_address: Optional[str] = Field(None, max_length=255)
    shop_city: Optional[str] = Field(None, max_length=100)
    shop_state: Optional[str] = Field(None, max_length=50)
    shop_zip_code: Optional[str] = Field(None, max_length=20)
    service_radius: Optional[int] = Field(None, ge=1, le=500)
    hourly_rate: Optional[float] = Field(None, ge=0)
    website: Optional[HttpUrl] = None


class ProviderDetailResponse(UserResponse):
    """Public provider page: account, flattened profile and track record."""

    completedJobs: int = 0
    totalReviews: int = 0


class ChecklistItem(BaseModel):
    id: str
    label: str
    completed: bool


class OnboardingProgress(BaseModel):
    completed: int
    total: int
    percentage: int


class OnboardingStatusResponse(BaseModel):
    status: str
    checklist: List[ChecklistItem]
    progress: OnboardingProgress
    canActivate: bool
    isActive: bool
    statusReason: Optional[str] = None


class OnboardingResult(BaseModel):
    message: str
    user: UserResponse


class DeactivateProviderRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)
