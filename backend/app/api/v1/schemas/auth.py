"""
Authentication schemas.

Provides Pydantic models for authentication requests and responses.
"""

from datetime import datetime
from typing import TYPE_CHECKING, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

if TYPE_CHECKING:
    from app.db.postgres.models import User

# =============================================================================
# User Role Types
# =============================================================================

SignupRole = Literal["owner", "provider"]


# =============================================================================
# Signup & Login
# =============================================================================


class SignupRequest(BaseModel):
    """Schema for account creation."""

    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)
    name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    role: SignupRole = Field(default="owner", description="Initial role (owner or provider)")

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name must not be blank")
        return v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenRefresh(BaseModel):
    """Schema for token refresh request."""

    refresh_token: str


# =============================================================================
# User Schemas
# =============================================================================


class UserResponse(BaseModel):
    """
    Public view of an account.

    Provider profile fields are flattened onto the user so clients never
    have to join the two.
    """

    id: UUID
    email: EmailStr
    name: str
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    roles: List[str] = Field(default_factory=list)
    is_active: bool = True
    provider_status: str = "none"
    provider_status_reason: Optional[str] = None
    rating: Optional[float] = None
    review_count: int = 0
    created_at: Optional[datetime] = None

    # Flattened provider profile
    business_name: Optional[str] = None
    service_types: List[str] = Field(default_factory=list)
    years_in_business: Optional[int] = None
    shop_address: Optional[str] = None
    shop_city: Optional[str] = None
    shop_state: Optional[str] = None
    shop_zip_code: Optional[str] = None
    service_radius: Optional[int] = None
    hourly_rate: Optional[float] = None
    website: Optional[str] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_user(cls, user: "User") -> "UserResponse":
        """Build the response; `user.provider_profile` must already be loaded."""
        data = {
            "id": user.id,
            "email": user.email,
            "name": user.name,
            "phone": user.phone,
            "avatar_url": user.avatar_url,
            "bio": user.bio,
            "address": user.address,
            "city": user.city,
            "state": user.state,
            "zip_code": user.zip_code,
            "roles": list(user.roles or []),
            "is_active": user.is_active,
            "provider_status": user.provider_status,
            "provider_status_reason": user.provider_status_reason,
            "rating": user.rating,
            "review_count": user.review_count or 0,
            "created_at": user.created_at,
        }
        profile = user.provider_profile
        if profile is not None:
            data.update(
                business_name=profile.business_name,
                service_types=list(profile.service_types or []),
                years_in_business=profile.years_in_business,
                shop_address=profile.shop_address,
                shop_city=profile.shop_city,
                shop_state=profile.shop_state,
                shop_zip_code=profile.shop_zip_code,
                service_radius=profile.service_radius,
                hourly_rate=profile.hourly_rate,
                website=profile.website,
            )
        return cls(**data)


class UserSummary(BaseModel):
    """Minimal user reference embedded in other resources."""

    id: UUID
    name: str
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    rating: Optional[float] = None

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    """Schema for updating the caller's profile; provider fields upsert the provider profile."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=50)
    zip_code: Optional[str] = Field(None, max_length=20)
    avatar_url: Optional[str] = Field(None, max_length=500)
    bio: Optional[str] = Field(None, max_length=2000)

    business_name: Optional[str] = Field(None, max_length=200)
    service_types: Optional[List[str]] = None
    years_in_business: Optional[int] = Field(None, ge=0, le=200)


# =============================================================================
# Token Schemas
# =============================================================================


class AuthResponse(BaseModel):
    """Tokens plus the signed-in user."""

    user: UserResponse
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class CsrfTokenResponse(BaseModel):
    csrf_token: str
