"""
Review schemas.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.api.v1.schemas.auth import UserSummary


class ReviewCreate(BaseModel):
    job_id: UUID
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)


class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)


class ReviewRespond(BaseModel):
    response: str = Field(..., min_length=1, max_length=2000)


class ReviewResponse(BaseModel):
    id: UUID
    job_id: UUID
    owner_id: UUID
    provider_id: UUID
    rating: int
    comment: Optional[str] = None
    response: Optional[str] = None
    responded_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    owner: Optional[UserSummary] = None

    class Config:
        from_attributes = True


class ReviewPagination(BaseModel):
    total: int
    page: int
    limit: int
    totalPages: int


class ProviderReviewsResponse(BaseModel):
    reviews: List[ReviewResponse]
    pagination: ReviewPagination
