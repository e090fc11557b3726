"""
Review endpoints.

Owners review completed jobs; providers can reply once per review. Every
change to a rating recomputes the provider's average.
"""

import math
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.endpoints.auth import get_current_user
from app.api.v1.schemas.common import MessageResponse
from app.api.v1.schemas.review import (
    ProviderReviewsResponse,
    ReviewCreate,
    ReviewPagination,
    ReviewRespond,
    ReviewResponse,
    ReviewUpdate,
)
from app.db.postgres.models import User
from app.db.postgres.session import get_db, get_read_db
from app.services.review_service import ReviewService, get_review_service

router = APIRouter()


@router.post(
    "",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Review a completed job",
    responses={
        400: {"description": "Job not completed, or already reviewed"},
        403: {"description": "Caller does not own the job"},
        404: {"description": "Job not found"},
    },
)
async def create_review(
    data: ReviewCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    review_service: ReviewService = Depends(get_review_service),
):
    return await review_service.create_review(db, current_user, data)


@router.get(
    "/provider/{provider_id}",
    response_model=ProviderReviewsResponse,
    summary="Reviews of a provider",
)
async def provider_reviews(
    provider_id: UUID = Path(..., description="Provider user ID"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_read_db),
    review_service: ReviewService = Depends(get_review_service),
) -> ProviderReviewsResponse:
    reviews, total = await review_service.list_for_provider(db, provider_id, page, limit)
    return ProviderReviewsResponse(
        reviews=[ReviewResponse.model_validate(review) for review in reviews],
        pagination=ReviewPagination(
            total=total,
            page=page,
            limit=limit,
            totalPages=math.ceil(total / limit),
        ),
    )


@router.get("/job/{job_id}", response_model=Optional[ReviewResponse], summary="Review of a job")
async def review_for_job(
    job_id: UUID = Path(..., description="Job ID"),
    db: AsyncSession = Depends(get_read_db),
    review_service: ReviewService = Depends(get_review_service),
):
    """Returns null while the job has not been reviewed."""
    return await review_service.get_by_job(db, job_id)


@router.get("/{review_id}", response_model=ReviewResponse, summary="Get a review")
async def get_review(
    review_id: UUID = Path(..., description="Review ID"),
    db: AsyncSession = Depends(get_read_db),
    review_service: ReviewService = Depends(get_review_service),
):
    return await review_service.get_review(db, review_id)


@router.put("/{review_id}", response_model=ReviewResponse, summary="Edit own review")
async def update_review(
    data: ReviewUpdate,
    review_id: UUID = Path(..., description="Review ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    review_service: ReviewService = Depends(get_review_service),
):
    return await review_service.update_review(db, review_id, current_user, data)


@router.post("/{review_id}/respond", response_model=ReviewResponse, summary="Reply to a review")
async def respond_to_review(
    data: ReviewRespond,
    review_id: UUID = Path(..., description="Review ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    review_service: ReviewService = Depends(get_review_service),
):
    """Only the reviewed provider may reply."""
    return await review_service.respond(db, review_id, current_user, data.response)


@router.delete("/{review_id}", response_model=MessageResponse, summary="Delete own review")
async def delete_review(
    review_id: UUID = Path(..., description="Review ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    review_service: ReviewService = Depends(get_review_service),
) -> MessageResponse:
    await review_service.delete_review(db, review_id, current_user)
    return MessageResponse(message="Review deleted successfully")
