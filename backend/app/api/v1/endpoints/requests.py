"""
Service request endpoints.

Owners post requests for their vehicles; providers browse open requests
and quote on them.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.endpoints.auth import get_current_user
from app.api.v1.schemas.common import PaginatedResponse, PaginationParams, paginate
from app.api.v1.schemas.quote import QuoteResponse
from app.api.v1.schemas.request import (
    RecentRequestResponse,
    ServiceRequestCreate,
    ServiceRequestDetailResponse,
    ServiceRequestResponse,
    ServiceRequestUpdate,
)
from app.db.postgres.models import User
from app.db.postgres.session import get_db, get_read_db
from app.services.request_service import RequestService, get_request_service

router = APIRouter()


@router.get(
    "/public/recent",
    response_model=List[RecentRequestResponse],
    summary="Recent open requests (public)",
)
async def recent_requests(
    db: AsyncSession = Depends(get_read_db),
    request_service: RequestService = Depends(get_request_service),
):
    """Four newest open or quoted requests with their vehicle and quote count. No authentication."""
    return await request_service.recent_public(db)


@router.get("", response_model=PaginatedResponse[ServiceRequestResponse], summary="List requests")
async def list_requests(
    pagination: PaginationParams = Depends(),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_read_db),
    request_service: RequestService = Depends(get_request_service),
):
    """
    Providers see every open or quoted request; other users see their own
    requests in any status.
    """
    requests, total = await request_service.list_requests(db, current_user, pagination.skip, pagination.limit)
    return paginate(requests, total, pagination)


@router.post(
    "",
    response_model=ServiceRequestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Post a service request",
)
async def create_request(
    data: ServiceRequestCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    request_service: RequestService = Depends(get_request_service),
):
    return await request_service.create_request(db, current_user, data)


@router.get("/{request_id}", response_model=ServiceRequestDetailResponse, summary="Get a request")
async def get_request(
    request_id: UUID = Path(..., description="Service request ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_read_db),
    request_service: RequestService = Depends(get_request_service),
) -> ServiceRequestDetailResponse:
    request, quotes = await request_service.get_request_detail(db, request_id, current_user)
    return ServiceRequestDetailResponse.model_validate(request).model_copy(
        update={"quotes": [QuoteResponse.model_validate(quote) for quote in quotes]}
    )


@router.put("/{request_id}", response_model=ServiceRequestResponse, summary="Update a request")
async def update_request(
    data: ServiceRequestUpdate,
    request_id: UUID = Path(..., description="Service request ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    request_service: RequestService = Depends(get_request_service),
):
    return await request_service.update_request(db, request_id, current_user, data)


@router.post(
    "/{request_id}/cancel",
    response_model=ServiceRequestResponse,
    summary="Cancel a request",
)
async def cancel_request(
    request_id: UUID = Path(..., description="Service request ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    request_service: RequestService = Depends(get_request_service),
):
    """Cancel an open or quoted request. Pending quotes on it are rejected."""
    return await request_service.cancel_request(db, request_id, current_user)
