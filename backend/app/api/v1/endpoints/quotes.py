"""
Quote endpoints.

Active providers submit quotes on open requests; the request owner accepts
one of them (which opens a job) or rejects them.
"""

from typing import Any, Dict, List, Union
from uuid import UUID

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.endpoints.auth import get_current_user, require_provider_status, require_roles
from app.api.v1.schemas.job import JobResponse, QuoteAcceptResponse
from app.api.v1.schemas.quote import ProviderQuoteResponse, QuoteCreate, QuoteResponse
from app.db.postgres.models import ProviderStatus, User, UserRole
from app.db.postgres.session import get_db, get_read_db
from app.services.quote_service import QuoteService, get_quote_service

router = APIRouter()


CREATE_QUOTE_RESPONSES: Dict[Union[int, str], Dict[str, Any]] = {
    201: {"description": "Quote submitted"},
    400: {"description": "Request is in progress, completed or cancelled"},
    403: {
        "description": "Caller is not a provider, or the provider account is not active",
        "content": {
            "application/json": {
                "example": {
                    "error": {
                        "code": "ERR_4002",
                        "message": "Please complete your provider profile to access this feature",
                        "details": {
                            "currentStatus": "draft",
                            "requiredStatuses": ["active"],
                            "statusReason": None,
                        },
                        "request_id": "3f2c8a40-...",
                    },
                    "statusCode": 403,
                }
            }
        },
    },
    404: {"description": "Service request not found"},
}


@router.get(
    "/mine",
    response_model=List[ProviderQuoteResponse],
    summary="Quotes submitted by the caller",
)
async def my_quotes(
    current_user: User = Depends(require_roles(UserRole.PROVIDER)),
    db: AsyncSession = Depends(get_read_db),
    quote_service: QuoteService = Depends(get_quote_service),
):
    return await quote_service.list_mine(db, current_user)


@router.get(
    "/request/{request_id}",
    response_model=List[QuoteResponse],
    summary="Quotes on a request",
)
async def quotes_for_request(
    request_id: UUID = Path(..., description="Service request ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_read_db),
    quote_service: QuoteService = Depends(get_quote_service),
):
    """Visible to the request owner and to providers."""
    return await quote_service.list_for_request(db, request_id, current_user)


@router.post(
    "",
    response_model=QuoteResponse,
    status_code=status.HTTP_201_CREATED,
    responses=CREATE_QUOTE_RESPONSES,
    dependencies=[Depends(require_roles(UserRole.PROVIDER))],
    summary="Submit a quote",
)
async def create_quote(
    data: QuoteCreate,
    current_user: User = Depends(require_provider_status(ProviderStatus.ACTIVE)),
    db: AsyncSession = Depends(get_db),
    quote_service: QuoteService = Depends(get_quote_service),
):
    """
    Submit a quote on an open or quoted request.

    The first quote moves an open request to `quoted`; the request owner is
    notified in-app and by email.
    """
    return await quote_service.create_quote(db, current_user, data)


@router.post(
    "/{quote_id}/accept",
    response_model=QuoteAcceptResponse,
    summary="Accept a quote",
)
async def accept_quote(
    quote_id: UUID = Path(..., description="Quote ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    quote_service: QuoteService = Depends(get_quote_service),
) -> QuoteAcceptResponse:
    """
    Accept a pending quote as the request owner.

    Competing pending quotes are rejected, the request moves to
    `in_progress` and a pending job is created, all in one transaction.
    """
    quote, job = await quote_service.accept_quote(db, quote_id, current_user)
    return QuoteAcceptResponse(quote=QuoteResponse.model_validate(quote), job=JobResponse.model_validate(job))


@router.post("/{quote_id}/reject", response_model=QuoteResponse, summary="Reject a quote")
async def reject_quote(
    quote_id: UUID = Path(..., description="Quote ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    quote_service: QuoteService = Depends(get_quote_service),
):
    return await quote_service.reject_quote(db, quote_id, current_user)
