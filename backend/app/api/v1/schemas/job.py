"""
Job schemas.
"""

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel

from app.api.v1.schemas.auth import UserSummary
from app.api.v1.schemas.quote import QuoteResponse
from app.api.v1.schemas.request import ServiceRequestResponse

JobStatusValue = Literal["pending", "in_progress", "pending_confirmation", "completed", "cancelled"]


class JobStatusUpdate(BaseModel):
    status: JobStatusValue


class JobResponse(BaseModel):
    id: UUID
    quote_id: UUID
    request_id: UUID
    provider_id: UUID
    owner_id: UUID
    status: str
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class JobListItem(JobResponse):
    """Job row with the quote and request (incl. vehicle) it came from."""

    quote: Optional[QuoteResponse] = None
    request: Optional[ServiceRequestResponse] = None


class JobDetailResponse(JobListItem):
    provider: Optional[UserSummary] = None
    owner: Optional[UserSummary] = None


class QuoteAcceptResponse(BaseModel):
    """Accepted quote and the job created from it."""

    quote: QuoteResponse
    job: JobResponse
