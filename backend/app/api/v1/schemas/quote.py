"""
Quote schemas.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.api.v1.schemas.auth import UserSummary


class QuoteCreate(BaseModel):
    """Schema for submitting a quote against a request."""

    request_id: UUID
    amount: float = Field(..., gt=0, le=1_000_000, description="Quoted price")
    estimated_duration: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=5000)
    warranty: Optional[str] = Field(None, max_length=200)


class QuoteResponse(BaseModel):
    id: UUID
    request_id: UUID
    provider_id: UUID
    amount: float
    estimated_duration: Optional[str] = None
    description: Optional[str] = None
    warranty: Optional[str] = None
    status: str
    created_at: datetime
    updated_at: datetime
    provider: Optional[UserSummary] = None

    class Config:
        from_attributes = True


class QuoteRequestBrief(BaseModel):
    """The request a provider quoted on, as shown in "my quotes"."""

    id: UUID
    title: str
    status: str

    class Config:
        from_attributes = True


class ProviderQuoteResponse(QuoteResponse):
    request: Optional[QuoteRequestBrief] = None
