"""
Service request schemas.
"""

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.api.v1.schemas.quote import QuoteResponse
from app.api.v1.schemas.vehicle import VehicleBrief

UrgencyLevel = Literal["low", "medium", "high", "urgent"]


class ServiceRequestCreate(BaseModel):
    """Schema for posting a new service request."""

    vehicle_id: UUID
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=5000)
    urgency: UrgencyLevel = "medium"
    service_type: Optional[str] = Field(None, max_length=100)
    preferred_location: Optional[str] = Field(None, max_length=255)
    preferred_date: Optional[datetime] = None
    image_urls: List[str] = Field(default_factory=list, max_length=10)


class ServiceRequestUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1, max_length=5000)
    urgency: Optional[UrgencyLevel] = None
    service_type: Optional[str] = Field(None, max_length=100)
    preferred_location: Optional[str] = Field(None, max_length=255)
    preferred_date: Optional[datetime] = None
    image_urls: Optional[List[str]] = Field(None, max_length=10)


class ServiceRequestResponse(BaseModel):
    id: UUID
    owner_id: UUID
    vehicle_id: UUID
    title: str
    description: str
    urgency: str
    service_type: Optional[str] = None
    preferred_location: Optional[str] = None
    preferred_date: Optional[datetime] = None
    image_urls: List[str] = Field(default_factory=list)
    status: str
    created_at: datetime
    updated_at: datetime
    vehicle: Optional[VehicleBrief] = None

    class Config:
        from_attributes = True


class ServiceRequestDetailResponse(ServiceRequestResponse):
    """Request together with every quote submitted against it."""

    quotes: List[QuoteResponse] = Field(default_factory=list)


class RecentRequestResponse(BaseModel):
    """Anonymous teaser of an open request for the landing page."""

    id: UUID
    title: str
    service_type: Optional[str] = None
    urgency: str
    status: str
    created_at: datetime
    vehicle: Optional[VehicleBrief] = None
    quoteCount: int = 0
