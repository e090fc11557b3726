"""
Platform-wide schemas: public statistics, settings, service catalogue, audit log.
"""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class PlatformStats(BaseModel):
    customers: int
    providers: int
    jobsCompleted: int
    averageSavings: int


class DayHours(BaseModel):
    open: Optional[str] = None
    close: Optional[str] = None
    timezone: Optional[str] = None
    closed: bool = False


class PlatformSettings(BaseModel):
    businessHours: Dict[str, DayHours]
    supportEmail: str
    socialMedia: Dict[str, str] = Field(default_factory=dict)
    features: Dict[str, bool] = Field(default_factory=dict)


class ServiceResponse(BaseModel):
    """Catalogue entry."""

    id: UUID
    name: str
    slug: str
    description: Optional[str] = None
    icon: Optional[str] = None
    is_popular: bool
    display_order: int

    class Config:
        from_attributes = True


class AuditLogResponse(BaseModel):
    id: UUID
    user_id: Optional[UUID] = None
    entity_type: str
    entity_id: str
    action: str
    changes: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict, validation_alias="audit_metadata")
    created_at: datetime

    class Config:
        from_attributes = True


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    database: str
    replica: str
    version: str
