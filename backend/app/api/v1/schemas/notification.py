"""
Notification and activity timeline schemas.
"""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class NotificationResponse(BaseModel):
    id: UUID
    user_id: UUID
    type: str
    title: str
    message: str
    link: Optional[str] = None
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class UnreadCountResponse(BaseModel):
    unreadCount: int


class MarkAllReadResponse(BaseModel):
    updated: int


class ActivityResponse(BaseModel):
    id: UUID
    user_id: UUID
    type: str
    description: str
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias="activity_metadata")
    created_at: datetime

    class Config:
        from_attributes = True
