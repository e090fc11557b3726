"""
Messaging schemas.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.api.v1.schemas.auth import UserSummary


class MessageCreate(BaseModel):
    job_id: UUID
    content: str = Field(..., min_length=1, max_length=2000)

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Message must not be blank")
        return v


class ChatMessageResponse(BaseModel):
    id: UUID
    conversation_id: UUID
    sender_id: UUID
    content: str
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class ConversationResponse(BaseModel):
    id: UUID
    job_id: UUID
    owner_id: UUID
    provider_id: UUID
    last_message_at: datetime
    created_at: datetime

    class Config:
        from_attributes = True


class ConversationSummary(ConversationResponse):
    """Inbox row: the thread plus what the caller needs to render it."""

    lastMessage: Optional[ChatMessageResponse] = None
    unreadCount: int = 0
    otherUser: Optional[UserSummary] = None


class ConversationDetail(ConversationResponse):
    messages: List[ChatMessageResponse] = Field(default_factory=list)
    otherUser: Optional[UserSummary] = None
