"""
In-app notification endpoints.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.endpoints.auth import get_current_user
from app.api.v1.schemas.notification import (
    MarkAllReadResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from app.db.postgres.models import User
from app.db.postgres.session import get_db, get_read_db
from app.services.notification_service import NotificationService, get_notification_service

router = APIRouter()


@router.get("", response_model=List[NotificationResponse], summary="List notifications")
async def list_notifications(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_read_db),
    notification_service: NotificationService = Depends(get_notification_service),
):
    return await notification_service.list_for_user(db, current_user.id)


@router.get("/unread-count", response_model=UnreadCountResponse, summary="Unread notification count")
async def unread_count(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_read_db),
    notification_service: NotificationService = Depends(get_notification_service),
) -> UnreadCountResponse:
    return UnreadCountResponse(unreadCount=await notification_service.unread_count(db, current_user.id))


@router.put("/read-all", response_model=MarkAllReadResponse, summary="Mark all notifications read")
async def mark_all_read(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notification_service: NotificationService = Depends(get_notification_service),
) -> MarkAllReadResponse:
    return MarkAllReadResponse(updated=await notification_service.mark_all_read(db, current_user.id))


@router.put("/{notification_id}/read", response_model=NotificationResponse, summary="Mark a notification read")
async def mark_read(
    notification_id: UUID = Path(..., description="Notification ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    notification_service: NotificationService = Depends(get_notification_service),
):
    """Only the caller's own notifications can be marked; others are reported as not found."""
    return await notification_service.mark_read(db, notification_id, current_user.id)
