"""
Dashboard activity timeline.
"""

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.endpoints.auth import get_current_user
from app.api.v1.schemas.notification import ActivityResponse
from app.db.postgres.models import User
from app.db.postgres.session import get_read_db
from app.services.activity_service import ActivityService, get_activity_service

router = APIRouter()


@router.get("", response_model=List[ActivityResponse], summary="Recent activity")
async def list_activities(
    limit: int = Query(10, ge=1, le=100, description="Maximum entries to return"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_read_db),
    activity_service: ActivityService = Depends(get_activity_service),
):
    return await activity_service.list_for_user(db, current_user.id, limit)
