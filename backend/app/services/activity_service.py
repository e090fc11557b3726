"""
Dashboard activity timeline.
"""

from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.db.postgres.models import Activity
from app.db.postgres.repositories import ActivityRepository

logger = get_logger(__name__)

VEHICLE_ADDED = "vehicle_added"
REQUEST_CREATED = "request_created"
MAINTENANCE_LOGGED = "maintenance_logged"


class ActivityService:
    async def create(
        self,
        db: AsyncSession,
        user_id: UUID,
        type: str,
        description: str,
        metadata: dict[str, Any] | None = None,
    ) -> Activity:
        activity = await ActivityRepository(db).create(
            {
                "user_id": user_id,
                "type": type,
                "description": description,
                "activity_metadata": metadata,
            }
        )
        logger.debug(f"Activity {type} recorded for user {user_id}")
        return activity

    async def list_for_user(self, db: AsyncSession, user_id: UUID, limit: int = 10) -> list[Activity]:
        return await ActivityRepository(db).list_for_user(user_id, limit)


# Singleton instance
_activity_service: ActivityService | None = None


def get_activity_service() -> ActivityService:
    """Get or create activity service instance."""
    global _activity_service
    if _activity_service is None:
        _activity_service = ActivityService()
    return _activity_service
