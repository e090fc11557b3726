"""
In-app notifications: persisted first, then pushed live over the gateway
once the transaction has committed.
"""

from functools import partial
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundException
from app.core.logging import get_logger
from app.db.postgres.models import Notification
from app.db.postgres.repositories import NotificationRepository
from app.db.postgres.session import after_commit
from app.services.notification_gateway import get_connection_manager

logger = get_logger(__name__)

QUOTE_RECEIVED = "quote_received"
QUOTE_ACCEPTED = "quote_accepted"
JOB_COMPLETED = "job_completed"


class NotificationService:
    """Creates, lists and marks notifications."""

    async def create(
        self,
        db: AsyncSession,
        user_id: UUID,
        type: str,
        title: str,
        message: str,
        link: str | None = None,
    ) -> Notification:
        """
        Persist a notification and queue a push to the user's open sockets.

        The push runs after commit and is best effort; the stored row is the
        source of truth.
        """
        notification = await NotificationRepository(db).create(
            {
                "user_id": user_id,
                "type": type,
                "title": title,
                "message": message,
                "link": link,
            }
        )

        after_commit(
            db,
            partial(
                get_connection_manager().send_to_user,
                user_id,
                "notification",
                {
                    "id": notification.id,
                    "type": notification.type,
                    "title": notification.title,
                    "message": notification.message,
                    "link": notification.link,
                    "is_read": notification.is_read,
                    "created_at": notification.created_at,
                },
            ),
        )
        logger.debug(f"Notification {notification.id} ({type}) stored for user {user_id}")

        return notification

    async def list_for_user(self, db: AsyncSession, user_id: UUID) -> list[Notification]:
        return await NotificationRepository(db).list_for_user(user_id)

    async def unread_count(self, db: AsyncSession, user_id: UUID) -> int:
        return await NotificationRepository(db).unread_count(user_id)

    async def mark_read(self, db: AsyncSession, notification_id: UUID, user_id: UUID) -> Notification:
        repository = NotificationRepository(db)
        notification = await repository.get_for_user(notification_id, user_id)
        if notification is None:
            raise NotFoundException(
                message="Notification not found",
                resource_type="Notification",
                resource_id=str(notification_id),
            )
        if not notification.is_read:
            notification.is_read = True
            await db.flush()
        return notification

    async def mark_all_read(self, db: AsyncSession, user_id: UUID) -> int:
        return await NotificationRepository(db).mark_all_read(user_id)


# Singleton instance
_notification_service: NotificationService | None = None


def get_notification_service() -> NotificationService:
    """Get or create notification service instance."""
    global _notification_service
    if _notification_service is None:
        _notification_service = NotificationService()
    return _notification_service
