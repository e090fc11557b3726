"""
Audit trail for critical entities.

Every write happens inside a savepoint of the caller's session: a failing
audit insert is rolled back on its own and logged, so it never takes the
business transaction down with it.
"""

from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.db.postgres.models import AuditAction, AuditLog
from app.db.postgres.repositories import AuditLogRepository

logger = get_logger(__name__)


class AuditService:
    """Records and reads audit log entries."""

    async def log(
        self,
        db: AsyncSession,
        *,
        user_id: UUID | None,
        entity_type: str,
        entity_id: UUID | str,
        action: AuditAction | str,
        changes: dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """
        Write one audit entry. Never raises.

        Args:
            db: The request's session
            user_id: Acting user, None for system actions
            entity_type: e.g. "Vehicle", "ServiceRequest"
            entity_id: Primary key of the changed entity
            action: CREATE, UPDATE, DELETE or SOFT_DELETE
            changes: Field level diff or snapshot
            metadata: Free-form context (ip, user agent, ...)
        """
        entry = AuditLog(
            user_id=user_id,
            entity_type=entity_type,
            entity_id=str(entity_id),
            action=str(action),
            changes=_jsonable(changes or {}),
            audit_metadata=_jsonable(metadata or {}),
        )
        try:
            async with db.begin_nested():
                db.add(entry)
        except Exception as e:
            logger.error(
                "Failed to write audit log",
                extra={
                    "entity_type": entity_type,
                    "entity_id": str(entity_id),
                    "action": str(action),
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                },
            )

    async def get_entity_history(self, db: AsyncSession, entity_type: str, entity_id: str) -> list[AuditLog]:
        return await AuditLogRepository(db).history(entity_type, entity_id)

    async def get_user_trail(self, db: AsyncSession, user_id: UUID, limit: int = 50) -> list[AuditLog]:
        return await AuditLogRepository(db).for_user(user_id, limit)


def _jsonable(value: Any) -> Any:
    """Coerce UUIDs, dates and decimals so the JSON column accepts them."""
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_jsonable(v) for v in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def diff_changes(before: dict[str, Any], after: dict[str, Any]) -> dict[str, Any]:
    """Field level `{field: {"old": .., "new": ..}}` for the keys that changed."""
    return {
        key: {"old": before.get(key), "new": value}
        for key, value in after.items()
        if before.get(key) != value
    }


# Singleton instance
_audit_service: AuditService | None = None


def get_audit_service() -> AuditService:
    """Get or create audit service instance."""
    global _audit_service
    if _audit_service is None:
        _audit_service = AuditService()
    return _audit_service
