"""
Audit trail endpoints (admin only).
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.endpoints.auth import require_roles
from app.api.v1.schemas.platform import AuditLogResponse
from app.db.postgres.models import UserRole
from app.db.postgres.session import get_read_db
from app.services.audit_service import AuditService, get_audit_service

router = APIRouter(dependencies=[Depends(require_roles(UserRole.ADMIN))])


@router.get("/users/{user_id}", response_model=List[AuditLogResponse], summary="Audit trail of a user")
async def user_audit_trail(
    user_id: UUID = Path(..., description="User ID"),
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_read_db),
    audit_service: AuditService = Depends(get_audit_service),
):
    return await audit_service.get_user_trail(db, user_id, limit)


@router.get(
    "/{entity_type}/{entity_id}",
    response_model=List[AuditLogResponse],
    summary="Change history of an entity",
)
async def entity_history(
    entity_type: str = Path(..., description="Entity type, e.g. Vehicle or Quote"),
    entity_id: str = Path(..., description="Entity ID"),
    db: AsyncSession = Depends(get_read_db),
    audit_service: AuditService = Depends(get_audit_service),
):
    """All recorded changes of one entity, newest first."""
    return await audit_service.get_entity_history(db, entity_type, entity_id)
