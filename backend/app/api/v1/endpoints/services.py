"""
Service catalogue endpoints (public).
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.schemas.platform import ServiceResponse
from app.db.postgres.session import get_read_db
from app.services.platform_service import PlatformService, get_platform_service

router = APIRouter()


@router.get("", response_model=List[ServiceResponse], summary="List services")
async def list_services(
    db: AsyncSession = Depends(get_read_db),
    platform_service: PlatformService = Depends(get_platform_service),
):
    """Active catalogue entries in display order."""
    return await platform_service.list_services(db)


@router.get("/popular", response_model=List[ServiceResponse], summary="Popular services")
async def popular_services(
    db: AsyncSession = Depends(get_read_db),
    platform_service: PlatformService = Depends(get_platform_service),
):
    return await platform_service.list_services(db, popular_only=True)


@router.get("/{service_id}", response_model=ServiceResponse, summary="Get a service")
async def get_service(
    service_id: UUID = Path(..., description="Service ID"),
    db: AsyncSession = Depends(get_read_db),
    platform_service: PlatformService = Depends(get_platform_service),
):
    return await platform_service.get_service(db, service_id)
