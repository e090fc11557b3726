"""
Public platform statistics and settings for the landing page.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.schemas.platform import PlatformSettings, PlatformStats
from app.db.postgres.session import get_read_db
from app.services.platform_service import PlatformService, get_platform_service

router = APIRouter()


@router.get("/stats", response_model=PlatformStats, summary="Marketplace statistics")
async def platform_stats(
    db: AsyncSession = Depends(get_read_db),
    platform_service: PlatformService = Depends(get_platform_service),
):
    """
    Customer and provider counts, completed jobs and the average saving of
    an accepted quote against the highest competing quote.
    """
    return await platform_service.stats(db)


@router.get("/settings", response_model=PlatformSettings, summary="Platform settings")
async def platform_settings(
    platform_service: PlatformService = Depends(get_platform_service),
):
    return platform_service.platform_settings()
