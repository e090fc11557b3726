"""
Public platform statistics, settings and the service catalogue.
"""

from collections import defaultdict
from decimal import ROUND_HALF_UP, Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import NotFoundException
from app.db.postgres.models import QuoteStatus, Service
from app.db.postgres.repositories import (
    JobRepository,
    QuoteRepository,
    ServiceCatalogRepository,
    ServiceRequestRepository,
    UserRepository,
)

_WEEKDAY = {"open": "09:00", "close": "18:00", "timezone": "PST"}

BUSINESS_HOURS: dict[str, dict[str, Any]] = {
    "monday": _WEEKDAY,
    "tuesday": _WEEKDAY,
    "wednesday": _WEEKDAY,
    "thursday": _WEEKDAY,
    "friday": _WEEKDAY,
    "saturday": {"open": "10:00", "close": "16:00", "timezone": "PST"},
    "sunday": {"open": None, "close": None, "closed": True},
}

SOCIAL_MEDIA = {
    "twitter": "https://twitter.com/servicelane",
    "facebook": "https://facebook.com/servicelane",
    "linkedin": "https://linkedin.com/company/servicelane",
}


def average_savings(quotes: list[tuple[UUID, float, str]]) -> int:
    """
    Mean of (highest quote - accepted quote) over requests with competing quotes.

    Only requests with more than one quote and a positive saving count.
    The mean is rounded half up to whole currency units.
    """
    by_request: dict[UUID, list[tuple[float, str]]] = defaultdict(list)
    for request_id, amount, status in quotes:
        by_request[request_id].append((amount, status))

    savings = []
    for entries in by_request.values():
        if len(entries) < 2:
            continue
        accepted = next((amount for amount, status in entries if status == QuoteStatus.ACCEPTED), None)
        if accepted is None:
            continue
        saving = max(amount for amount, _ in entries) - accepted
        if saving > 0:
            savings.append(saving)

    if not savings:
        return 0
    mean = Decimal(str(sum(savings) / len(savings)))
    return int(mean.quantize(Decimal(1), rounding=ROUND_HALF_UP))


class PlatformService:
    async def stats(self, db: AsyncSession) -> dict[str, int]:
        users = UserRepository(db)
        request_ids = await ServiceRequestRepository(db).with_accepted_quote()
        quotes = await QuoteRepository(db).amounts_by_request(request_ids)
        return {
            "customers": await users.count_customers(),
            "providers": await users.count_providers(),
            "jobsCompleted": await JobRepository(db).count_completed(),
            "averageSavings": average_savings(quotes),
        }

    def platform_settings(self) -> dict[str, Any]:
        return {
            "businessHours": BUSINESS_HOURS,
            "supportEmail": settings.SUPPORT_EMAIL,
            "socialMedia": SOCIAL_MEDIA,
            "features": {"liveChatEnabled": False, "phoneSupport": False},
        }

    # -------------------------------------------------------------------------
    # Service catalogue
    # -------------------------------------------------------------------------

    async def list_services(self, db: AsyncSession, popular_only: bool = False) -> list[Service]:
        return await ServiceCatalogRepository(db).list_active(popular_only=popular_only)

    async def get_service(self, db: AsyncSession, service_id: UUID) -> Service:
        service = await ServiceCatalogRepository(db).get(service_id)
        if service is None:
            raise NotFoundException(
                message=f"Service with ID {service_id} not found",
                resource_type="Service",
                resource_id=str(service_id),
            )
        return service


# Singleton instance
_platform_service: PlatformService | None = None


def get_platform_service() -> PlatformService:
    """Get or create platform service instance."""
    global _platform_service
    if _platform_service is None:
        _platform_service = PlatformService()
    return _platform_service
