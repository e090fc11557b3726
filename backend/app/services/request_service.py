"""
Service request lifecycle: posting, browsing, editing and cancelling.
"""

from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.schemas.request import ServiceRequestCreate, ServiceRequestUpdate
from app.core.exceptions import BadRequestException, ForbiddenException, NotFoundException
from app.core.logging import get_logger
from app.db.postgres.models import AuditAction, Quote, RequestStatus, ServiceRequest, User
from app.db.postgres.repositories import (
    OPEN_REQUEST_STATUSES,
    QuoteRepository,
    ServiceRequestRepository,
    VehicleRepository,
)
from app.services.activity_service import REQUEST_CREATED, get_activity_service
from app.services.audit_service import diff_changes, get_audit_service

logger = get_logger(__name__)

PUBLIC_RECENT_LIMIT = 4


class RequestService:
    """Service requests posted by vehicle owners."""

    async def get_request(self, db: AsyncSession, request_id: UUID) -> ServiceRequest:
        request = await ServiceRequestRepository(db).get_with_vehicle(request_id)
        if request is None:
            raise NotFoundException(
                message="Service request not found",
                resource_type="ServiceRequest",
                resource_id=str(request_id),
            )
        return request

    async def get_owned_request(self, db: AsyncSession, request_id: UUID, user: User) -> ServiceRequest:
        request = await self.get_request(db, request_id)
        if request.owner_id != user.id:
            raise ForbiddenException(message="You do not have access to this request")
        return request

    async def recent_public(self, db: AsyncSession) -> list[dict[str, Any]]:
        """Newest open or quoted requests for the landing page, without owner details."""
        rows = await ServiceRequestRepository(db).recent_public(PUBLIC_RECENT_LIMIT)
        return [
            {
                "id": request.id,
                "title": request.title,
                "service_type": request.service_type,
                "urgency": request.urgency,
                "status": request.status,
                "created_at": request.created_at,
                "vehicle": request.vehicle,
                "quoteCount": quote_count,
            }
            for request, quote_count in rows
        ]

    async def list_requests(
        self, db: AsyncSession, user: User, skip: int, limit: int
    ) -> tuple[list[ServiceRequest], int]:
        """Providers browse every open request; everyone else sees their own."""
        repository = ServiceRequestRepository(db)
        if user.is_provider:
            return await repository.list_open(skip, limit)
        return await repository.list_for_owner(user.id, skip, limit)

    async def create_request(self, db: AsyncSession, user: User, data: ServiceRequestCreate) -> ServiceRequest:
        """
        Post a request for one of the caller's vehicles.

        Raises:
            NotFoundException: Vehicle does not exist
            ForbiddenException: Vehicle belongs to another user
        """
        vehicle = await VehicleRepository(db).get(data.vehicle_id)
        if vehicle is None:
            raise NotFoundException(
                message=f"Vehicle with ID {data.vehicle_id} not found",
                resource_type="Vehicle",
                resource_id=str(data.vehicle_id),
            )
        if vehicle.owner_id != user.id:
            raise ForbiddenException(
                message="You can only create service requests for vehicles you own",
                details={"vehicleId": str(data.vehicle_id)},
            )

        repository = ServiceRequestRepository(db)
        request = await repository.create(
            {
                "owner_id": user.id,
                **data.model_dump(),
                "status": RequestStatus.OPEN.value,
            }
        )

        await get_activity_service().create(
            db,
            user.id,
            REQUEST_CREATED,
            f"Created service request: {request.title}",
            {"requestId": str(request.id), "vehicleId": str(vehicle.id)},
        )
        await get_audit_service().log(
            db,
            user_id=user.id,
            entity_type="ServiceRequest",
            entity_id=request.id,
            action=AuditAction.CREATE,
            changes={"title": request.title, "vehicle_id": vehicle.id, "urgency": request.urgency},
        )
        logger.info(f"Service request {request.id} created by {user.id}")
        return await repository.get_with_vehicle(request.id)

    async def get_request_detail(
        self, db: AsyncSession, request_id: UUID, user: User
    ) -> tuple[ServiceRequest, list[Quote]]:
        """The owner and any provider may open a request."""
        request = await self.get_request(db, request_id)
        if request.owner_id != user.id and not user.is_provider:
            raise ForbiddenException(message="You do not have access to this request")
        quotes = await QuoteRepository(db).list_for_request(request.id)
        return request, quotes

    async def update_request(
        self, db: AsyncSession, request_id: UUID, user: User, data: ServiceRequestUpdate
    ) -> ServiceRequest:
        request = await self.get_owned_request(db, request_id, user)
        updates = data.model_dump(exclude_unset=True)
        before = {key: getattr(request, key) for key in updates}

        for key, value in updates.items():
            setattr(request, key, value)
        await db.flush()

        await get_audit_service().log(
            db,
            user_id=user.id,
            entity_type="ServiceRequest",
            entity_id=request.id,
            action=AuditAction.UPDATE,
            changes=diff_changes(before, updates),
        )
        return await ServiceRequestRepository(db).get_with_vehicle(request.id)

    async def cancel_request(self, db: AsyncSession, request_id: UUID, user: User) -> ServiceRequest:
        """
        Cancel an open or quoted request; its pending quotes are rejected.

        Raises:
            BadRequestException: Work already started, finished or cancelled
        """
        request = await self.get_owned_request(db, request_id, user)
        if request.status not in OPEN_REQUEST_STATUSES:
            raise BadRequestException(
                message=f"Cannot cancel a request with status {request.status}",
                details={"status": request.status},
            )

        previous_status = request.status
        request.status = RequestStatus.CANCELLED.value
        await db.flush()
        rejected = await QuoteRepository(db).reject_pending(request.id)

        await get_audit_service().log(
            db,
            user_id=user.id,
            entity_type="ServiceRequest",
            entity_id=request.id,
            action=AuditAction.SOFT_DELETE,
            changes={"status": {"old": previous_status, "new": request.status}},
            metadata={"rejectedQuotes": rejected},
        )
        return request


# Singleton instance
_request_service: RequestService | None = None


def get_request_service() -> RequestService:
    """Get or create request service instance."""
    global _request_service
    if _request_service is None:
        _request_service = RequestService()
    return _request_service
