"""
Quotes: providers bid on requests, owners accept or reject.

Accepting a quote is the one multi-row state change in the marketplace:
the quote, its competing quotes, the request and the new job all change in
the request's single transaction (the session commits once, in get_db).
Notification pushes and emails are queued and go out after that commit.
"""

from functools import partial
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.schemas.quote import QuoteCreate
from app.core.exceptions import BadRequestException, ForbiddenException, NotFoundException
from app.core.logging import get_logger
from app.db.postgres.models import (
    AuditAction,
    Job,
    JobStatus,
    Quote,
    QuoteStatus,
    RequestStatus,
    User,
)
from app.db.postgres.repositories import (
    JobRepository,
    QuoteRepository,
    ServiceRequestRepository,
    UserRepository,
)
from app.db.postgres.session import after_commit
from app.services.audit_service import get_audit_service
from app.services.email_service import get_email_service
from app.services.notification_service import (
    QUOTE_ACCEPTED,
    QUOTE_RECEIVED,
    get_notification_service,
)

logger = get_logger(__name__)

CLOSED_REQUEST_STATUSES = (
    RequestStatus.IN_PROGRESS.value,
    RequestStatus.COMPLETED.value,
    RequestStatus.CANCELLED.value,
)


class QuoteService:
    async def list_for_request(self, db: AsyncSession, request_id: UUID, user: User) -> list[Quote]:
        request = await ServiceRequestRepository(db).get(request_id)
        if request is None:
            raise NotFoundException(
                message=f"Service request with ID {request_id} not found",
                resource_type="ServiceRequest",
                resource_id=str(request_id),
            )
        if request.owner_id != user.id and not user.is_provider:
            raise ForbiddenException(message="You do not have access to these quotes")
        return await QuoteRepository(db).list_for_request(request_id)

    async def list_mine(self, db: AsyncSession, provider: User) -> list[Quote]:
        return await QuoteRepository(db).list_for_provider(provider.id)

    async def create_quote(self, db: AsyncSession, provider: User, data: QuoteCreate) -> Quote:
        """
        Submit a quote. Role and provider status are checked by the route guards.

        Raises:
            NotFoundException: Request does not exist
            BadRequestException: Request no longer accepts quotes
        """
        request = await ServiceRequestRepository(db).get(data.request_id)
        if request is None:
            raise NotFoundException(
                message=f"Service request with ID {data.request_id} not found",
                resource_type="ServiceRequest",
                resource_id=str(data.request_id),
            )
        if request.status in CLOSED_REQUEST_STATUSES:
            raise BadRequestException(
                message=f"Service request {request.id} is no longer accepting quotes (status: {request.status})",
                details={"status": request.status},
            )

        quote = await QuoteRepository(db).create(
            {
                "request_id": request.id,
                "provider_id": provider.id,
                "amount": data.amount,
                "estimated_duration": data.estimated_duration,
                "description": data.description,
                "warranty": data.warranty,
                "status": QuoteStatus.PENDING.value,
            }
        )

        if request.status == RequestStatus.OPEN:
            request.status = RequestStatus.QUOTED.value
            await db.flush()

        await get_audit_service().log(
            db,
            user_id=provider.id,
            entity_type="Quote",
            entity_id=quote.id,
            action=AuditAction.CREATE,
            changes={"request_id": request.id, "amount": quote.amount},
        )
        await get_notification_service().create(
            db,
            request.owner_id,
            QUOTE_RECEIVED,
            "New Quote Received",
            f"You have received a new quote for your request: {request.title}",
            f"/requests/{request.id}",
        )

        owner = await UserRepository(db).get(request.owner_id)
        if owner is not None:
            after_commit(
                db,
                partial(
                    get_email_service().send_quote_received,
                    owner.email,
                    owner.name,
                    request.title,
                    quote.amount,
                    str(request.id),
                ),
            )

        logger.info(f"Quote {quote.id} submitted by provider {provider.id} for request {request.id}")
        return quote

    async def _get_quote_for_owner(self, db: AsyncSession, quote_id: UUID, user: User, action: str) -> Quote:
        quote = await QuoteRepository(db).get_with_request(quote_id)
        if quote is None:
            raise NotFoundException(
                message=f"Quote with ID {quote_id} not found",
                resource_type="Quote",
                resource_id=str(quote_id),
            )
        if quote.request is None or quote.request.owner_id != user.id:
            raise ForbiddenException(
                message=f"Only the owner of service request {quote.request_id} can {action} quotes"
            )
        if quote.status != QuoteStatus.PENDING:
            raise BadRequestException(
                message=f"Quote {quote_id} cannot be {action}ed (current status: {quote.status})",
                details={"status": quote.status},
            )
        return quote

    async def accept_quote(self, db: AsyncSession, quote_id: UUID, user: User) -> tuple[Quote, Job]:
        """
        Accept a pending quote and open a job for it.

        Raises:
            NotFoundException: No such quote
            ForbiddenException: Caller does not own the request
            BadRequestException: Quote not pending, or the request already has a job
        """
        quote = await self._get_quote_for_owner(db, quote_id, user, "accept")
        request = quote.request

        jobs = JobRepository(db)
        if await jobs.get_by_request(request.id) is not None:
            raise BadRequestException(
                message="This service request already has an accepted quote. "
                "Only one quote can be accepted per request."
            )

        quote.status = QuoteStatus.ACCEPTED.value
        request.status = RequestStatus.IN_PROGRESS.value
        await db.flush()
        await QuoteRepository(db).reject_pending(request.id, except_id=quote.id)

        job = await jobs.create(
            {
                "quote_id": quote.id,
                "request_id": request.id,
                "provider_id": quote.provider_id,
                "owner_id": request.owner_id,
                "status": JobStatus.PENDING.value,
            }
        )

        await get_audit_service().log(
            db,
            user_id=user.id,
            entity_type="Quote",
            entity_id=quote.id,
            action=AuditAction.UPDATE,
            changes={"status": {"old": QuoteStatus.PENDING.value, "new": quote.status}},
            metadata={"jobId": str(job.id), "requestId": str(request.id)},
        )
        await get_notification_service().create(
            db,
            quote.provider_id,
            QUOTE_ACCEPTED,
            "Quote Accepted",
            f"Your quote for {request.title} has been accepted!",
            f"/jobs/{job.id}",
        )

        provider = await UserRepository(db).get(quote.provider_id)
        if provider is not None:
            after_commit(
                db,
                partial(
                    get_email_service().send_quote_accepted,
                    provider.email,
                    provider.name,
                    request.title,
                    str(job.id),
                ),
            )

        logger.info(f"Quote {quote.id} accepted, job {job.id} created")
        return quote, job

    async def reject_quote(self, db: AsyncSession, quote_id: UUID, user: User) -> Quote:
        quote = await self._get_quote_for_owner(db, quote_id, user, "reject")
        quote.status = QuoteStatus.REJECTED.value
        await db.flush()

        await get_audit_service().log(
            db,
            user_id=user.id,
            entity_type="Quote",
            entity_id=quote.id,
            action=AuditAction.UPDATE,
            changes={"status": {"old": QuoteStatus.PENDING.value, "new": quote.status}},
        )
        return quote


# Singleton instance
_quote_service: QuoteService | None = None


def get_quote_service() -> QuoteService:
    """Get or create quote service instance."""
    global _quote_service
    if _quote_service is None:
        _quote_service = QuoteService()
    return _quote_service
