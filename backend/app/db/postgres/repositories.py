"""
Repository pattern implementations for database operations.

This module provides repository classes for database operations following
the repository pattern for clean separation of data access logic. Services
own authorization and state rules; repositories only build queries.
"""

from typing import Any, Generic, Sequence, TypeVar
from uuid import UUID

from sqlalchemy import String, and_, cast, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.db.postgres.models import (
    Activity,
    AuditLog,
    Base,
    Conversation,
    Job,
    JobStatus,
    MaintenanceRecord,
    Message,
    Notification,
    ProviderProfile,
    Quote,
    QuoteStatus,
    RequestStatus,
    Review,
    Service,
    ServiceRequest,
    User,
    UserRole,
    Vehicle,
)

# Generic type for models
ModelType = TypeVar("ModelType", bound=Base)

OPEN_REQUEST_STATUSES = (RequestStatus.OPEN.value, RequestStatus.QUOTED.value)


def json_list_contains(column: Any, value: str):
    """Portable "JSON array contains string" filter (PostgreSQL and SQLite)."""
    return cast(column, String).like(f'%"{value}"%')


class BaseRepository(Generic[ModelType]):
    """
    Base repository with common CRUD operations.

    Provides generic create, read, update, delete operations for SQLAlchemy models.

    Attributes:
        model: The SQLAlchemy model class.
        db: The async database session.
    """

    def __init__(self, model: type[ModelType], db: AsyncSession) -> None:
        self.model = model
        self.db = db

    async def get(self, id: UUID) -> ModelType | None:
        """Get a single record by ID."""
        result = await self.db.execute(select(self.model).where(self.model.id == id))  # type: ignore[attr-defined]
        return result.scalar_one_or_none()

    async def get_all(self, skip: int = 0, limit: int = 100) -> list[ModelType]:
        """Get all records with pagination."""
        result = await self.db.execute(select(self.model).offset(skip).limit(limit))
        return list(result.scalars().all())

    async def count(self, *criteria: Any) -> int:
        """Count records matching the given filter expressions."""
        stmt = select(func.count()).select_from(self.model)
        if criteria:
            stmt = stmt.where(*criteria)
        result = await self.db.execute(stmt)
        return int(result.scalar_one())

    async def create(self, obj_in: dict) -> ModelType:
        """Create a new record."""
        db_obj = self.model(**obj_in)
        self.db.add(db_obj)
        await self.db.flush()
        await self.db.refresh(db_obj)
        return db_obj

    async def update(self, id: UUID, obj_in: dict) -> ModelType | None:
        """Update an existing record."""
        db_obj = await self.get(id)
        if db_obj:
            for key, value in obj_in.items():
                setattr(db_obj, key, value)
            await self.db.flush()
            await self.db.refresh(db_obj)
        return db_obj

    async def delete(self, id: UUID) -> bool:
        """Delete a record."""
        db_obj = await self.get(id)
        if db_obj:
            await self.db.delete(db_obj)
            await self.db.flush()
            return True
        return False

    async def _paginate(self, stmt: Any, count_criteria: Sequence[Any], skip: int, limit: int) -> tuple[list[ModelType], int]:
        result = await self.db.execute(stmt.offset(skip).limit(limit))
        items = list(result.scalars().all())
        total = await self.count(*count_criteria)
        return items, total


class UserRepository(BaseRepository[User]):
    """Repository for User operations with email lookups and provider queries."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(User, db)

    async def get_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def get_with_profile(self, id: UUID) -> User | None:
        result = await self.db.execute(
            select(User)
            .execution_options(populate_existing=True)
            .options(selectinload(User.provider_profile))
            .where(User.id == id)
        )
        return result.scalar_one_or_none()

    async def count_providers(self) -> int:
        return await self.count(json_list_contains(User.roles, UserRole.PROVIDER.value))

    async def count_customers(self) -> int:
        """Users that own a vehicle or have posted a request."""
        has_vehicle = select(Vehicle.id).where(Vehicle.owner_id == User.id).exists()
        has_request = select(ServiceRequest.id).where(ServiceRequest.owner_id == User.id).exists()
        return await self.count(or_(has_vehicle, has_request))

    async def list_active_providers(self, service_type: str | None = None, limit: int = 20) -> list[User]:
        stmt = (
            select(User)
            .join(ProviderProfile, ProviderProfile.user_id == User.id)
            .execution_options(populate_existing=True)
            .options(selectinload(User.provider_profile))
            .where(ProviderProfile.is_active.is_(True))
            .order_by(User.rating.desc().nulls_last(), User.created_at.desc())
            .limit(limit)
        )
        if service_type:
            stmt = stmt.where(json_list_contains(ProviderProfile.service_types, service_type))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())


class ProviderProfileRepository(BaseRepository[ProviderProfile]):
    def __init__(self, db: AsyncSession) -> None:
        super().__init__(ProviderProfile, db)

    async def get_by_user(self, user_id: UUID) -> ProviderProfile | None:
        result = await self.db.execute(select(ProviderProfile).where(ProviderProfile.user_id == user_id))
        return result.scalar_one_or_none()


class VehicleRepository(BaseRepository[Vehicle]):
    def __init__(self, db: AsyncSession) -> None:
        super().__init__(Vehicle, db)

    async def list_for_owner(self, owner_id: UUID, skip: int = 0, limit: int = 20) -> tuple[list[Vehicle], int]:
        stmt = select(Vehicle).where(Vehicle.owner_id == owner_id).order_by(Vehicle.created_at.desc())
        return await self._paginate(stmt, [Vehicle.owner_id == owner_id], skip, limit)

    async def get_with_owner(self, id: UUID) -> Vehicle | None:
        result = await self.db.execute(
            select(Vehicle)
            .execution_options(populate_existing=True)
            .options(selectinload(Vehicle.owner))
            .where(Vehicle.id == id)
        )
        return result.scalar_one_or_none()


class MaintenanceRecordRepository(BaseRepository[MaintenanceRecord]):
    def __init__(self, db: AsyncSession) -> None:
        super().__init__(MaintenanceRecord, db)

    async def list_for_vehicle(self, vehicle_id: UUID) -> list[MaintenanceRecord]:
        result = await self.db.execute(
            select(MaintenanceRecord)
            .where(MaintenanceRecord.vehicle_id == vehicle_id)
            .order_by(MaintenanceRecord.service_date.desc(), MaintenanceRecord.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_with_vehicle(self, id: UUID) -> MaintenanceRecord | None:
        result = await self.db.execute(
            select(MaintenanceRecord)
            .execution_options(populate_existing=True)
            .options(selectinload(MaintenanceRecord.vehicle))
            .where(MaintenanceRecord.id == id)
        )
        return result.scalar_one_or_none()


class ServiceRequestRepository(BaseRepository[ServiceRequest]):
    def __init__(self, db: AsyncSession) -> None:
        super().__init__(ServiceRequest, db)

    async def get_with_vehicle(self, id: UUID) -> ServiceRequest | None:
        result = await self.db.execute(
            select(ServiceRequest)
            .execution_options(populate_existing=True)
            .options(selectinload(ServiceRequest.vehicle))
            .where(ServiceRequest.id == id)
        )
        return result.scalar_one_or_none()

    async def list_for_owner(self, owner_id: UUID, skip: int = 0, limit: int = 20) -> tuple[list[ServiceRequest], int]:
        stmt = (
            select(ServiceRequest)
            .execution_options(populate_existing=True)
            .options(selectinload(ServiceRequest.vehicle))
            .where(ServiceRequest.owner_id == owner_id)
            .order_by(ServiceRequest.created_at.desc())
        )
        return await self._paginate(stmt, [ServiceRequest.owner_id == owner_id], skip, limit)

    async def list_open(self, skip: int = 0, limit: int = 20) -> tuple[list[ServiceRequest], int]:
        criteria = ServiceRequest.status.in_(OPEN_REQUEST_STATUSES)
        stmt = (
            select(ServiceRequest)
            .execution_options(populate_existing=True)
            .options(selectinload(ServiceRequest.vehicle))
            .where(criteria)
            .order_by(ServiceRequest.created_at.desc())
        )
        return await self._paginate(stmt, [criteria], skip, limit)

    async def recent_public(self, limit: int = 4) -> list[tuple[ServiceRequest, int]]:
        """Newest open/quoted requests, each with its quote count."""
        quote_count = (
            select(func.count(Quote.id)).where(Quote.request_id == ServiceRequest.id).scalar_subquery()
        )
        result = await self.db.execute(
            select(ServiceRequest, quote_count)
            .execution_options(populate_existing=True)
            .options(selectinload(ServiceRequest.vehicle))
            .where(ServiceRequest.status.in_(OPEN_REQUEST_STATUSES))
            .order_by(ServiceRequest.created_at.desc())
            .limit(limit)
        )
        return [(row[0], int(row[1])) for row in result.all()]

    async def with_accepted_quote(self) -> list[UUID]:
        result = await self.db.execute(
            select(Quote.request_id).where(Quote.status == QuoteStatus.ACCEPTED.value).distinct()
        )
        return list(result.scalars().all())


class QuoteRepository(BaseRepository[Quote]):
    def __init__(self, db: AsyncSession) -> None:
        super().__init__(Quote, db)

    async def get_with_request(self, id: UUID) -> Quote | None:
        result = await self.db.execute(
            select(Quote)
            .execution_options(populate_existing=True)
            .options(selectinload(Quote.request))
            .where(Quote.id == id)
        )
        return result.scalar_one_or_none()

    async def list_for_request(self, request_id: UUID) -> list[Quote]:
        result = await self.db.execute(
            select(Quote)
            .execution_options(populate_existing=True)
            .options(selectinload(Quote.provider))
            .where(Quote.request_id == request_id)
            .order_by(Quote.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_for_provider(self, provider_id: UUID) -> list[Quote]:
        result = await self.db.execute(
            select(Quote)
            .execution_options(populate_existing=True)
            .options(selectinload(Quote.request))
            .where(Quote.provider_id == provider_id)
            .order_by(Quote.created_at.desc())
        )
        return list(result.scalars().all())

    async def reject_pending(self, request_id: UUID, except_id: UUID | None = None) -> int:
        criteria = [Quote.request_id == request_id, Quote.status == QuoteStatus.PENDING.value]
        if except_id is not None:
            criteria.append(Quote.id != except_id)
        result = await self.db.execute(
            update(Quote)
            .where(and_(*criteria))
            .values(status=QuoteStatus.REJECTED.value)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount or 0

    async def amounts_by_request(self, request_ids: Sequence[UUID]) -> list[tuple[UUID, float, str]]:
        if not request_ids:
            return []
        result = await self.db.execute(
            select(Quote.request_id, Quote.amount, Quote.status).where(Quote.request_id.in_(request_ids))
        )
        return [(row[0], float(row[1]), row[2]) for row in result.all()]


class JobRepository(BaseRepository[Job]):
    def __init__(self, db: AsyncSession) -> None:
        super().__init__(Job, db)

    async def get_by_request(self, request_id: UUID) -> Job | None:
        result = await self.db.execute(select(Job).where(Job.request_id == request_id))
        return result.scalar_one_or_none()

    async def get_detail(self, id: UUID) -> Job | None:
        result = await self.db.execute(
            select(Job)
            .execution_options(populate_existing=True)
            .options(
                selectinload(Job.quote),
                selectinload(Job.request).selectinload(ServiceRequest.vehicle),
                selectinload(Job.provider),
                selectinload(Job.owner),
            )
            .where(Job.id == id)
        )
        return result.scalar_one_or_none()

    async def list_for_user(
        self, user_id: UUID, as_provider: bool, skip: int = 0, limit: int = 20
    ) -> tuple[list[Job], int]:
        criteria = Job.provider_id == user_id if as_provider else Job.owner_id == user_id
        stmt = (
            select(Job)
            .execution_options(populate_existing=True)
            .options(
                selectinload(Job.quote),
                selectinload(Job.request).selectinload(ServiceRequest.vehicle),
            )
            .where(criteria)
            .order_by(Job.created_at.desc())
        )
        return await self._paginate(stmt, [criteria], skip, limit)

    async def count_completed(self, provider_id: UUID | None = None) -> int:
        criteria = [Job.status == JobStatus.COMPLETED.value]
        if provider_id is not None:
            criteria.append(Job.provider_id == provider_id)
        return await self.count(*criteria)


class ReviewRepository(BaseRepository[Review]):
    def __init__(self, db: AsyncSession) -> None:
        super().__init__(Review, db)

    async def get_by_job(self, job_id: UUID) -> Review | None:
        result = await self.db.execute(
            select(Review)
            .execution_options(populate_existing=True)
            .options(selectinload(Review.owner))
            .where(Review.job_id == job_id)
        )
        return result.scalar_one_or_none()

    async def get_with_owner(self, id: UUID) -> Review | None:
        result = await self.db.execute(
            select(Review)
            .execution_options(populate_existing=True)
            .options(selectinload(Review.owner))
            .where(Review.id == id)
        )
        return result.scalar_one_or_none()

    async def list_for_provider(self, provider_id: UUID, skip: int = 0, limit: int = 10) -> tuple[list[Review], int]:
        stmt = (
            select(Review)
            .execution_options(populate_existing=True)
            .options(selectinload(Review.owner))
            .where(Review.provider_id == provider_id)
            .order_by(Review.created_at.desc())
        )
        return await self._paginate(stmt, [Review.provider_id == provider_id], skip, limit)

    async def rating_stats(self, provider_id: UUID) -> tuple[float | None, int]:
        result = await self.db.execute(
            select(func.avg(Review.rating), func.count(Review.id)).where(Review.provider_id == provider_id)
        )
        avg, count = result.one()
        return (float(avg) if avg is not None else None), int(count)


class ConversationRepository(BaseRepository[Conversation]):
    def __init__(self, db: AsyncSession) -> None:
        super().__init__(Conversation, db)

    async def get_by_job(self, job_id: UUID) -> Conversation | None:
        result = await self.db.execute(select(Conversation).where(Conversation.job_id == job_id))
        return result.scalar_one_or_none()

    async def list_for_user(self, user_id: UUID) -> list[Conversation]:
        result = await self.db.execute(
            select(Conversation)
            .execution_options(populate_existing=True)
            .options(selectinload(Conversation.owner), selectinload(Conversation.provider))
            .where(or_(Conversation.owner_id == user_id, Conversation.provider_id == user_id))
            .order_by(Conversation.last_message_at.desc())
        )
        return list(result.scalars().all())

    async def messages(self, conversation_id: UUID) -> list[Message]:
        result = await self.db.execute(
            select(Message).where(Message.conversation_id == conversation_id).order_by(Message.created_at.asc())
        )
        return list(result.scalars().all())

    async def last_message(self, conversation_id: UUID) -> Message | None:
        result = await self.db.execute(
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def unread_count(self, conversation_id: UUID, user_id: UUID) -> int:
        result = await self.db.execute(
            select(func.count(Message.id)).where(
                Message.conversation_id == conversation_id,
                Message.sender_id != user_id,
                Message.is_read.is_(False),
            )
        )
        return int(result.scalar_one())

    async def mark_read(self, conversation_id: UUID, reader_id: UUID) -> int:
        """Mark every message not sent by the reader as read."""
        result = await self.db.execute(
            update(Message)
            .where(
                Message.conversation_id == conversation_id,
                Message.sender_id != reader_id,
                Message.is_read.is_(False),
            )
            .values(is_read=True)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount or 0

    async def add_message(self, conversation: Conversation, sender_id: UUID, content: str) -> Message:
        message = Message(conversation_id=conversation.id, sender_id=sender_id, content=content)
        self.db.add(message)
        await self.db.flush()
        conversation.last_message_at = message.created_at
        await self.db.flush()
        return message


class NotificationRepository(BaseRepository[Notification]):
    def __init__(self, db: AsyncSession) -> None:
        super().__init__(Notification, db)

    async def list_for_user(self, user_id: UUID, limit: int = 50) -> list[Notification]:
        result = await self.db.execute(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def unread_count(self, user_id: UUID) -> int:
        return await self.count(Notification.user_id == user_id, Notification.is_read.is_(False))

    async def get_for_user(self, id: UUID, user_id: UUID) -> Notification | None:
        result = await self.db.execute(
            select(Notification).where(Notification.id == id, Notification.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def mark_all_read(self, user_id: UUID) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount or 0


class ActivityRepository(BaseRepository[Activity]):
    def __init__(self, db: AsyncSession) -> None:
        super().__init__(Activity, db)

    async def list_for_user(self, user_id: UUID, limit: int = 10) -> list[Activity]:
        result = await self.db.execute(
            select(Activity)
            .where(Activity.user_id == user_id)
            .order_by(Activity.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())


class AuditLogRepository(BaseRepository[AuditLog]):
    def __init__(self, db: AsyncSession) -> None:
        super().__init__(AuditLog, db)

    async def history(self, entity_type: str, entity_id: str) -> list[AuditLog]:
        result = await self.db.execute(
            select(AuditLog)
            .where(AuditLog.entity_type == entity_type, AuditLog.entity_id == entity_id)
            .order_by(AuditLog.created_at.desc())
        )
        return list(result.scalars().all())

    async def for_user(self, user_id: UUID, limit: int = 50) -> list[AuditLog]:
        result = await self.db.execute(
            select(AuditLog)
            .where(AuditLog.user_id == user_id)
            .order_by(AuditLog.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())


class ServiceCatalogRepository(BaseRepository[Service]):
    def __init__(self, db: AsyncSession) -> None:
        super().__init__(Service, db)

    async def list_active(self, popular_only: bool = False) -> list[Service]:
        stmt = select(Service).where(Service.is_active.is_(True)).order_by(Service.display_order.asc())
        if popular_only:
            stmt = stmt.where(Service.is_popular.is_(True))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
