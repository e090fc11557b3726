"""
SQLAlchemy models for PostgreSQL database.

Column types are the portable SQLAlchemy ones (Uuid, JSON) with a JSONB
variant on PostgreSQL, so the same metadata also builds on SQLite.
"""

from datetime import date, datetime, timezone
from enum import StrEnum
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

JSONType = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Enumerations (stored as plain strings)
# =============================================================================


class UserRole(StrEnum):
    OWNER = "owner"
    PROVIDER = "provider"
    ADMIN = "admin"


class ProviderStatus(StrEnum):
    NONE = "none"
    DRAFT = "draft"
    LIMITED = "limited"
    ACTIVE = "active"
    SUSPENDED = "suspended"


class Urgency(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class RequestStatus(StrEnum):
    OPEN = "open"
    QUOTED = "quoted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class QuoteStatus(StrEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class JobStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    PENDING_CONFIRMATION = "pending_confirmation"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AuditAction(StrEnum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    SOFT_DELETE = "SOFT_DELETE"


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow
    )


# =============================================================================
# Accounts
# =============================================================================


class User(TimestampMixin, Base):
    """Marketplace account; a user may hold several roles at once."""

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(30))
    avatar_url: Mapped[str | None] = mapped_column(String(500))
    bio: Mapped[str | None] = mapped_column(Text)

    # Personal address
    address: Mapped[str | None] = mapped_column(String(255))
    city: Mapped[str | None] = mapped_column(String(100))
    state: Mapped[str | None] = mapped_column(String(50))
    zip_code: Mapped[str | None] = mapped_column(String(20))

    roles: Mapped[list[str]] = mapped_column(JSONType, default=lambda: [UserRole.OWNER.value])
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # Provider onboarding / verification state
    provider_status: Mapped[str] = mapped_column(String(20), default=ProviderStatus.NONE.value)
    provider_status_reason: Mapped[str | None] = mapped_column(String(500))

    # Denormalized from reviews
    rating: Mapped[float | None] = mapped_column(Float)
    review_count: Mapped[int] = mapped_column(Integer, default=0)

    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    provider_profile = relationship("ProviderProfile", back_populates="user", uselist=False, lazy="noload")

    def has_role(self, *roles: str) -> bool:
        return any(role in (self.roles or []) for role in roles)

    @property
    def is_provider(self) -> bool:
        return self.has_role(UserRole.PROVIDER)


class ProviderProfile(TimestampMixin, Base):
    """Business details of a provider; one per user."""

    __tablename__ = "provider_profiles"
    __table_args__ = (
        CheckConstraint("service_radius >= 1", name="ck_provider_service_radius"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    business_name: Mapped[str | None] = mapped_column(String(200))
    service_types: Mapped[list[str]] = mapped_column(JSONType, default=list)
    years_in_business: Mapped[int | None] = mapped_column(Integer)
    shop_address: Mapped[str | None] = mapped_column(String(255))
    shop_city: Mapped[str | None] = mapped_column(String(100))
    shop_state: Mapped[str | None] = mapped_column(String(50))
    shop_zip_code: Mapped[str | None] = mapped_column(String(20))
    service_radius: Mapped[int] = mapped_column(Integer, default=25)
    hourly_rate: Mapped[float | None] = mapped_column(Numeric(10, 2, asdecimal=False))
    website: Mapped[str | None] = mapped_column(String(500))
    is_active: Mapped[bool] = mapped_column(Boolean, default=False, index=True)

    user = relationship("User", back_populates="provider_profile", lazy="noload")


# =============================================================================
# Vehicles and maintenance
# =============================================================================


class Vehicle(TimestampMixin, Base):
    """A vehicle registered by its owner."""

    __tablename__ = "vehicles"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    owner_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    make: Mapped[str] = mapped_column(String(50), nullable=False)
    model: Mapped[str] = mapped_column(String(100), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    vin: Mapped[str | None] = mapped_column(String(17))
    license_plate: Mapped[str | None] = mapped_column(String(20))
    mileage: Mapped[int | None] = mapped_column(Integer)

    owner = relationship("User", lazy="noload")


class MaintenanceRecord(TimestampMixin, Base):
    """A service performed on a vehicle, logged by its owner."""

    __tablename__ = "maintenance_records"
    __table_args__ = (
        CheckConstraint("mileage > 0", name="ck_maintenance_mileage_positive"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    vehicle_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("vehicles.id", ondelete="CASCADE"), index=True, nullable=False
    )
    service_type: Mapped[str] = mapped_column(String(100), nullable=False)
    service_date: Mapped[date] = mapped_column(Date, nullable=False)
    mileage: Mapped[int | None] = mapped_column(Integer)
    cost: Mapped[float | None] = mapped_column(Numeric(10, 2, asdecimal=False))
    notes: Mapped[str | None] = mapped_column(Text)
    performed_by: Mapped[str | None] = mapped_column(String(200))

    vehicle = relationship("Vehicle", lazy="noload")


# =============================================================================
# Marketplace: requests, quotes, jobs
# =============================================================================


class ServiceRequest(TimestampMixin, Base):
    """An owner's request for work on one of their vehicles."""

    __tablename__ = "service_requests"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    owner_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    vehicle_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("vehicles.id", ondelete="CASCADE"), index=True, nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    urgency: Mapped[str] = mapped_column(String(20), default=Urgency.MEDIUM.value)
    service_type: Mapped[str | None] = mapped_column(String(100))
    preferred_location: Mapped[str | None] = mapped_column(String(255))
    preferred_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    image_urls: Mapped[list[str]] = mapped_column(JSONType, default=list)
    status: Mapped[str] = mapped_column(String(20), default=RequestStatus.OPEN.value, index=True)

    owner = relationship("User", lazy="noload")
    vehicle = relationship("Vehicle", lazy="noload")


class Quote(TimestampMixin, Base):
    """A provider's priced offer against a service request."""

    __tablename__ = "quotes"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    request_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("service_requests.id", ondelete="CASCADE"), index=True, nullable=False
    )
    provider_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    amount: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=False)
    estimated_duration: Mapped[str | None] = mapped_column(String(100))
    description: Mapped[str | None] = mapped_column(Text)
    warranty: Mapped[str | None] = mapped_column(String(200))
    status: Mapped[str] = mapped_column(String(20), default=QuoteStatus.PENDING.value, index=True)

    request = relationship("ServiceRequest", lazy="noload")
    provider = relationship("User", lazy="noload")


class Job(TimestampMixin, Base):
    """Work record created when an owner accepts a quote."""

    __tablename__ = "jobs"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    quote_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("quotes.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    request_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("service_requests.id", ondelete="CASCADE"), index=True, nullable=False
    )
    provider_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    owner_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    status: Mapped[str] = mapped_column(String(30), default=JobStatus.PENDING.value, index=True)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    quote = relationship("Quote", lazy="noload")
    request = relationship("ServiceRequest", lazy="noload")
    provider = relationship("User", foreign_keys=[provider_id], lazy="noload")
    owner = relationship("User", foreign_keys=[owner_id], lazy="noload")


class Review(TimestampMixin, Base):
    """Owner's rating of a completed job, with an optional provider reply."""

    __tablename__ = "reviews"
    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_review_rating_range"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    job_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("jobs.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    owner_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    provider_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[str | None] = mapped_column(Text)
    response: Mapped[str | None] = mapped_column(Text)
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    owner = relationship("User", foreign_keys=[owner_id], lazy="noload")


# =============================================================================
# Messaging
# =============================================================================


class Conversation(TimestampMixin, Base):
    """Message thread between the two participants of a job."""

    __tablename__ = "conversations"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    job_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("jobs.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    owner_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    provider_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    last_message_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)

    owner = relationship("User", foreign_keys=[owner_id], lazy="noload")
    provider = relationship("User", foreign_keys=[provider_id], lazy="noload")

    def other_participant_id(self, user_id: UUID) -> UUID:
        return self.provider_id if self.owner_id == user_id else self.owner_id


class Message(TimestampMixin, Base):
    """A single chat message."""

    __tablename__ = "messages"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    conversation_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("conversations.id", ondelete="CASCADE"), index=True, nullable=False
    )
    sender_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)


# =============================================================================
# Notifications, timeline, audit
# =============================================================================


class Notification(TimestampMixin, Base):
    """In-app notification targeted at one user."""

    __tablename__ = "notifications"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    link: Mapped[str | None] = mapped_column(String(500))
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, index=True)


class Activity(Base):
    """Timeline entry shown on a user's dashboard."""

    __tablename__ = "activities"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    # "metadata" is reserved on declarative classes
    activity_metadata: Mapped[dict | None] = mapped_column("metadata", JSONType)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True
    )


class AuditLog(Base):
    """Change record for a critical entity."""

    __tablename__ = "audit_logs"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID | None] = mapped_column(Uuid, index=True)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(64), nullable=False)
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    changes: Mapped[dict] = mapped_column(JSONType, default=dict)
    audit_metadata: Mapped[dict] = mapped_column("metadata", JSONType, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True
    )


# =============================================================================
# Service catalogue
# =============================================================================


class Service(TimestampMixin, Base):
    """Entry of the public service catalogue (oil change, brakes, ...)."""

    __tablename__ = "services"
    __table_args__ = (
        UniqueConstraint("slug", name="uq_services_slug"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    icon: Mapped[str | None] = mapped_column(String(100))
    is_popular: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    display_order: Mapped[int] = mapped_column(Integer, default=0)
