"""
Pytest fixtures for API tests.

Provides fixtures for testing all API endpoints including:
- Async database session with in-memory SQLite
- Test HTTP client built by the application factory, with the database
  dependencies pointed at the test session
- Users for every role (owner, active provider, draft provider, admin,
  inactive) with access tokens and Bearer headers
- Marketplace data: vehicle, service request, quote, job, review
- A fresh WebSocket connection registry for observing live pushes
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import AsyncGenerator
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.security import create_access_token, create_refresh_token, get_password_hash
from app.db.postgres.models import (
    Base,
    Job,
    JobStatus,
    MaintenanceRecord,
    ProviderProfile,
    ProviderStatus,
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
from app.services import notification_gateway
from app.services.notification_gateway import ConnectionManager

# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def async_engine():
    """Create an async SQLite engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for testing."""
    async with session_factory() as session:
        yield session
        await session.rollback()


# =============================================================================
# Test User Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def test_user_password() -> str:
    """Password shared by every test user."""
    return "TestPassword123!"


@pytest.fixture(scope="session")
def hashed_test_password(test_user_password: str) -> str:
    """bcrypt is slow; hash the shared password once per session."""
    return get_password_hash(test_user_password)


async def _add_user(db_session: AsyncSession, **fields) -> User:
    user = User(id=uuid4(), is_active=True, **fields)
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def owner_user(db_session: AsyncSession, hashed_test_password: str) -> User:
    """A vehicle owner."""
    return await _add_user(
        db_session,
        email="owner@example.com",
        hashed_password=hashed_test_password,
        name="Olivia Owner",
        phone="+1 415 555 0101",
        roles=[UserRole.OWNER.value],
        provider_status=ProviderStatus.NONE.value,
    )


@pytest_asyncio.fixture
async def other_owner(db_session: AsyncSession, hashed_test_password: str) -> User:
    """A second owner, used for access-denied checks."""
    return await _add_user(
        db_session,
        email="other.owner@example.com",
        hashed_password=hashed_test_password,
        name="Oscar Other",
        roles=[UserRole.OWNER.value],
        provider_status=ProviderStatus.NONE.value,
    )


@pytest_asyncio.fixture
async def provider_user(db_session: AsyncSession, hashed_test_password: str) -> User:
    """An active provider with a complete business profile."""
    user = await _add_user(
        db_session,
        email="provider@example.com",
        hashed_password=hashed_test_password,
        name="Pat Provider",
        phone="+1 415 555 0102",
        address="12 Mission St",
        city="San Francisco",
        state="CA",
        zip_code="94105",
        roles=[UserRole.OWNER.value, UserRole.PROVIDER.value],
        provider_status=ProviderStatus.ACTIVE.value,
    )
    db_session.add(
        ProviderProfile(
            user_id=user.id,
            business_name="Bayside Auto Care",
            service_types=["oil-change", "brake-service"],
            years_in_business=8,
            shop_address="400 Harrison St",
            shop_city="San Francisco",
            shop_state="CA",
            shop_zip_code="94107",
            service_radius=15,
            hourly_rate=95.0,
            is_active=True,
        )
    )
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def draft_provider(db_session: AsyncSession, hashed_test_password: str) -> User:
    """A provider who signed up but has not finished onboarding."""
    user = await _add_user(
        db_session,
        email="draft.provider@example.com",
        hashed_password=hashed_test_password,
        name="Dana Draft",
        roles=[UserRole.OWNER.value, UserRole.PROVIDER.value],
        provider_status=ProviderStatus.DRAFT.value,
    )
    db_session.add(ProviderProfile(user_id=user.id, is_active=False))
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession, hashed_test_password: str) -> User:
    """Create an admin user in the database."""
    return await _add_user(
        db_session,
        email="admin@example.com",
        hashed_password=hashed_test_password,
        name="Ada Admin",
        roles=[UserRole.ADMIN.value],
        provider_status=ProviderStatus.NONE.value,
    )


@pytest_asyncio.fixture
async def inactive_user(db_session: AsyncSession, hashed_test_password: str) -> User:
    """Create an inactive user in the database."""
    user = User(
        id=uuid4(),
        email="inactive@example.com",
        hashed_password=hashed_test_password,
        name="Ian Inactive",
        roles=[UserRole.OWNER.value],
        provider_status=ProviderStatus.NONE.value,
        is_active=False,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


# =============================================================================
# Token Fixtures
# =============================================================================


def access_token_for(user: User) -> str:
    return create_access_token(
        subject=str(user.id),
        additional_claims={"email": user.email, "roles": list(user.roles or [])},
    )


def bearer(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {access_token_for(user)}"}


@pytest.fixture
def owner_token(owner_user: User) -> str:
    return access_token_for(owner_user)


@pytest.fixture
def owner_refresh_token(owner_user: User) -> str:
    return create_refresh_token(subject=str(owner_user.id))


@pytest.fixture
def owner_headers(owner_user: User) -> dict[str, str]:
    return bearer(owner_user)


@pytest.fixture
def other_owner_headers(other_owner: User) -> dict[str, str]:
    return bearer(other_owner)


@pytest.fixture
def provider_token(provider_user: User) -> str:
    return access_token_for(provider_user)


@pytest.fixture
def provider_headers(provider_user: User) -> dict[str, str]:
    return bearer(provider_user)


@pytest.fixture
def draft_provider_headers(draft_provider: User) -> dict[str, str]:
    return bearer(draft_provider)


@pytest.fixture
def admin_headers(admin_user: User) -> dict[str, str]:
    return bearer(admin_user)


@pytest.fixture
def inactive_headers(inactive_user: User) -> dict[str, str]:
    return bearer(inactive_user)


# =============================================================================
# Marketplace Data Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def test_vehicle(db_session: AsyncSession, owner_user: User) -> Vehicle:
    vehicle = Vehicle(
        id=uuid4(),
        owner_id=owner_user.id,
        make="Toyota",
        model="Camry",
        year=2019,
        vin="4T1B11HK5KU123456",
        license_plate="8ABC123",
        mileage=42000,
    )
    db_session.add(vehicle)
    await db_session.commit()
    await db_session.refresh(vehicle)
    return vehicle


@pytest_asyncio.fixture
async def maintenance_record(db_session: AsyncSession, test_vehicle: Vehicle) -> MaintenanceRecord:
    record = MaintenanceRecord(
        id=uuid4(),
        vehicle_id=test_vehicle.id,
        service_type="Oil Change",
        service_date=date(2026, 3, 14),
        mileage=40000,
        cost=79.99,
        performed_by="Bayside Auto Care",
    )
    db_session.add(record)
    await db_session.commit()
    await db_session.refresh(record)
    return record


@pytest_asyncio.fixture
async def test_request(db_session: AsyncSession, owner_user: User, test_vehicle: Vehicle) -> ServiceRequest:
    request = ServiceRequest(
        id=uuid4(),
        owner_id=owner_user.id,
        vehicle_id=test_vehicle.id,
        title="Front brakes squeal",
        description="Squealing when braking at low speed, started last week.",
        urgency="high",
        service_type="brake-service",
        preferred_location="San Francisco, CA",
        image_urls=[],
        status=RequestStatus.OPEN.value,
    )
    db_session.add(request)
    await db_session.commit()
    await db_session.refresh(request)
    return request


@pytest_asyncio.fixture
async def test_quote(
    db_session: AsyncSession, test_request: ServiceRequest, provider_user: User
) -> Quote:
    """A pending quote; the request is moved to quoted like a real submission does."""
    quote = Quote(
        id=uuid4(),
        request_id=test_request.id,
        provider_id=provider_user.id,
        amount=320.0,
        estimated_duration="2 hours",
        description="Replace front pads and resurface rotors",
        warranty="12 months",
        status=QuoteStatus.PENDING.value,
    )
    db_session.add(quote)
    test_request.status = RequestStatus.QUOTED.value
    await db_session.commit()
    await db_session.refresh(quote)
    return quote


@pytest_asyncio.fixture
async def test_job(db_session: AsyncSession, test_quote: Quote, test_request: ServiceRequest) -> Job:
    """A pending job created from the accepted test quote."""
    test_quote.status = QuoteStatus.ACCEPTED.value
    test_request.status = RequestStatus.IN_PROGRESS.value
    job = Job(
        id=uuid4(),
        quote_id=test_quote.id,
        request_id=test_request.id,
        provider_id=test_quote.provider_id,
        owner_id=test_request.owner_id,
        status=JobStatus.PENDING.value,
    )
    db_session.add(job)
    await db_session.commit()
    await db_session.refresh(job)
    return job


@pytest_asyncio.fixture
async def completed_job(db_session: AsyncSession, test_job: Job, test_request: ServiceRequest) -> Job:
    now = datetime.now(timezone.utc)
    test_job.status = JobStatus.COMPLETED.value
    test_job.started_at = now
    test_job.completed_at = now
    test_request.status = RequestStatus.COMPLETED.value
    await db_session.commit()
    await db_session.refresh(test_job)
    return test_job


@pytest_asyncio.fixture
async def test_review(db_session: AsyncSession, completed_job: Job, provider_user: User) -> Review:
    review = Review(
        id=uuid4(),
        job_id=completed_job.id,
        owner_id=completed_job.owner_id,
        provider_id=completed_job.provider_id,
        rating=4,
        comment="Quick and friendly, brakes are silent now.",
    )
    db_session.add(review)
    provider_user.rating = 4.0
    provider_user.review_count = 1
    await db_session.commit()
    await db_session.refresh(review)
    return review


@pytest_asyncio.fixture
async def catalogue(db_session: AsyncSession) -> list[Service]:
    """A small slice of the seeded service catalogue."""
    services = [
        Service(id=uuid4(), name="Oil Change", slug="oil-change", icon="oil-can", is_popular=True, display_order=5),
        Service(id=uuid4(), name="Mobile Detailing", slug="mobile-detailing", icon="sparkles", is_popular=True, display_order=1),
        Service(id=uuid4(), name="Brake Service", slug="brake-service", icon="octagon", is_popular=False, display_order=8),
        Service(id=uuid4(), name="Retired Service", slug="retired", is_popular=True, is_active=False, display_order=9),
    ]
    db_session.add_all(services)
    await db_session.commit()
    return services


# =============================================================================
# Application Fixtures
# =============================================================================


@pytest.fixture
def connection_manager(monkeypatch) -> ConnectionManager:
    """Fresh connection registry so live pushes can be observed."""
    manager = ConnectionManager()
    monkeypatch.setattr(notification_gateway, "_connection_manager", manager)
    return manager


@pytest.fixture
def app(db_session: AsyncSession):
    """Application from the factory with both database dependencies on the test session."""
    from app.db.postgres.session import discard_after_commit, get_db, get_read_db, run_after_commit
    from app.main import create_application

    test_app = create_application()

    async def override_get_db():
        # Same unit of work as get_db: commit, then run queued side effects
        try:
            yield db_session
            await db_session.commit()
            await run_after_commit(db_session)
        finally:
            discard_after_commit(db_session)

    test_app.dependency_overrides[get_db] = override_get_db
    test_app.dependency_overrides[get_read_db] = override_get_db
    return test_app


@pytest_asyncio.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for testing."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()
