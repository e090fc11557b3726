"""
PostgreSQL session configuration with read-replica routing.

- Primary engine for every write and for reads when no replica is configured
- Optional read replica (DATABASE_REPLICA_URL) used by read-only endpoints
- Connection pooling with pre-ping and recycling
- SQLAlchemy errors translated to ServiceLane database exceptions
- Side effects (live pushes, emails) queued on the session and run only
  after a successful commit
"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.exc import (
    TimeoutError as SQLAlchemyTimeoutError,
)
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings
from app.core.exceptions import (
    PostgresConnectionException,
    PostgresException,
)
from app.core.logging import get_logger

logger = get_logger(__name__)


def _engine_options(url: str) -> dict[str, Any]:
    """Pool settings only apply to server databases; SQLite has its own pools."""
    options: dict[str, Any] = {"echo": settings.DEBUG, "pool_pre_ping": True}
    if url.startswith("postgresql"):
        options.update(
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
            pool_recycle=settings.DATABASE_POOL_RECYCLE,
            pool_timeout=settings.DATABASE_POOL_TIMEOUT,
        )
    return options


def _session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


class DatabaseRouter:
    """
    Splits sessions between the primary database and an optional read replica.

    The replica is wired up once, at construction, from the configured URL.
    `read` falls back to the primary when there is no replica; `write` is
    always the primary.
    """

    def __init__(self, primary_url: str, replica_url: str | None = None) -> None:
        self.primary_engine = create_async_engine(primary_url, **_engine_options(primary_url))
        self._primary = _session_factory(self.primary_engine)

        self.replica_engine: AsyncEngine | None = None
        self._replica: async_sessionmaker[AsyncSession] | None = None
        if replica_url:
            self.replica_engine = create_async_engine(replica_url, **_engine_options(replica_url))
            self._replica = _session_factory(self.replica_engine)
            logger.info("Read replica configured")

    @property
    def has_replica(self) -> bool:
        return self._replica is not None

    @property
    def read(self) -> async_sessionmaker[AsyncSession]:
        """Session factory for read operations (replica if available)."""
        return self._replica or self._primary

    @property
    def write(self) -> async_sessionmaker[AsyncSession]:
        """Session factory for write operations (always the primary)."""
        return self._primary

    async def dispose(self) -> None:
        await self.primary_engine.dispose()
        if self.replica_engine is not None:
            await self.replica_engine.dispose()
        logger.info("Database engines disposed")


db_router = DatabaseRouter(settings.DATABASE_URL, settings.DATABASE_REPLICA_URL)

# Kept as module attributes for migrations and scripts
engine = db_router.primary_engine
async_session_maker = db_router.write

AFTER_COMMIT_KEY = "after_commit"


def after_commit(session: AsyncSession, callback: Callable[[], Awaitable[Any]]) -> None:
    """Queue a coroutine function to run once the session's transaction commits."""
    session.info.setdefault(AFTER_COMMIT_KEY, []).append(callback)


async def run_after_commit(session: AsyncSession) -> None:
    """Run and clear the queued callbacks. A failing callback is logged, not raised."""
    for callback in session.info.pop(AFTER_COMMIT_KEY, []):
        try:
            await callback()
        except Exception as e:
            logger.warning(f"After-commit callback failed: {e}")


def discard_after_commit(session: AsyncSession) -> int:
    """Drop queued callbacks without running them; returns how many were dropped."""
    return len(session.info.pop(AFTER_COMMIT_KEY, []))


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides a primary (read-write) session.

    Commits when the request handler returns, rolls back on any error.
    Callbacks queued with `after_commit` run after the commit and are
    dropped on rollback.

    Raises:
        PostgresConnectionException: When unable to connect to database
        PostgresException: For other database errors
    """
    session: AsyncSession | None = None
    try:
        session = db_router.write()
        yield session
        await session.commit()
        await run_after_commit(session)

    except OperationalError as e:
        logger.error(
            "PostgreSQL connection error",
            extra={"error_type": type(e).__name__, "error_message": str(e)},
            exc_info=True,
        )
        if session:
            await session.rollback()
        raise PostgresConnectionException(
            message="Could not connect to the database",
            original_error=e,
        )

    except IntegrityError as e:
        logger.warning(
            "PostgreSQL integrity error",
            extra={"error_type": type(e).__name__, "error_message": str(e)},
        )
        if session:
            await session.rollback()
        # Mapped to 409 by the SQLAlchemy exception handler
        raise

    except SQLAlchemyTimeoutError as e:
        logger.error(
            "PostgreSQL timeout error",
            extra={"error_type": type(e).__name__, "error_message": str(e)},
        )
        if session:
            await session.rollback()
        raise PostgresException(
            message="The database operation timed out",
            details={"timeout": True},
            original_error=e,
        )

    except (DBAPIError, SQLAlchemyError) as e:
        logger.error(
            "SQLAlchemy error",
            extra={"error_type": type(e).__name__, "error_message": str(e)},
            exc_info=True,
        )
        if session:
            await session.rollback()
        raise PostgresException(
            message="A database error occurred",
            original_error=e,
        )

    except Exception:
        # Application errors: undo the unit of work and let the handlers respond
        if session:
            await session.rollback()
        raise

    finally:
        if session:
            dropped = discard_after_commit(session)
            if dropped:
                logger.info(f"Dropped {dropped} side effect(s) of a rolled back transaction")
            await session.close()


async def get_read_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides a read-only session.

    Uses the replica when one is configured. Nothing is committed.
    """
    session = db_router.read()
    try:
        yield session
    except OperationalError as e:
        logger.error(
            "Read database connection error",
            extra={"error_type": type(e).__name__, "replica": db_router.has_replica},
            exc_info=True,
        )
        raise PostgresConnectionException(original_error=e)
    finally:
        await session.rollback()
        await session.close()


async def dispose_engine() -> None:
    """Dispose of all engines. Call during application shutdown."""
    await db_router.dispose()


async def check_database_connection() -> bool:
    """
    Check if the primary database is reachable.

    Returns:
        True if connection is available, False otherwise.
    """
    try:
        async with db_router.write() as session:
            await session.execute(text("SELECT 1"))
            return True
    except Exception as e:
        logger.warning(f"Database connection check failed: {e}")
        return False
