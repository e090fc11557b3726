"""
Tests for the primary / read-replica session router and the get_db unit of work.
"""

import pytest
import pytest_asyncio
from sqlalchemy import text

from app.core.exceptions import BadRequestException
from app.db.postgres import session as session_module
from app.db.postgres.session import DatabaseRouter, after_commit, get_db


class TestDatabaseRouter:
    """Tests for DatabaseRouter."""

    @pytest.mark.asyncio
    async def test_reads_use_primary_without_replica(self):
        router = DatabaseRouter("sqlite+aiosqlite://")
        try:
            assert router.has_replica is False
            assert router.read is router.write
            assert router.replica_engine is None

            async with router.read() as session:
                assert (await session.execute(text("SELECT 1"))).scalar_one() == 1
        finally:
            await router.dispose()

    @pytest.mark.asyncio
    async def test_reads_use_replica_when_configured(self, tmp_path):
        primary_url = f"sqlite+aiosqlite:///{tmp_path / 'primary.db'}"
        replica_url = f"sqlite+aiosqlite:///{tmp_path / 'replica.db'}"
        router = DatabaseRouter(primary_url, replica_url)
        try:
            assert router.has_replica is True
            assert router.read is not router.write

            async with router.read() as session:
                assert session.bind is router.replica_engine
            async with router.write() as session:
                assert session.bind is router.primary_engine
        finally:
            await router.dispose()

    @pytest.mark.asyncio
    async def test_empty_replica_url_means_no_replica(self):
        router = DatabaseRouter("sqlite+aiosqlite://", "")
        try:
            assert router.has_replica is False
        finally:
            await router.dispose()


class TestGetDbSideEffects:
    """Callbacks queued with after_commit only run once get_db has committed."""

    @pytest_asyncio.fixture
    async def sqlite_router(self, monkeypatch):
        router = DatabaseRouter("sqlite+aiosqlite://")
        monkeypatch.setattr(session_module, "db_router", router)
        yield router
        await router.dispose()

    @pytest.mark.asyncio
    async def test_callbacks_run_after_commit(self, sqlite_router):
        calls = []

        async def push():
            calls.append("push")

        dependency = get_db()
        session = await dependency.__anext__()
        after_commit(session, push)
        assert calls == []

        with pytest.raises(StopAsyncIteration):
            await dependency.__anext__()

        assert calls == ["push"]
        assert session_module.AFTER_COMMIT_KEY not in session.info

    @pytest.mark.asyncio
    async def test_callbacks_dropped_on_rollback(self, sqlite_router):
        calls = []

        async def push():
            calls.append("push")

        dependency = get_db()
        session = await dependency.__anext__()
        after_commit(session, push)

        with pytest.raises(BadRequestException):
            await dependency.athrow(BadRequestException(message="Quote is no longer pending"))

        assert calls == []
        assert session_module.AFTER_COMMIT_KEY not in session.info

    @pytest.mark.asyncio
    async def test_failing_callback_does_not_break_the_rest(self, sqlite_router):
        calls = []

        async def broken():
            raise RuntimeError("socket closed")

        async def email():
            calls.append("email")

        dependency = get_db()
        session = await dependency.__anext__()
        after_commit(session, broken)
        after_commit(session, email)

        with pytest.raises(StopAsyncIteration):
            await dependency.__anext__()

        assert calls == ["email"]
