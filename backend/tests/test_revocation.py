"""Tests for the revocation store."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from app.core import PersistenceError
from app.models import BlacklistedToken
from app.services.revocation import RevocationStore

pytestmark = pytest.mark.asyncio

NOW = datetime(2026, 3, 1, 9, 30, 0, tzinfo=UTC)


def _clock(now: datetime = NOW):
    return lambda: now


def _failing_session() -> MagicMock:
    session = MagicMock()
    session.execute = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("down")))
    session.get_bind.return_value.dialect.name = "postgresql"
    return session


class TestRecordAndCheck:
    """Tests for record() / is_revoked()."""

    async def test_recorded_fingerprint_is_revoked(self, db_session):
        store = RevocationStore(db_session, clock=_clock())

        await store.record("a" * 64, uuid4(), NOW + timedelta(minutes=30))

        assert await store.is_revoked("a" * 64) is True

    async def test_unknown_fingerprint_not_revoked(self, db_session):
        store = RevocationStore(db_session, clock=_clock())
        await store.record("a" * 64, uuid4(), NOW + timedelta(minutes=30))

        assert await store.is_revoked("b" * 64) is False

    async def test_record_past_expiry_not_revoked(self, db_session):
        store = RevocationStore(db_session, clock=_clock())

        await store.record("c" * 64, uuid4(), NOW - timedelta(seconds=1))

        assert await store.is_revoked("c" * 64) is False

    async def test_duplicate_record_is_noop(self, db_session):
        store = RevocationStore(db_session, clock=_clock())
        user_id = uuid4()

        await store.record("d" * 64, user_id, NOW + timedelta(minutes=30))
        await store.record("d" * 64, user_id, NOW + timedelta(minutes=30))

        count = await db_session.scalar(
            select(func.count()).select_from(BlacklistedToken).where(
                BlacklistedToken.token_hash == "d" * 64
            )
        )
        assert count == 1
        assert await store.is_revoked("d" * 64) is True

    async def test_is_revoked_fails_open(self):
        store = RevocationStore(_failing_session(), clock=_clock())

        assert await store.is_revoked("e" * 64) is False

    async def test_is_revoked_lookup_runs_in_savepoint(self):
        session = _failing_session()

        assert await RevocationStore(session, clock=_clock()).is_revoked("e" * 64) is False
        session.begin_nested.assert_called_once()

    async def test_record_failure_raises_persistence_error(self):
        store = RevocationStore(_failing_session(), clock=_clock())

        with pytest.raises(PersistenceError):
            await store.record("f" * 64, uuid4(), NOW + timedelta(minutes=30))


class TestReap:
    """Tests for reap()."""

    async def test_reap_removes_only_expired(self, db_session):
        store = RevocationStore(db_session, clock=_clock())
        await store.record("1" * 64, uuid4(), NOW - timedelta(minutes=1))
        await store.record("2" * 64, uuid4(), NOW)
        await store.record("3" * 64, uuid4(), NOW + timedelta(minutes=1))

        removed = await store.reap()

        assert removed == 2
        remaining = (await db_session.execute(select(BlacklistedToken.token_hash))).scalars().all()
        assert remaining == ["3" * 64]

    async def test_reap_after_expiry_clears_revocation(self, db_session):
        expires_at = NOW + timedelta(minutes=5)
        await RevocationStore(db_session, clock=_clock()).record("4" * 64, uuid4(), expires_at)

        later = RevocationStore(db_session, clock=_clock(expires_at + timedelta(seconds=1)))
        assert await later.reap() == 1
        assert await later.is_revoked("4" * 64) is False

    async def test_reap_empty_store(self, db_session):
        assert await RevocationStore(db_session, clock=_clock()).reap() == 0

    async def test_reap_failure_raises_persistence_error(self):
        store = RevocationStore(_failing_session(), clock=_clock())

        with pytest.raises(PersistenceError):
            await store.reap()


class TestBlacklistedTokenRepr:
    """Tests for the model repr."""

    async def test_repr_is_ascii(self):
        entry = BlacklistedToken(token_hash="a" * 64, user_id=uuid4(), expires_at=NOW)

        text = repr(entry)

        assert text.isascii()
        assert text.startswith("<BlacklistedToken aaaaaaaaaaaa... ")
