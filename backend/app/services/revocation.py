"""Revocation store for logged-out access tokens."""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import PersistenceError
from app.models.token_blacklist import BlacklistedToken
from app.services.auth import Clock, utc_clock

logger = logging.getLogger(__name__)

# Dialects with native INSERT ... ON CONFLICT DO NOTHING
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class RevocationStore:
    """Records token fingerprints that must no longer be accepted.

    Entries are keyed by the SHA-256 fingerprint of the raw token and carry
    the token's own expiry, so they can be reaped once the token would have
    been rejected anyway.
    """

    def __init__(self, session: AsyncSession, clock: Clock | None = None):
        self.session = session
        self._clock = clock or utc_clock

    async def record(self, fingerprint: str, user_id: UUID, expires_at: datetime) -> None:
        """Revoke a token. Recording the same fingerprint twice is a no-op."""
        values = {
            "token_hash": fingerprint,
            "user_id": user_id,
            "expires_at": expires_at,
            "created_at": self._clock(),
        }
        try:
            dialect = self.session.get_bind().dialect.name
            insert = _UPSERT_INSERTS.get(dialect)
            if insert is not None:
                stmt = insert(BlacklistedToken).values(**values).on_conflict_do_nothing(
                    index_elements=["token_hash"]
                )
                await self.session.execute(stmt)
            elif await self.session.get(BlacklistedToken, fingerprint) is None:
                self.session.add(BlacklistedToken(**values))
            await self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Failed to record revoked token for user {user_id}: {e}")
            raise PersistenceError("Failed to record revoked token") from e

    async def is_revoked(self, fingerprint: str) -> bool:
        """Check whether a token has been revoked and is still within its lifetime.

        Fails open: if the datastore cannot be read the token is treated as
        not revoked and the error is logged. The lookup runs in a savepoint
        so a failure does not abort the caller's transaction.
        """
        try:
            async with self.session.begin_nested():
                result = await self.session.execute(
                    select(BlacklistedToken.token_hash).where(
                        BlacklistedToken.token_hash == fingerprint,
                        BlacklistedToken.expires_at > self._clock(),
                    )
                )
                return result.scalar_one_or_none() is not None
        except SQLAlchemyError as e:
            logger.error(f"Revocation lookup failed, treating token as valid: {e}")
            return False

    async def reap(self) -> int:
        """Delete entries whose tokens have already expired. Returns the count."""
        try:
            result = await self.session.execute(
                delete(BlacklistedToken).where(BlacklistedToken.expires_at <= self._clock())
            )
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to reap revoked tokens") from e
        return result.rowcount or 0
