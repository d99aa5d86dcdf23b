"""Blacklisted access tokens, kept until the token would have expired anyway."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.models.base import UTCDateTime, utcnow


class BlacklistedToken(Base):
    """A logged-out access token identified by the SHA-256 of its raw string.

    Entries are created on logout, checked on every authenticated request and
    deleted by the token reaper once expires_at has passed. Never updated.
    """

    __tablename__ = "blacklisted_tokens"

    token_hash: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<BlacklistedToken {self.token_hash[:12]}... user_id={self.user_id}>"
