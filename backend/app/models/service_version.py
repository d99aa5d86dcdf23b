"""ServiceVersion model - released versions of a service."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import ForeignKey, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import BaseModel, UTCDateTime


class ServiceVersion(BaseModel):
    """A semantic version of a service.

    The version tag is immutable once created and unique per service.
    """

    __tablename__ = "service_versions"

    __table_args__ = (
        UniqueConstraint("service_id", "version", name="uq_service_versions_service_version"),
    )

    version: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    release_timestamp: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    service_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True
    )

    def __repr__(self) -> str:
        return f"<ServiceVersion {self.version} (service_id={self.service_id})>"
