"""Service version service - business logic for released versions."""

import builtins
import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import ServiceVersion
from app.models.base import utcnow
from app.schemas.pagination import ListParams
from app.schemas.service_version import ServiceVersionCreate, ServiceVersionUpdate
from app.services.query import fetch_page

logger = logging.getLogger(__name__)

SORT_FIELDS = frozenset({"version", "created_at", "updated_at"})


class DuplicateVersionError(Exception):
    """The service already has a version with this tag."""

    pass


class ServiceVersionService:
    """Service for managing the versions of one service.

    Callers resolve the parent service (scoped to its organization) first.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_version(self, service_id: UUID, version: str) -> ServiceVersion | None:
        """Get a version by its tag."""
        result = await self.db.execute(
            select(ServiceVersion).where(
                ServiceVersion.service_id == service_id,
                ServiceVersion.version == version,
            )
        )
        return result.scalar_one_or_none()

    async def create(self, service_id: UUID, data: ServiceVersionCreate) -> ServiceVersion:
        """Create a version. release_timestamp defaults to now."""
        if await self.get_by_version(service_id, data.version) is not None:
            raise DuplicateVersionError(f"Version {data.version} already exists for this service")

        service_version = ServiceVersion(
            version=data.version,
            description=data.description,
            release_timestamp=data.release_timestamp or utcnow(),
            service_id=service_id,
        )
        self.db.add(service_version)
        try:
            await self.db.flush()
        except IntegrityError as e:
            raise DuplicateVersionError(
                f"Version {data.version} already exists for this service"
            ) from e
        await self.db.refresh(service_version)

        logger.info(f"Created version {data.version} for service {service_id}")
        return service_version

    async def get(self, service_id: UUID, version_id: UUID) -> ServiceVersion | None:
        """Get a version by ID within a service."""
        result = await self.db.execute(
            select(ServiceVersion).where(
                ServiceVersion.id == version_id,
                ServiceVersion.service_id == service_id,
            )
        )
        return result.scalar_one_or_none()

    async def list(
        self, service_id: UUID, params: ListParams
    ) -> tuple[builtins.list[ServiceVersion], int]:
        """List a service's versions; q matches a version prefix.

        Returns a tuple of (versions, total_count).
        """
        stmt = select(ServiceVersion).where(ServiceVersion.service_id == service_id)
        if params.q:
            stmt = stmt.where(ServiceVersion.version.istartswith(params.q, autoescape=True))
        return await fetch_page(self.db, ServiceVersion, stmt, params)

    async def update(
        self, service_id: UUID, version_id: UUID, data: ServiceVersionUpdate
    ) -> ServiceVersion | None:
        """Update description and/or release timestamp."""
        service_version = await self.get(service_id, version_id)
        if not service_version:
            return None

        update_data = data.model_dump(exclude_unset=True, exclude_none=True)
        for field, value in update_data.items():
            setattr(service_version, field, value)

        await self.db.flush()
        await self.db.refresh(service_version)
        return service_version

    async def delete(self, service_id: UUID, version_id: UUID) -> bool:
        """Delete a version."""
        service_version = await self.get(service_id, version_id)
        if not service_version:
            return False

        await self.db.delete(service_version)
        await self.db.flush()
        return True
