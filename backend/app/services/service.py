"""Service catalog - business logic for services owned by an organization."""

import builtins
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Service, ServiceVersion
from app.schemas.pagination import ListParams
from app.schemas.service import ServiceCreate, ServiceUpdate
from app.services.query import fetch_page

SORT_FIELDS = frozenset({"name", "created_at", "updated_at"})


class ServiceCatalog:
    """Service for managing an organization's services.

    Every lookup is scoped to the organization, so a service id from
    another organization behaves as not found.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, org_id: UUID, data: ServiceCreate) -> Service:
        """Create a new service."""
        service = Service(
            name=data.name,
            description=data.description,
            organization_id=org_id,
        )
        self.db.add(service)
        await self.db.flush()
        await self.db.refresh(service)
        return service

    async def get(self, org_id: UUID, service_id: UUID) -> Service | None:
        """Get a service by ID within an organization."""
        result = await self.db.execute(
            select(Service).where(Service.id == service_id, Service.organization_id == org_id)
        )
        return result.scalar_one_or_none()

    async def list(
        self, org_id: UUID, params: ListParams
    ) -> tuple[builtins.list[Service], int]:
        """List an organization's services.

        Returns a tuple of (services, total_count).
        """
        stmt = select(Service).where(Service.organization_id == org_id)
        if params.q:
            stmt = stmt.where(Service.name.icontains(params.q, autoescape=True))
        return await fetch_page(self.db, Service, stmt, params)

    async def version_counts(self, service_ids: builtins.list[UUID]) -> dict[UUID, int]:
        """Count versions for each of the given services in one query."""
        if not service_ids:
            return {}
        result = await self.db.execute(
            select(ServiceVersion.service_id, func.count(ServiceVersion.id))
            .where(ServiceVersion.service_id.in_(service_ids))
            .group_by(ServiceVersion.service_id)
        )
        counts = {service_id: 0 for service_id in service_ids}
        counts.update({row[0]: row[1] for row in result})
        return counts

    async def update(self, org_id: UUID, service_id: UUID, data: ServiceUpdate) -> Service | None:
        """Replace a service's name and description."""
        service = await self.get(org_id, service_id)
        if not service:
            return None

        service.name = data.name
        service.description = data.description

        await self.db.flush()
        await self.db.refresh(service)
        return service

    async def delete(self, org_id: UUID, service_id: UUID) -> bool:
        """Delete a service and all of its versions."""
        service = await self.get(org_id, service_id)
        if not service:
            return False

        await self.db.execute(delete(ServiceVersion).where(ServiceVersion.service_id == service_id))
        await self.db.delete(service)
        await self.db.flush()
        return True
