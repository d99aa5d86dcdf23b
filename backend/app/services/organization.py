"""Organization service - business logic for organization management."""

import builtins
import logging
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Organization, OrganizationMember, Service, ServiceVersion
from app.schemas.organization import OrganizationCreate, OrganizationUpdate
from app.schemas.pagination import ListParams
from app.services.membership import MembershipService
from app.services.query import fetch_page

logger = logging.getLogger(__name__)

SORT_FIELDS = frozenset({"name", "created_at", "updated_at"})


class OrganizationService:
    """Service for managing organizations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, data: OrganizationCreate, user_id: UUID) -> Organization:
        """Create an organization and enroll its creator in the same transaction."""
        organization = Organization(
            name=data.name,
            description=data.description,
            created_by=user_id,
        )
        self.db.add(organization)
        await self.db.flush()
        await MembershipService(self.db).add_member(user_id, organization.id)
        await self.db.refresh(organization)

        logger.info(f"Created organization {organization.id} for user {user_id}")
        return organization

    async def get(self, org_id: UUID) -> Organization | None:
        """Get an organization by ID."""
        result = await self.db.execute(select(Organization).where(Organization.id == org_id))
        return result.scalar_one_or_none()

    async def list_for_user(
        self, user_id: UUID, params: ListParams
    ) -> tuple[builtins.list[Organization], int]:
        """List organizations the user is a member of.

        Returns a tuple of (organizations, total_count).
        """
        stmt = (
            select(Organization)
            .join(OrganizationMember, OrganizationMember.organization_id == Organization.id)
            .where(OrganizationMember.user_id == user_id)
        )
        if params.q:
            stmt = stmt.where(Organization.name.icontains(params.q, autoescape=True))
        return await fetch_page(self.db, Organization, stmt, params)

    async def update(self, org_id: UUID, data: OrganizationUpdate) -> Organization | None:
        """Replace an organization's name and description."""
        organization = await self.get(org_id)
        if not organization:
            return None

        organization.name = data.name
        organization.description = data.description

        await self.db.flush()
        await self.db.refresh(organization)
        return organization

    async def delete(self, org_id: UUID) -> bool:
        """Delete an organization with its services, versions and memberships."""
        organization = await self.get(org_id)
        if not organization:
            return False

        service_ids = select(Service.id).where(Service.organization_id == org_id)
        await self.db.execute(
            delete(ServiceVersion).where(ServiceVersion.service_id.in_(service_ids))
        )
        await self.db.execute(delete(Service).where(Service.organization_id == org_id))
        await self.db.execute(
            delete(OrganizationMember).where(OrganizationMember.organization_id == org_id)
        )
        await self.db.delete(organization)
        await self.db.flush()

        logger.info(f"Deleted organization {org_id}")
        return True
