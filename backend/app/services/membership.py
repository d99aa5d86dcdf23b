"""Organization membership checks."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import PersistenceError
from app.models.organization import OrganizationMember

logger = logging.getLogger(__name__)


class MembershipService:
    """Answers whether a user belongs to an organization."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def check_membership(self, user_id: UUID, org_id: UUID) -> bool:
        """Return True if the user is a member of the organization.

        A missing organization and a missing membership look the same.
        Datastore failures raise PersistenceError so access is never
        granted on error.
        """
        try:
            result = await self.session.execute(
                select(OrganizationMember.user_id).where(
                    OrganizationMember.user_id == user_id,
                    OrganizationMember.organization_id == org_id,
                )
            )
        except SQLAlchemyError as e:
            logger.error(f"Membership lookup failed for user {user_id} in org {org_id}: {e}")
            raise PersistenceError("Failed to check organization membership") from e
        return result.scalar_one_or_none() is not None

    async def add_member(self, user_id: UUID, org_id: UUID) -> OrganizationMember:
        """Enroll a user in an organization within the current transaction."""
        member = OrganizationMember(user_id=user_id, organization_id=org_id)
        self.session.add(member)
        await self.session.flush()
        return member
