"""Organization API endpoints.

Every route requires a bearer token; routes addressing one organization
also require membership in it.
"""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import AuthenticatedUser, get_current_user, require_org_member
from app.api.pagination import list_params
from app.core import get_db
from app.schemas.organization import (
    OrganizationCreate,
    OrganizationResponse,
    OrganizationUpdate,
)
from app.schemas.pagination import ListParams, Page, build_page
from app.services.organization import SORT_FIELDS, OrganizationService

router = APIRouter(
    prefix="/orgs",
    tags=["organizations"],
)


def get_organization_service(db: AsyncSession = Depends(get_db)) -> OrganizationService:
    """Dependency to get organization service."""
    return OrganizationService(db)


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Organization not found",
    )


@router.post("", response_model=OrganizationResponse, status_code=status.HTTP_201_CREATED)
async def create_organization(
    data: OrganizationCreate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service),
) -> OrganizationResponse:
    """Create an organization. The caller becomes its first member."""
    organization = await service.create(data, current_user.user_id)
    return OrganizationResponse.model_validate(organization)


@router.get("", response_model=Page[OrganizationResponse])
async def list_organizations(
    params: ListParams = Depends(list_params(SORT_FIELDS)),
    current_user: AuthenticatedUser = Depends(get_current_user),
    service: OrganizationService = Depends(get_organization_service),
) -> Any:
    """List organizations the caller belongs to."""
    organizations, total = await service.list_for_user(current_user.user_id, params)
    items = [OrganizationResponse.model_validate(o) for o in organizations]
    return build_page(items, total, params)


@router.get("/{org_id}", response_model=OrganizationResponse)
async def get_organization(
    org_id: UUID = Depends(require_org_member),
    service: OrganizationService = Depends(get_organization_service),
) -> OrganizationResponse:
    """Get an organization by ID."""
    organization = await service.get(org_id)
    if not organization:
        raise _not_found()
    return OrganizationResponse.model_validate(organization)


@router.put("/{org_id}", response_model=OrganizationResponse)
async def update_organization(
    data: OrganizationUpdate,
    org_id: UUID = Depends(require_org_member),
    service: OrganizationService = Depends(get_organization_service),
) -> OrganizationResponse:
    """Replace an organization's name and description."""
    organization = await service.update(org_id, data)
    if not organization:
        raise _not_found()
    return OrganizationResponse.model_validate(organization)


@router.delete("/{org_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_organization(
    org_id: UUID = Depends(require_org_member),
    service: OrganizationService = Depends(get_organization_service),
) -> None:
    """Delete an organization with all of its services and versions."""
    deleted = await service.delete(org_id)
    if not deleted:
        raise _not_found()
    return None
