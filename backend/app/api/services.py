"""Service catalog API endpoints, scoped to one organization."""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import require_org_member
from app.api.pagination import list_params
from app.core import get_db
from app.schemas.pagination import ListParams, Page, build_page
from app.schemas.service import ServiceCreate, ServiceResponse, ServiceUpdate
from app.services.service import SORT_FIELDS, ServiceCatalog

INCLUDE_VERSION_COUNT = "versionCount"

router = APIRouter(
    prefix="/orgs/{org_id}/services",
    tags=["services"],
)


def get_service_catalog(db: AsyncSession = Depends(get_db)) -> ServiceCatalog:
    """Dependency to get the service catalog."""
    return ServiceCatalog(db)


def parse_include(
    include: str | None = Query(None, description="Comma-separated extras, e.g. versionCount"),
) -> set[str]:
    """Parse the comma-separated include parameter. Unknown entries are ignored."""
    if not include:
        return set()
    return {part.strip() for part in include.split(",") if part.strip()}


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Service not found",
    )


@router.post("", response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
async def create_service(
    data: ServiceCreate,
    org_id: UUID = Depends(require_org_member),
    catalog: ServiceCatalog = Depends(get_service_catalog),
) -> ServiceResponse:
    """Create a service in the organization."""
    service = await catalog.create(org_id, data)
    return ServiceResponse.from_service(service)


@router.get("", response_model=Page[ServiceResponse], response_model_exclude_none=True)
async def list_services(
    org_id: UUID = Depends(require_org_member),
    params: ListParams = Depends(list_params(SORT_FIELDS)),
    include: set[str] = Depends(parse_include),
    catalog: ServiceCatalog = Depends(get_service_catalog),
) -> Any:
    """List the organization's services."""
    services, total = await catalog.list(org_id, params)
    if INCLUDE_VERSION_COUNT in include:
        counts = await catalog.version_counts([s.id for s in services])
        items = [ServiceResponse.from_service(s, counts[s.id]) for s in services]
    else:
        items = [ServiceResponse.from_service(s) for s in services]
    return build_page(items, total, params)


@router.get("/{service_id}", response_model=ServiceResponse, response_model_exclude_none=True)
async def get_service(
    service_id: UUID,
    org_id: UUID = Depends(require_org_member),
    include: set[str] = Depends(parse_include),
    catalog: ServiceCatalog = Depends(get_service_catalog),
) -> ServiceResponse:
    """Get a service by ID."""
    service = await catalog.get(org_id, service_id)
    if not service:
        raise _not_found()
    if INCLUDE_VERSION_COUNT in include:
        counts = await catalog.version_counts([service.id])
        return ServiceResponse.from_service(service, counts[service.id])
    return ServiceResponse.from_service(service)


@router.put("/{service_id}", response_model=ServiceResponse, response_model_exclude_none=True)
async def update_service(
    service_id: UUID,
    data: ServiceUpdate,
    org_id: UUID = Depends(require_org_member),
    catalog: ServiceCatalog = Depends(get_service_catalog),
) -> ServiceResponse:
    """Replace a service's name and description."""
    service = await catalog.update(org_id, service_id, data)
    if not service:
        raise _not_found()
    return ServiceResponse.from_service(service)


@router.delete("/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_service(
    service_id: UUID,
    org_id: UUID = Depends(require_org_member),
    catalog: ServiceCatalog = Depends(get_service_catalog),
) -> None:
    """Delete a service and all of its versions."""
    deleted = await catalog.delete(org_id, service_id)
    if not deleted:
        raise _not_found()
    return None
