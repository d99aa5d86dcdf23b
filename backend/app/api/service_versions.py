"""Service version API endpoints."""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import require_org_member
from app.api.pagination import list_params
from app.core import get_db
from app.models import Service
from app.schemas.pagination import ListParams, Page, build_page
from app.schemas.service_version import (
    ServiceVersionCreate,
    ServiceVersionResponse,
    ServiceVersionUpdate,
)
from app.services.service import ServiceCatalog
from app.services.service_version import (
    SORT_FIELDS,
    DuplicateVersionError,
    ServiceVersionService,
)

router = APIRouter(
    prefix="/orgs/{org_id}/services/{service_id}/versions",
    tags=["service versions"],
)


def get_version_service(db: AsyncSession = Depends(get_db)) -> ServiceVersionService:
    """Dependency to get service version service."""
    return ServiceVersionService(db)


async def get_parent_service(
    service_id: UUID,
    org_id: UUID = Depends(require_org_member),
    db: AsyncSession = Depends(get_db),
) -> Service:
    """Resolve the service named in the path within the caller's organization."""
    service = await ServiceCatalog(db).get(org_id, service_id)
    if not service:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Service not found",
        )
    return service


def _version_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Service version not found",
    )


@router.post("", response_model=ServiceVersionResponse, status_code=status.HTTP_201_CREATED)
async def create_version(
    data: ServiceVersionCreate,
    service: Service = Depends(get_parent_service),
    versions: ServiceVersionService = Depends(get_version_service),
) -> ServiceVersionResponse:
    """Create a version of the service. Returns 409 if the tag already exists."""
    try:
        service_version = await versions.create(service.id, data)
    except DuplicateVersionError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        ) from e
    return ServiceVersionResponse.model_validate(service_version)


@router.get("", response_model=Page[ServiceVersionResponse])
async def list_versions(
    params: ListParams = Depends(list_params(SORT_FIELDS)),
    service: Service = Depends(get_parent_service),
    versions: ServiceVersionService = Depends(get_version_service),
) -> Any:
    """List the service's versions. q matches a version prefix."""
    items, total = await versions.list(service.id, params)
    return build_page([ServiceVersionResponse.model_validate(v) for v in items], total, params)


@router.get("/{version_id}", response_model=ServiceVersionResponse)
async def get_version(
    version_id: UUID,
    service: Service = Depends(get_parent_service),
    versions: ServiceVersionService = Depends(get_version_service),
) -> ServiceVersionResponse:
    """Get a service version by ID."""
    service_version = await versions.get(service.id, version_id)
    if not service_version:
        raise _version_not_found()
    return ServiceVersionResponse.model_validate(service_version)


@router.patch("/{version_id}", response_model=ServiceVersionResponse)
async def update_version(
    version_id: UUID,
    data: ServiceVersionUpdate,
    service: Service = Depends(get_parent_service),
    versions: ServiceVersionService = Depends(get_version_service),
) -> ServiceVersionResponse:
    """Update a version's description and/or release timestamp."""
    service_version = await versions.update(service.id, version_id, data)
    if not service_version:
        raise _version_not_found()
    return ServiceVersionResponse.model_validate(service_version)


@router.delete("/{version_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_version(
    version_id: UUID,
    service: Service = Depends(get_parent_service),
    versions: ServiceVersionService = Depends(get_version_service),
) -> None:
    """Delete a service version."""
    deleted = await versions.delete(service.id, version_id)
    if not deleted:
        raise _version_not_found()
    return None
