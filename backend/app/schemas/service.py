"""Pydantic schemas for Service API."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class ServiceBase(BaseModel):
    """Base schema for service data."""

    name: str = Field(..., min_length=3, max_length=100)
    description: str = Field(..., min_length=10, max_length=1000)


class ServiceCreate(ServiceBase):
    """Schema for creating a service within an organization."""


class ServiceUpdate(ServiceBase):
    """Schema for replacing a service's name and description."""


class ServiceMetadata(BaseModel):
    """Optional computed attributes requested via the include parameter."""

    version_count: int | None = None


class ServiceResponse(BaseModel):
    """Schema for service response.

    Built field by field with `from_service()`: ORM models carry SQLAlchemy's
    table `metadata`, which would shadow the optional `metadata` field here.
    """

    id: UUID
    name: str
    description: str
    organization_id: UUID
    created_at: datetime
    updated_at: datetime
    metadata: ServiceMetadata | None = None

    @classmethod
    def from_service(cls, service: Any, version_count: int | None = None) -> "ServiceResponse":
        """Build a response from a Service row, optionally with its version count."""
        return cls(
            id=service.id,
            name=service.name,
            description=service.description,
            organization_id=service.organization_id,
            created_at=service.created_at,
            updated_at=service.updated_at,
            metadata=(
                ServiceMetadata(version_count=version_count)
                if version_count is not None
                else None
            ),
        )
