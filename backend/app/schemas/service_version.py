"""Pydantic schemas for ServiceVersion API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

# Semantic Versioning 2.0.0, e.g. 1.0.0, 2.1.3-beta, 1.0.0+build.5
SEMVER_PATTERN = (
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)


class ServiceVersionCreate(BaseModel):
    """Schema for creating a service version."""

    version: str = Field(
        ...,
        max_length=255,
        pattern=SEMVER_PATTERN,
        description="Semantic version (e.g., 1.0.0, 2.1.3-beta)",
    )
    description: str = Field(..., min_length=10, max_length=1000)
    release_timestamp: datetime | None = Field(
        None, description="Release time; defaults to the time of creation"
    )


class ServiceVersionUpdate(BaseModel):
    """Schema for updating a service version. The version tag is immutable."""

    description: str | None = Field(None, min_length=10, max_length=1000)
    release_timestamp: datetime | None = None


class ServiceVersionResponse(BaseModel):
    """Schema for service version response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    version: str
    description: str
    release_timestamp: datetime
    service_id: UUID
    created_at: datetime
    updated_at: datetime
