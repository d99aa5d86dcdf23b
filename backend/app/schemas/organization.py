"""Pydantic schemas for Organization API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class OrganizationBase(BaseModel):
    """Base schema for organization data."""

    name: str = Field(..., min_length=3, max_length=100)
    description: str = Field(..., min_length=10, max_length=1000)


class OrganizationCreate(OrganizationBase):
    """Schema for creating an organization. The caller becomes its first member."""


class OrganizationUpdate(OrganizationBase):
    """Schema for replacing an organization's name and description."""


class OrganizationResponse(BaseModel):
    """Schema for organization response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str
    created_by: UUID
    created_at: datetime
    updated_at: datetime
