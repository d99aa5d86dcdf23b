# Konnect Pydantic Schemas
from app.schemas.organization import (
    OrganizationCreate,
    OrganizationResponse,
    OrganizationUpdate,
)
from app.schemas.pagination import ListParams, Page, PageMeta, build_page
from app.schemas.service import (
    ServiceCreate,
    ServiceMetadata,
    ServiceResponse,
    ServiceUpdate,
)
from app.schemas.service_version import (
    ServiceVersionCreate,
    ServiceVersionResponse,
    ServiceVersionUpdate,
)
from app.schemas.user import LoginRequest, RegisterRequest, TokenResponse, UserResponse

__all__ = [
    "ListParams",
    "LoginRequest",
    "OrganizationCreate",
    "OrganizationResponse",
    "OrganizationUpdate",
    "Page",
    "PageMeta",
    "RegisterRequest",
    "ServiceCreate",
    "ServiceMetadata",
    "ServiceResponse",
    "ServiceUpdate",
    "ServiceVersionCreate",
    "ServiceVersionResponse",
    "ServiceVersionUpdate",
    "TokenResponse",
    "UserResponse",
    "build_page",
]
