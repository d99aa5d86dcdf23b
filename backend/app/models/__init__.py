# Konnect Models
from app.models.base import BaseModel
from app.models.organization import Organization, OrganizationMember
from app.models.service import Service
from app.models.service_version import ServiceVersion
from app.models.token_blacklist import BlacklistedToken
from app.models.user import User

__all__ = [
    "BaseModel",
    "BlacklistedToken",
    "Organization",
    "OrganizationMember",
    "Service",
    "ServiceVersion",
    "User",
]
