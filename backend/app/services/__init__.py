# Konnect Services
from app.services.auth import AuthService, TokenService, get_token_service
from app.services.membership import MembershipService
from app.services.organization import OrganizationService
from app.services.revocation import RevocationStore
from app.services.service import ServiceCatalog
from app.services.service_version import ServiceVersionService
from app.services.token_reaper import TokenReaper

__all__ = [
    "AuthService",
    "MembershipService",
    "OrganizationService",
    "RevocationStore",
    "ServiceCatalog",
    "ServiceVersionService",
    "TokenReaper",
    "TokenService",
    "get_token_service",
]
