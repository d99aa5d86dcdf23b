"""Request authentication and organization access dependencies."""

import logging
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import PersistenceError, get_db
from app.services.auth import (
    InvalidTokenError,
    TokenExpiredError,
    TokenService,
    get_token_service,
)
from app.services.membership import MembershipService
from app.services.revocation import RevocationStore

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class AuthenticatedUser:
    """Identity attached to a request that passed token authentication."""

    user_id: UUID
    email: str
    token: str


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_bearer_token(request: Request) -> str:
    """Extract the raw bearer token from the Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise _unauthorized("Authorization header required")

    if not auth_header.startswith(BEARER_PREFIX) or not auth_header[len(BEARER_PREFIX) :].strip():
        raise _unauthorized("Invalid authorization header format")

    return auth_header[len(BEARER_PREFIX) :].strip()


async def get_current_user(
    token: str = Depends(get_bearer_token),
    db: AsyncSession = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
) -> AuthenticatedUser:
    """Dependency to get the current authenticated user from the bearer token.

    The caller only ever learns "Invalid token"; the reason is logged.
    """
    try:
        claims = token_service.validate(token)
        user_id = UUID(claims.user_id)
    except TokenExpiredError as e:
        logger.debug(f"Rejected expired token: {e}")
        raise _unauthorized("Invalid token") from e
    except (InvalidTokenError, ValueError) as e:
        logger.debug(f"Rejected invalid token: {e}")
        raise _unauthorized("Invalid token") from e

    if await RevocationStore(db).is_revoked(token_service.fingerprint(token)):
        logger.debug(f"Rejected revoked token for user {user_id}")
        raise _unauthorized("Invalid token")

    return AuthenticatedUser(user_id=user_id, email=claims.email, token=token)


async def require_org_member(
    org_id: UUID,
    current_user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UUID:
    """Dependency that admits only members of the organization in the path.

    A missing organization is reported the same way as non-membership.
    """
    try:
        is_member = await MembershipService(db).check_membership(current_user.user_id, org_id)
    except PersistenceError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to check organization access",
        ) from e

    if not is_member:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not authorized to perform the request",
        )
    return org_id
