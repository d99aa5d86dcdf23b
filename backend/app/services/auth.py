"""Authentication service: JWT access tokens, password hashing and user login."""

import hashlib
import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import VerificationError, VerifyMismatchError
from jwt.exceptions import PyJWTError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import settings
from app.models.user import User

logger = logging.getLogger(__name__)

# Argon2 password hasher with recommended parameters
# Memory: 64 MiB, Time: 3 iterations, Parallelism: 4
ph = PasswordHasher(
    time_cost=3,
    memory_cost=65536,
    parallelism=4,
    hash_len=32,
    salt_len=16,
)

# Claims every access token must carry
REQUIRED_CLAIMS = ["sub", "email", "iat", "nbf", "exp"]

Clock = Callable[[], datetime]


def utc_clock() -> datetime:
    return datetime.now(UTC)


class AuthError(Exception):
    """Base authentication error."""

    pass


class InvalidCredentialsError(AuthError):
    """Invalid email or password."""

    pass


class EmailAlreadyRegisteredError(AuthError):
    """A user with this email already exists."""

    pass


class TokenError(AuthError):
    """JWT token error."""

    pass


class InvalidTokenError(TokenError):
    """JWT token is invalid: bad signature, malformed, or outside its validity window."""

    pass


class TokenExpiredError(InvalidTokenError):
    """JWT token has expired."""

    pass


@dataclass(frozen=True)
class TokenClaims:
    """Decoded access token claims."""

    user_id: str
    email: str
    issued_at: datetime
    not_before: datetime
    expires_at: datetime


def hash_password(password: str) -> str:
    """Hash a password using Argon2id."""
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash using constant-time comparison."""
    try:
        ph.verify(password_hash, password)
        return True
    except (VerifyMismatchError, VerificationError):
        return False


class TokenService:
    """Issues, validates and fingerprints bearer access tokens.

    Stateless apart from the signing secret. The clock is injectable so
    expiry behaviour can be tested without sleeping.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        ttl_minutes: int = 60,
        clock: Clock | None = None,
    ):
        self._secret_key = secret_key
        self._algorithm = algorithm
        self.ttl = timedelta(minutes=ttl_minutes)
        self._clock = clock or utc_clock

    def issue(self, user_id: UUID | str, email: str) -> str:
        """Create a signed access token valid for the configured TTL."""
        now = self._clock().replace(microsecond=0)
        payload = {
            "sub": str(user_id),
            "email": email,
            "iat": now,
            "nbf": now,
            "exp": now + self.ttl,
            # Distinguishes tokens issued to the same user within one second
            "jti": secrets.token_hex(16),
        }
        token = jwt.encode(payload, self._secret_key, algorithm=self._algorithm)
        # PyJWT 2.x returns str; older type stubs may declare bytes
        return str(token)

    def validate(self, token: str) -> TokenClaims:
        """Verify signature, structure and the nbf/exp window against the clock."""
        claims = self._decode(token)
        now = self._clock()
        if now < claims.not_before:
            raise InvalidTokenError("Token is not yet valid")
        if now >= claims.expires_at:
            raise TokenExpiredError("Token has expired")
        return claims

    def extract_claims_unchecked(self, token: str) -> TokenClaims:
        """Verify signature and structure but skip time-based checks.

        Only for logout, so a token can still be revoked at the edge of
        its validity window.
        """
        return self._decode(token)

    @staticmethod
    def fingerprint(token: str) -> str:
        """Return the SHA-256 hex digest of the raw token string."""
        return hashlib.sha256(token.encode()).hexdigest()

    def _decode(self, token: str) -> TokenClaims:
        try:
            payload: dict[str, Any] = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={
                    "require": REQUIRED_CLAIMS,
                    # Time claims are checked against self._clock in validate()
                    "verify_exp": False,
                    "verify_nbf": False,
                    "verify_iat": False,
                },
            )
        except PyJWTError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e

        try:
            return TokenClaims(
                user_id=str(payload["sub"]),
                email=str(payload["email"]),
                issued_at=datetime.fromtimestamp(payload["iat"], tz=UTC),
                not_before=datetime.fromtimestamp(payload["nbf"], tz=UTC),
                expires_at=datetime.fromtimestamp(payload["exp"], tz=UTC),
            )
        except (TypeError, ValueError, OverflowError) as e:
            raise InvalidTokenError(f"Invalid token claims: {e}") from e


def get_token_service() -> TokenService:
    """Build a TokenService from application settings."""
    return TokenService(
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        ttl_minutes=settings.jwt_access_token_expire_minutes,
    )


class AuthService:
    """Service for user registration and login."""

    def __init__(self, session: AsyncSession, token_service: TokenService):
        self.session = session
        self.token_service = token_service

    async def get_user_by_email(self, email: str) -> User | None:
        """Get user by email (case-insensitive)."""
        result = await self.session.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        result = await self.session.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def register(self, email: str, name: str, password: str) -> User:
        """Create a new user account."""
        email = email.lower()
        if await self.get_user_by_email(email) is not None:
            raise EmailAlreadyRegisteredError("User with this email already exists")

        user = User(
            email=email,
            name=name,
            password_hash=hash_password(password),
        )
        self.session.add(user)
        try:
            await self.session.flush()
        except IntegrityError as e:
            # Lost a race with a concurrent registration of the same email
            raise EmailAlreadyRegisteredError("User with this email already exists") from e
        await self.session.refresh(user)

        logger.info(f"Registered user: {user.id}")
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """Authenticate a user and return the user object.

        Raises InvalidCredentialsError for both "user not found" and
        "wrong password" to prevent user enumeration.
        """
        user = await self.get_user_by_email(email)

        if user is None:
            # Perform a dummy hash to prevent timing attacks
            verify_password(password, hash_password("dummy"))
            raise InvalidCredentialsError("Invalid email/password")

        if not verify_password(password, user.password_hash):
            raise InvalidCredentialsError("Invalid email/password")

        return user

    def create_tokens(self, user: User) -> dict[str, Any]:
        """Create an access token response for a user."""
        return {
            "access_token": self.token_service.issue(user.id, user.email),
            "token_type": "bearer",
            "expires_in": int(self.token_service.ttl.total_seconds()),
        }
