"""Pytest configuration and fixtures for backend tests.

Database Handling:
- Uses TEST_DATABASE_URL when set (e.g. a PostgreSQL asyncpg URL)
- Otherwise runs against an in-memory SQLite database via aiosqlite
- Tables are created before and dropped after every test
"""

import os
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

# Set test environment variables before importing app modules
TEST_JWT_SECRET = "test-jwt-secret-key-0123456789abcdef"
os.environ["JWT_SECRET_KEY"] = TEST_JWT_SECRET

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["DATABASE_URL"] = TEST_DATABASE_URL

# Test user credentials
TEST_USER_EMAIL = "alice@example.com"
TEST_USER_NAME = "Alice"
TEST_USER_PASSWORD = "Str0ng!Password"


# --- Database Fixtures ---


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create a database engine with a fresh schema for testing."""
    from app.models.base import BaseModel

    if TEST_DATABASE_URL.startswith("sqlite"):
        engine = create_async_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_async_engine(TEST_DATABASE_URL, poolclass=NullPool)

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.create_all)

    yield engine

    # Drop all tables after test
    async with engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for testing."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client with database override."""
    from app.core.database import get_db
    from app.main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    # Clean up
    app.dependency_overrides.clear()


# --- Test Factories ---


@pytest.fixture
def token_service():
    """TokenService configured like the application."""
    from app.services.auth import get_token_service

    return get_token_service()


@pytest.fixture
def user_factory(db_session):
    """Factory for creating test User objects."""
    from app.models.user import User
    from app.services.auth import hash_password

    counter = 0

    async def _create_user(
        email: str | None = None,
        name: str = TEST_USER_NAME,
        password: str = TEST_USER_PASSWORD,
    ) -> User:
        nonlocal counter
        counter += 1
        user = User(
            email=email or f"user{counter}@example.com",
            name=name,
            password_hash=hash_password(password),
        )
        db_session.add(user)
        await db_session.flush()
        await db_session.refresh(user)
        return user

    return _create_user


@pytest_asyncio.fixture
async def test_user(user_factory):
    """Create the default test user."""
    return await user_factory(email=TEST_USER_EMAIL)


@pytest.fixture
def auth_headers_for(token_service):
    """Build Authorization headers carrying a fresh token for a user."""

    def _headers(user) -> dict[str, str]:
        token = token_service.issue(user.id, user.email)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def auth_headers(test_user, auth_headers_for) -> dict[str, str]:
    """Authorization headers for the default test user."""
    return auth_headers_for(test_user)


@pytest.fixture
def org_factory(db_session):
    """Factory for creating organizations with their creator enrolled."""
    from app.schemas.organization import OrganizationCreate
    from app.services.organization import OrganizationService

    async def _create_org(
        user,
        name: str = "Acme Corp",
        description: str = "An organization for testing",
    ):
        return await OrganizationService(db_session).create(
            OrganizationCreate(name=name, description=description), user.id
        )

    return _create_org


@pytest.fixture
def service_factory(db_session):
    """Factory for creating services in an organization."""
    from app.schemas.service import ServiceCreate
    from app.services.service import ServiceCatalog

    async def _create_service(
        org,
        name: str = "Payments API",
        description: str = "Handles payment processing",
    ):
        return await ServiceCatalog(db_session).create(
            org.id, ServiceCreate(name=name, description=description)
        )

    return _create_service


@pytest.fixture
def version_factory(db_session):
    """Factory for creating service versions."""
    from app.schemas.service_version import ServiceVersionCreate
    from app.services.service_version import ServiceVersionService

    async def _create_version(
        service,
        version: str = "1.0.0",
        description: str = "Initial release of the service",
        release_timestamp=None,
    ):
        return await ServiceVersionService(db_session).create(
            service.id,
            ServiceVersionCreate(
                version=version,
                description=description,
                release_timestamp=release_timestamp,
            ),
        )

    return _create_version


# --- Pytest Hooks for Auto-Marking ---


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their fixtures and location.

    - Tests using db_session, db_engine, or async_client are marked as 'integration'
    - Everything else is marked as 'unit'
    - Tests can override with explicit markers
    """
    integration_fixtures = {"db_session", "db_engine", "async_client"}

    for item in items:
        # Skip if already explicitly marked
        if any(mark.name in ("unit", "integration") for mark in item.iter_markers()):
            continue

        if hasattr(item, "fixturenames") and integration_fixtures & set(item.fixturenames):
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
