"""Konnect Database Configuration - Async SQLAlchemy."""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from app.core.config import settings


class PersistenceError(Exception):
    """A datastore operation failed."""

    pass


def build_engine(database_url: str, **overrides: Any) -> AsyncEngine:
    """Create an async engine with settings appropriate to the backend.

    Connection pool settings are configurable via environment variables:
    - DB_POOL_SIZE: Number of connections to keep in the pool (default: 20)
    - DB_MAX_OVERFLOW: Additional connections allowed beyond pool_size (default: 20)
    - DB_POOL_TIMEOUT: Seconds to wait before giving up on a connection (default: 30)
    - DB_POOL_RECYCLE: Recycle connections after this many seconds (default: 1800)

    SQLite (local runs and tests) gets a single shared connection instead, so
    an in-memory database is visible to every session.
    """
    if database_url.startswith("sqlite"):
        options: dict[str, Any] = {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    else:
        options = {
            "pool_size": settings.db_pool_size,
            "max_overflow": settings.db_max_overflow,
            "pool_timeout": settings.db_pool_timeout,
            "pool_recycle": settings.db_pool_recycle,
            "pool_pre_ping": True,  # Verify connection before use
        }
    # Only echo SQL when debug is explicitly enabled
    options["echo"] = settings.debug and settings.log_level == "DEBUG"
    options.update(overrides)
    return create_async_engine(database_url, **options)


engine = build_engine(settings.database_url)

# Session factory
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Base class for models
Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get database session."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except (Exception, BaseException):
            # Catch both regular exceptions and BaseExceptions (e.g., asyncio.CancelledError)
            # so a cancelled request still rolls back its in-flight work
            await session.rollback()
            raise
        finally:
            await session.close()


async def check_db_connection() -> bool:
    """Check if database is reachable."""
    try:
        async with async_session_maker() as session:
            await session.execute(text("SELECT 1"))
            return True
    except (OSError, ConnectionError) as e:
        # Expected network/connection errors
        from app.core.logging import get_logger

        get_logger("database").debug(f"Database connection check failed: {e}")
        return False
    except Exception as e:
        # Unexpected errors - log them
        from app.core.logging import get_logger

        get_logger("database").warning(f"Unexpected error checking database connection: {e}")
        return False
