# Konnect Core Module
from .config import get_settings, settings
from .database import (
    Base,
    PersistenceError,
    async_session_maker,
    check_db_connection,
    engine,
    get_db,
)
from .logging import setup_logging

__all__ = [
    "settings",
    "get_settings",
    "setup_logging",
    "Base",
    "PersistenceError",
    "engine",
    "async_session_maker",
    "get_db",
    "check_db_connection",
]
