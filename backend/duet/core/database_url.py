"""
Database URL normalisation for the async engine
"""
import logging

from duet.core.config import settings

logger = logging.getLogger(__name__)

_ASYNC_DRIVERS = {
    "postgres://": "postgresql+asyncpg://",
    "postgresql://": "postgresql+asyncpg://",
    "sqlite://": "sqlite+aiosqlite://",
}


def get_database_url() -> str:
    """Get the configured database URL with an async driver selected"""
    database_url = settings.DATABASE_URL.strip()

    for prefix, replacement in _ASYNC_DRIVERS.items():
        if database_url.startswith(prefix):
            database_url = replacement + database_url[len(prefix):]
            logger.debug("Using async driver %s", replacement.rstrip(":/"))
            break

    return database_url
