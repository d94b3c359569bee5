import logging
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool
from duet.core.config import settings
from duet.core.database_url import get_database_url

logger = logging.getLogger(__name__)

engine = None
async_session_maker = None


async def init_db():
    """Initialize database connection and create tables"""
    global engine, async_session_maker

    database_url = get_database_url()

    if database_url.startswith("sqlite"):
        # SQLite configuration for local development and tests
        engine = create_async_engine(
            database_url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
            echo=settings.DEBUG
        )
    else:
        engine = create_async_engine(
            database_url,
            pool_pre_ping=True,
            pool_recycle=300,  # 5 minutes
            echo=settings.DEBUG
        )

    async_session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    # Create all tables
    from duet.models.base import Base
    from duet.models.user import UserDB  # noqa: F401
    from duet.models.task import TaskDB, ActionDB  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database initialized (%s)", engine.url.get_backend_name())


async def close_db():
    """Close database connection"""
    global engine, async_session_maker
    if engine:
        await engine.dispose()
    engine = None
    async_session_maker = None


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get database session"""
    if async_session_maker is None:
        await init_db()

    async with async_session_maker() as session:
        yield session
