import os

# Settings are read once at import, so the test configuration goes in first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-that-is-at-least-32-bytes"
os.environ["BCRYPT_ROUNDS"] = "4"

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from duet.main import app
from duet.models.base import Base
from duet.models.user import UserDB  # noqa: F401
from duet.models.task import TaskDB, ActionDB  # noqa: F401
from duet.repositories.user import UserRepository


@pytest_asyncio.fixture
async def db_session():
    """Fresh in-memory database per test"""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture
async def alice(db_session):
    return await UserRepository().create_user(db_session, "alice", "not-a-real-hash")


@pytest_asyncio.fixture
async def bob(db_session):
    return await UserRepository().create_user(db_session, "bob", "not-a-real-hash")


@pytest.fixture
def client():
    """TestClient with the app lifespan, so each test gets its own database"""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def signup(client):
    """Sign a user up and return Authorization headers for them"""
    def _signup(username: str, password: str = "pw1") -> dict:
        response = client.post("/rest/signup", json={"username": username, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}
    return _signup
