"""
Test infrastructure for the Conduit API.

Strategy
--------
- SQLite in-memory via aiosqlite, so the suite needs neither Postgres
  nor Redis.
- StaticPool keeps every session on the one connection that owns the
  in-memory database.
- ``get_db`` is overridden; the auth dependencies depend on it, so they
  share the request's test session too.
- Tables are created before and dropped after each test.
- The tag cache is disabled by leaving ``cache._redis`` as None.
- bcrypt runs at its minimum cost factor to keep registration fast.
"""
import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["BCRYPT_ROUNDS"] = "4"

import pytest_asyncio  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.cache import cache  # noqa: E402
from app.database import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.middleware import install_query_counter  # noqa: E402

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

install_query_counter(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """A live session for seeding data or asserting on stored rows."""
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """httpx client bound to the ASGI app, with the tag cache disabled."""
    cache._redis = None
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def register(async_client: AsyncClient):
    """
    Register a user through the API and return the ``Authorization``
    headers for it.

    Usage::

        headers = await register("germione")
    """

    async def _register(username: str, email: str | None = None, password: str = "passeword") -> dict:
        resp = await async_client.post("/api/users", json={
            "user": {
                "username": username,
                "email": email or f"{username}@prisma.com",
                "password": password,
            },
        })
        assert resp.status_code == 200, resp.text
        return {"Authorization": f"Token {resp.json()['user']['token']}"}

    return _register


@pytest_asyncio.fixture
async def session_factory():
    """The test sessionmaker, for tests that need several independent sessions."""
    return async_session_test
