"""Test fixtures: a fresh in-memory database per test.

Pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own engine on an in-memory SQLite database
   (StaticPool keeps the single connection alive) with the schema created.
2. The app's get_db dependency is overridden to hand out that session.
3. The engine is disposed after the test; nothing leaks between tests.

HTTP clients go through the real auth pipeline: they fetch a CSRF token
from /csrf-cookie and carry it in X-XSRF-TOKEN, and sign in through
/register or /login like a browser would.
"""

import os

# Configure before the app (and its settings singleton) is imported.
os.environ.setdefault("LISTKEEPER_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LISTKEEPER_BCRYPT_ROUNDS", "4")

import uuid

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

from listkeeper.db.engine import build_engine, get_db
from listkeeper.db.models import Base
from listkeeper.main import app

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"
PASSWORD = "correct-horse-battery"


@pytest_asyncio.fixture()
async def db_session():
    """Per-test session on a brand-new schema."""
    engine = build_engine(
        TEST_DB_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session = AsyncSession(bind=engine, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()
        await engine.dispose()


@pytest_asyncio.fixture()
async def make_client(db_session):
    """Factory for HTTP clients sharing the test DB but with separate cookie jars.

    Each client has already fetched its CSRF token.
    """

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    clients = []

    async def _make() -> AsyncClient:
        transport = ASGITransport(app=app)
        ac = AsyncClient(transport=transport, base_url="http://test")
        clients.append(ac)
        await refresh_csrf(ac)
        return ac

    yield _make

    for ac in clients:
        await ac.aclose()
    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def client(make_client):
    """Guest client (no session yet)."""
    return await make_client()


@pytest_asyncio.fixture()
async def auth_client(make_client):
    """Client signed in as a freshly registered user."""
    ac = await make_client()
    await register(ac)
    return ac


async def refresh_csrf(ac: AsyncClient) -> str:
    """Fetch the CSRF token and send it on every following request."""
    r = await ac.get("/csrf-cookie")
    token = r.json()["csrf_token"]
    ac.headers["X-XSRF-TOKEN"] = token
    return token


async def register(ac: AsyncClient, email: str | None = None, **extra) -> dict:
    """Register (and so sign in) a new user. Returns the response body."""
    email = email or f"user-{uuid.uuid4().hex[:8]}@example.com"
    body = {
        "name": "Test User",
        "email": email,
        "password": PASSWORD,
        "password_confirmation": PASSWORD,
        **extra,
    }
    r = await ac.post("/register", json=body)
    assert r.status_code == 201, r.text
    return r.json()
