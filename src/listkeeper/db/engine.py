"""Async SQLAlchemy engine and session factory.

SQLAlchemy 2.0 async mode: create_async_engine for connection pooling,
AsyncSession for per-request database access, dependency injection via
FastAPI. Postgres (asyncpg) in production, SQLite (aiosqlite) in tests.
"""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from listkeeper.config import settings


def is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on
    for every connection."""

    @event.listens_for(engine.sync_engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(url: str, **kwargs) -> AsyncEngine:
    """Create an engine with pool settings suited to the backend."""
    if is_sqlite(url):
        eng = create_async_engine(url, echo=settings.debug, **kwargs)
        enable_sqlite_foreign_keys(eng)
        return eng
    # Connection pool: min 5, max 20 connections.
    return create_async_engine(
        url,
        echo=settings.debug,
        pool_size=5,
        max_overflow=15,
        **kwargs,
    )


engine = build_engine(settings.database_url)

# Session factory: each request gets its own session.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncSession:
    """FastAPI dependency: yields a session per request, auto-closes."""
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
