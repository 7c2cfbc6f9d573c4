"""Alembic environment for listkeeper.

The database URL always comes from LISTKEEPER_DATABASE_URL (via settings),
never from alembic.ini. SQLite targets run in batch mode, since SQLite
can't ALTER most constraints in place, and with foreign keys switched on
so ON DELETE CASCADE behaves the same as on Postgres.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine

from listkeeper.config import settings
from listkeeper.db.engine import enable_sqlite_foreign_keys, is_sqlite
from listkeeper.db.models import Base

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

DATABASE_URL = settings.database_url
target_metadata = Base.metadata


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        render_as_batch=is_sqlite(DATABASE_URL),
        compare_type=True,
        **kwargs,
    )


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of connecting."""
    _configure(
        url=DATABASE_URL,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def _run_sync(connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    connectable = create_async_engine(DATABASE_URL, poolclass=pool.NullPool)
    if is_sqlite(DATABASE_URL):
        enable_sqlite_foreign_keys(connectable)
    async with connectable.connect() as connection:
        await connection.run_sync(_run_sync)
    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
