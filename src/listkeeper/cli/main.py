"""listkeeper CLI: run the server and do small admin chores.

Usage:
    listkeeper serve                               # Run the API with uvicorn
    listkeeper purge-sessions                      # Delete expired sessions
    listkeeper create-user "Ada" ada@example.com   # Prompts for a password
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import sys

import click

from listkeeper import __version__


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    When already inside an event loop (e.g. CliRunner in async tests),
    the coroutine runs on a worker thread instead.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


async def _with_session(fn):
    """Open a DB session from the app's factory and pass it to fn."""
    from listkeeper.db.engine import async_session_factory

    async with async_session_factory() as db:
        return await fn(db)


@click.group()
@click.version_option(version=__version__, prog_name="listkeeper")
def main():
    """listkeeper: multi-user to-do lists."""


@main.command()
@click.option("--host", default=None, help="Bind address (default from settings)")
@click.option("--port", default=None, type=int, help="Port (default from settings)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: str | None, port: int | None, reload: bool):
    """Run the HTTP API."""
    import uvicorn

    from listkeeper.config import settings

    uvicorn.run(
        "listkeeper.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@main.command("purge-sessions")
def purge_sessions():
    """Delete every expired login session."""
    from listkeeper.auth.sessions import SessionManager

    async def _purge(db):
        return await SessionManager(db).purge_expired()

    removed = _run(_with_session(_purge))
    click.echo(f"Removed {removed} expired session(s).")


@main.command("create-user")
@click.argument("name")
@click.argument("email")
@click.option(
    "--password",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="Password (prompted if omitted)",
)
def create_user(name: str, email: str, password: str):
    """Register a user without going through HTTP."""
    from listkeeper.auth.credentials import CredentialStore
    from listkeeper.errors import ValidationError

    async def _create(db):
        user = await CredentialStore(db).register(name, email, password)
        await db.commit()
        return user

    try:
        user = _run(_with_session(_create))
    except ValidationError as e:
        for field, messages in e.errors.items():
            for message in messages:
                click.secho(f"{field}: {message}", fg="red", err=True)
        sys.exit(1)

    click.secho(f"Created user {user.id} <{user.email}>", fg="green")


if __name__ == "__main__":
    main()
