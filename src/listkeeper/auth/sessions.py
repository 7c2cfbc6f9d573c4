"""Session manager: server-side login sessions.

Each session row binds one opaque token to one user. The token itself is
never stored; rows are looked up by its sha256, the same way API keys are
usually kept. A user may hold any number of sessions at once (one per
browser or device), and each expires on its own schedule:
session_lifetime_minutes by default, remember_lifetime_days when the user
asked to be remembered.

Every session also carries an anti-forgery (CSRF) token. Logging in keeps
the guest token the browser already has; logging out hands back a fresh one.
"""

import hashlib
import secrets
from datetime import timedelta
from typing import Optional

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from listkeeper.auth.identity import SessionToken, UserId
from listkeeper.config import settings
from listkeeper.db.models import Session, utcnow
from listkeeper.errors import AuthenticationError

logger = structlog.get_logger()


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def new_csrf_token() -> str:
    return secrets.token_urlsafe(32)


def session_lifetime(remember: bool) -> timedelta:
    if remember:
        return timedelta(days=settings.remember_lifetime_days)
    return timedelta(minutes=settings.session_lifetime_minutes)


class SessionManager:
    """Creates, resolves, rotates and destroys sessions.

    Each public method is its own transaction and commits before returning.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def login(
        self,
        user_id: UserId,
        remember: bool = False,
        csrf_token: Optional[str] = None,
    ) -> SessionToken:
        """Open a new session for user_id. Existing sessions are left alone."""
        token = SessionToken(secrets.token_urlsafe(32))
        if not csrf_token or len(csrf_token) > 64:
            csrf_token = new_csrf_token()

        self.db.add(
            Session(
                token_hash=hash_token(token),
                user_id=user_id,
                csrf_token=csrf_token,
                remember=remember,
                expires_at=utcnow() + session_lifetime(remember),
            )
        )
        await self.db.commit()
        logger.info("session.created", user_id=user_id, remember=remember)
        return token

    async def resolve(self, token: Optional[str]) -> Optional[UserId]:
        """Map a token to its user, or None when unknown or expired."""
        if not token:
            return None
        row = await self._live(token)
        if row is None:
            # Drop the row if it exists but has expired
            await self.db.execute(
                delete(Session).where(
                    Session.token_hash == hash_token(token),
                    Session.expires_at <= utcnow(),
                ).execution_options(synchronize_session=False)
            )
            await self.db.commit()
            return None

        row.last_seen_at = utcnow()
        await self.db.commit()
        return UserId(row.user_id)

    async def regenerate(
        self, token: str, remember: Optional[bool] = None
    ) -> SessionToken:
        """Give a live session a new identifier; the old token stops working.

        When remember is given the expiry is recomputed from now.
        """
        row = await self._live(token)
        if row is None:
            raise AuthenticationError("Session is not active.")

        new_token = SessionToken(secrets.token_urlsafe(32))
        row.token_hash = hash_token(new_token)
        if remember is not None:
            row.remember = remember
            row.expires_at = utcnow() + session_lifetime(remember)
        await self.db.commit()
        logger.info("session.regenerated", user_id=row.user_id)
        return new_token

    async def logout(self, token: Optional[str]) -> str:
        """End the session (if any) and return a fresh guest CSRF token.

        Safe to call with an unknown or missing token.
        """
        if token:
            await self.db.execute(
                delete(Session).where(Session.token_hash == hash_token(token))
            )
            await self.db.commit()
            logger.info("session.destroyed")
        return new_csrf_token()

    async def csrf_token(self, token: Optional[str]) -> Optional[str]:
        if not token:
            return None
        row = await self._live(token)
        return row.csrf_token if row else None

    async def purge_expired(self) -> int:
        """Delete every expired session. Returns the number removed."""
        result = await self.db.execute(
            delete(Session).where(Session.expires_at <= utcnow()).execution_options(
                synchronize_session=False
            )
        )
        await self.db.commit()
        logger.info("session.purged", count=result.rowcount)
        return result.rowcount

    async def _live(self, token: str) -> Optional[Session]:
        result = await self.db.execute(
            select(Session).where(
                Session.token_hash == hash_token(token),
                Session.expires_at > utcnow(),
            )
        )
        return result.scalars().first()
