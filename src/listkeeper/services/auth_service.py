"""Auth service: registration, login and logout.

Composes the CredentialStore (who is this?) with the SessionManager (keep
them signed in). Routes call this service; it never touches HTTP objects.
The caller passes in whatever session token and CSRF token the browser
presented and gets back the new session token to set as a cookie.

Session fixation: a session identifier presented before authentication is
never kept. If it already belongs to the user logging in, it is
regenerated; otherwise it is logged out and a new session is opened.
"""

from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from listkeeper.auth.credentials import CredentialStore
from listkeeper.auth.identity import SessionToken, UserId
from listkeeper.auth.sessions import SessionManager
from listkeeper.db.models import User
from listkeeper.errors import AutoLoginFailed, InvalidCredentials, ValidationError

logger = structlog.get_logger()


class AuthService:
    """Business logic for account sign-up and sign-in."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.credentials = CredentialStore(db)
        self.sessions = SessionManager(db)

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        password_confirmation: Optional[str] = None,
        remember: bool = False,
        current_token: Optional[str] = None,
        csrf_token: Optional[str] = None,
    ) -> tuple[User, SessionToken]:
        """Create an account and sign it in straight away.

        If the new credentials do not verify right after being stored, the
        two halves of auth disagree about the user; that raises
        AutoLoginFailed rather than returning a half-registered account.
        """
        if password_confirmation is not None and password_confirmation != password:
            raise ValidationError(
                {"password": ["The password field confirmation does not match."]}
            )

        user = await self.credentials.register(name, email, password)
        await self.db.commit()

        user_id = await self.credentials.verify(email, password)
        if user_id is None:
            logger.error("auth.auto_login_failed", user_id=user.id)
            raise AutoLoginFailed()

        token = await self._establish(user_id, remember, current_token, csrf_token)
        logger.info("auth.registered", user_id=user_id)
        return user, token

    async def login(
        self,
        email: str,
        password: str,
        remember: bool = False,
        current_token: Optional[str] = None,
        csrf_token: Optional[str] = None,
    ) -> tuple[User, SessionToken]:
        user_id = await self.credentials.verify(email, password)
        if user_id is None:
            logger.info("auth.login_failed")
            raise InvalidCredentials()

        token = await self._establish(user_id, remember, current_token, csrf_token)
        user = await self.credentials.get(user_id)
        logger.info("auth.login", user_id=user_id, remember=remember)
        return user, token

    async def logout(self, token: Optional[str]) -> str:
        """End the session. Returns the rotated guest CSRF token."""
        return await self.sessions.logout(token)

    async def _establish(
        self,
        user_id: UserId,
        remember: bool,
        current_token: Optional[str],
        csrf_token: Optional[str],
    ) -> SessionToken:
        if current_token:
            current_user = await self.sessions.resolve(current_token)
            if current_user == user_id:
                return await self.sessions.regenerate(current_token, remember=remember)
            await self.sessions.logout(current_token)
        return await self.sessions.login(user_id, remember=remember, csrf_token=csrf_token)
