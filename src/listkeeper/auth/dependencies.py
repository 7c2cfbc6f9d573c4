"""FastAPI auth dependencies.

Used as Depends() in routers to pull the session cookie off the request,
resolve it to a UserId, and enforce the anti-forgery token on
state-changing requests.

CSRF check: the X-XSRF-TOKEN header must equal the CSRF token stored on
the caller's session. Guests (no session yet, e.g. on /login) use the
double-submit form instead: header must equal the XSRF-TOKEN cookie.
"""

import secrets
from typing import Optional

import structlog
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from listkeeper.auth.identity import UserId
from listkeeper.auth.sessions import SessionManager
from listkeeper.config import settings
from listkeeper.db.engine import get_db
from listkeeper.errors import CsrfTokenMismatch, Unauthenticated

logger = structlog.get_logger()

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "TRACE"})


def get_session_token(request: Request) -> Optional[str]:
    return request.cookies.get(settings.session_cookie)


def get_session_manager(db: AsyncSession = Depends(get_db)) -> SessionManager:
    return SessionManager(db)


async def get_current_user_optional(
    token: Optional[str] = Depends(get_session_token),
    sessions: SessionManager = Depends(get_session_manager),
) -> Optional[UserId]:
    """Soft auth: None when there is no live session."""
    return await sessions.resolve(token)


async def get_current_user(
    user_id: Optional[UserId] = Depends(get_current_user_optional),
) -> UserId:
    """Hard auth: 401 when there is no live session."""
    if user_id is None:
        raise Unauthenticated()
    return user_id


async def verify_csrf(
    request: Request,
    token: Optional[str] = Depends(get_session_token),
    sessions: SessionManager = Depends(get_session_manager),
) -> None:
    if not settings.csrf_enabled or request.method in SAFE_METHODS:
        return

    presented = request.headers.get(settings.csrf_header)
    expected = await sessions.csrf_token(token) or request.cookies.get(
        settings.csrf_cookie
    )
    if not presented or not expected or not secrets.compare_digest(presented, expected):
        logger.warning("csrf.mismatch", method=request.method, path=request.url.path)
        raise CsrfTokenMismatch()
