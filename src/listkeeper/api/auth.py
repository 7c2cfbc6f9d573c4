"""Auth API: registration, login, logout, CSRF bootstrap.

Routes:
- GET /csrf-cookie → issue the anti-forgery token (cookie + body)
- POST /register → create an account and sign in
- POST /login → email/password → session cookie
- POST /logout → end the session, rotate the CSRF token
- GET /api/user → the signed-in user (mounted under /api)

The session token travels only in an HttpOnly cookie. The CSRF token is
readable by the SPA, which echoes it back in the X-XSRF-TOKEN header.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from listkeeper.auth.credentials import CredentialStore
from listkeeper.auth.dependencies import (
    get_current_user,
    get_session_manager,
    get_session_token,
)
from listkeeper.auth.identity import UserId
from listkeeper.auth.sessions import SessionManager, new_csrf_token, session_lifetime
from listkeeper.config import settings
from listkeeper.db.engine import get_db
from listkeeper.errors import Unauthenticated
from listkeeper.schemas.auth import (
    AuthResponse,
    CsrfTokenResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    UserRead,
)
from listkeeper.services.auth_service import AuthService

router = APIRouter()
user_router = APIRouter()


def _svc(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(db)


def _set_session_cookie(response: Response, token: str, remember: bool) -> None:
    response.set_cookie(
        settings.session_cookie,
        token,
        max_age=int(session_lifetime(remember).total_seconds()),
        httponly=True,
        samesite="lax",
        secure=settings.session_secure_cookie,
        path="/",
    )


def _set_csrf_cookie(response: Response, csrf_token: str) -> None:
    response.set_cookie(
        settings.csrf_cookie,
        csrf_token,
        httponly=False,
        samesite="lax",
        secure=settings.session_secure_cookie,
        path="/",
    )


# ─── CSRF bootstrap ─────────────────────────────────────


@router.get("/csrf-cookie", response_model=CsrfTokenResponse)
async def csrf_cookie(
    request: Request,
    response: Response,
    token: Optional[str] = Depends(get_session_token),
    sessions: SessionManager = Depends(get_session_manager),
):
    """Hand out the CSRF token for this browser, minting one if needed."""
    csrf_token = (
        await sessions.csrf_token(token)
        or request.cookies.get(settings.csrf_cookie)
        or new_csrf_token()
    )
    _set_csrf_cookie(response, csrf_token)
    return CsrfTokenResponse(csrf_token=csrf_token)


# ─── Register ───────────────────────────────────────────


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    request: Request,
    response: Response,
    svc: AuthService = Depends(_svc),
):
    """Create a new account and start a session for it."""
    user, token = await svc.register(
        name=body.name,
        email=body.email,
        password=body.password,
        password_confirmation=body.password_confirmation,
        remember=body.remember,
        current_token=request.cookies.get(settings.session_cookie),
        csrf_token=request.cookies.get(settings.csrf_cookie),
    )
    _set_session_cookie(response, token, body.remember)
    _set_csrf_cookie(response, await svc.sessions.csrf_token(token))
    return AuthResponse(message="Registered.", user=UserRead.model_validate(user))


# ─── Login ──────────────────────────────────────────────


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    svc: AuthService = Depends(_svc),
):
    """Email/password → session cookie. 422 on bad credentials."""
    user, token = await svc.login(
        email=body.email,
        password=body.password,
        remember=body.remember,
        current_token=request.cookies.get(settings.session_cookie),
        csrf_token=request.cookies.get(settings.csrf_cookie),
    )
    _set_session_cookie(response, token, body.remember)
    _set_csrf_cookie(response, await svc.sessions.csrf_token(token))
    return AuthResponse(message="Logged in.", user=UserRead.model_validate(user))


# ─── Logout ─────────────────────────────────────────────


@router.post(
    "/logout",
    response_model=MessageResponse,
    dependencies=[Depends(get_current_user)],
)
async def logout(
    response: Response,
    token: Optional[str] = Depends(get_session_token),
    svc: AuthService = Depends(_svc),
):
    csrf_token = await svc.logout(token)
    response.delete_cookie(settings.session_cookie, path="/")
    _set_csrf_cookie(response, csrf_token)
    return MessageResponse(message="Logged out.")


# ─── Current user ───────────────────────────────────────


@user_router.get("/user", response_model=UserRead)
async def get_me(
    user_id: UserId = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The signed-in user's profile."""
    user = await CredentialStore(db).get(user_id)
    if user is None:
        raise Unauthenticated()
    return user
