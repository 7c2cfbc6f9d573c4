"""API route aggregation.

All routers registered here get mounted in main.py.

Auth routes (/register, /login, /logout, /csrf-cookie) sit at the root;
data routes live under /api. The CSRF check is applied at the
include_router level so every state-changing route gets it without
touching individual handlers. Todo routes additionally require a session.
"""

from fastapi import APIRouter, Depends

from listkeeper.api.auth import router as auth_router
from listkeeper.api.auth import user_router
from listkeeper.api.health import router as health_router
from listkeeper.api.todos import router as todos_router
from listkeeper.auth.dependencies import get_current_user, verify_csrf

_csrf = [Depends(verify_csrf)]
_auth = [Depends(get_current_user)]

api_router = APIRouter()

# Session lifecycle: CSRF-checked, no session required (except logout)
api_router.include_router(auth_router, tags=["auth"], dependencies=_csrf)

# JSON API
_api = APIRouter(prefix="/api")
_api.include_router(health_router, tags=["health"])
_api.include_router(user_router, tags=["auth"], dependencies=_csrf + _auth)
_api.include_router(todos_router, tags=["todos"], dependencies=_csrf + _auth)

api_router.include_router(_api)
