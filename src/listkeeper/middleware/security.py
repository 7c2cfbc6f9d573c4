"""Response hardening for a cookie-authenticated JSON API.

Every response is per-user (or carries a fresh CSRF cookie), so none of
it may be stored by browsers or shared caches. HSTS is sent when the
request came over HTTPS or the deployment issues Secure session cookies,
since those only work over HTTPS anyway.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from listkeeper.config import settings

_STATIC_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        response.headers.update(_STATIC_HEADERS)
        response.headers.setdefault("Cache-Control", "no-store")
        if request.url.scheme == "https" or settings.session_secure_cookie:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        return response
