"""Security headers middleware.

Learn: Every HTTP response gets the fixed headers in BASE_HEADERS:
- X-Content-Type-Options: no MIME sniffing
- X-Frame-Options: the director dashboard can't be framed (clickjacking)
- Referrer-Policy: join codes live in URLs; don't leak them cross-origin
- Permissions-Policy: camera/microphone only for our own origin, which
  is what the operator page needs to capture video

Auth responses also get Cache-Control: no-store, since they carry the
session cookie and user details. HSTS is only sent over HTTPS.
WebSocket upgrades never pass through here (HTTP scopes only).
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

BASE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(self), microphone=(self), geolocation=()",
}

NO_STORE_PREFIX = "/api/v1/auth/"
HSTS = "max-age=31536000; includeSubDomains"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        response.headers.update(BASE_HEADERS)
        if request.url.path.startswith(NO_STORE_PREFIX):
            response.headers["Cache-Control"] = "no-store"
        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = HSTS
        return response
