"""Security Headers Middleware

Adds security headers to every JSON API response. Enabled with
SECURITY_HEADERS_ENABLED; HSTS additionally requires HSTS_ENABLED because it
only makes sense behind HTTPS.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
import config


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware that adds security headers to all HTTP responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"

        # API responses are never meant to be framed
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"

        # Responses may carry cart and order data
        response.headers["Cache-Control"] = "no-store"
        response.headers["Referrer-Policy"] = "no-referrer"

        if config.HSTS_ENABLED:
            # max-age: 31536000 seconds = 1 year
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response
