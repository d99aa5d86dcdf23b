"""Security headers middleware for API responses."""

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# Applied to every response; the API serves JSON only, so nothing may be framed or embedded
SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
    "Cross-Origin-Resource-Policy": "same-origin",
}

HSTS_VALUE = "max-age=31536000; includeSubDomains"

# Responses under these prefixes may carry user data or tokens
NO_STORE_PREFIXES = ("/v1/",)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)

        if request.url.path.startswith(NO_STORE_PREFIXES):
            response.headers["Cache-Control"] = "no-store"

        # TLS usually terminates at the proxy in front of uvicorn
        forwarded_proto = request.headers.get("x-forwarded-proto", "")
        if forwarded_proto == "https" or request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = HSTS_VALUE

        return response
