"""Custom security middleware."""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.core.config import settings


def _content_security_policy() -> str:
    # Document previews load from R2 and avatars from dicebear
    img_sources = "'self' data: https://api.dicebear.com"
    if settings.r2_public_url:
        img_sources += f" {settings.r2_public_url}"

    if settings.environment == "production":
        return (
            "default-src 'self'; "
            f"img-src {img_sources}; "
            "connect-src 'self'; "
            "frame-ancestors 'none'"
        )
    return (
        "default-src 'self' http://localhost:*; "
        f"img-src {img_sources} http://localhost:*; "
        "connect-src 'self' http://localhost:* ws://localhost:*; "
        "frame-ancestors 'none'"
    )


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add standard security headers to every HTTP response."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = (
            "camera=(), microphone=(), geolocation=(), payment=()"
        )

        if settings.environment == "production":
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        # Swagger UI pulls assets from a CDN, so /docs keeps the browser default
        if not request.url.path.startswith(("/docs", "/redoc")):
            response.headers["Content-Security-Policy"] = _content_security_policy()

        return response
