"""Security headers middleware for adding hardening headers to responses."""

from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from src.core.config import SecurityHeadersConfig

# Headers whose values never vary with configuration
STATIC_SECURITY_HEADERS: dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-XSS-Protection": "1; mode=block",
    "X-DNS-Prefetch-Control": "off",
    "X-Permitted-Cross-Domain-Policies": "none",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to all responses.

    Besides the static headers above, it sets:
    - X-Frame-Options (DENY by default)
    - Referrer-Policy (no-referrer by default)
    - Strict-Transport-Security, when HSTS is enabled
    - Content-Security-Policy, when configured

    Args:
        app: The ASGI application to wrap.
        config: Security headers configuration. Defaults apply when omitted.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        config: SecurityHeadersConfig | None = None,
    ) -> None:
        super().__init__(app)
        self.config = config or SecurityHeadersConfig()
        self.headers = self._build_headers()

    def _build_hsts_header(self) -> str:
        """Build the Strict-Transport-Security header value.

        Returns:
            str: The HSTS header value string.
        """
        parts = [f"max-age={self.config.hsts_max_age}"]

        if self.config.hsts_include_subdomains:
            parts.append("includeSubDomains")

        if self.config.hsts_preload:
            parts.append("preload")

        return "; ".join(parts)

    def _build_headers(self) -> dict[str, str]:
        headers = dict(STATIC_SECURITY_HEADERS)
        headers["X-Frame-Options"] = self.config.frame_options
        headers["Referrer-Policy"] = self.config.referrer_policy

        if self.config.hsts_enabled:
            headers["Strict-Transport-Security"] = self._build_hsts_header()

        if self.config.content_security_policy:
            headers["Content-Security-Policy"] = self.config.content_security_policy

        return headers

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Add security headers to the response.

        Args:
            request: The incoming HTTP request.
            call_next: The next middleware or route handler.

        Returns:
            Response: The HTTP response with security headers added.
        """
        response = await call_next(request)
        response.headers.update(self.headers)
        return response
