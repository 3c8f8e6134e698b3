"""Per-client rate limiting middleware.

Requests are counted per client address, as recorded by the request context
stage, against a shared ``FixedWindowRateLimiter``. Once a client exceeds
its quota, the request is answered immediately with the configured status
(429 by default) and the plain-text rate-limit message; nothing downstream
runs.
"""

from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import PlainTextResponse
from starlette.types import ASGIApp

from src.api.constants import (
    RATE_LIMIT_LIMIT_HEADER,
    RATE_LIMIT_REMAINING_HEADER,
    RATE_LIMIT_RESET_HEADER,
    RETRY_AFTER_HEADER,
)
from src.api.utils.client import resolve_client_ip
from src.core.config import RateLimitConfig
from src.core.rate_limit import FixedWindowRateLimiter, RateLimitDecision


def rate_limit_headers(decision: RateLimitDecision) -> dict[str, str]:
    """Build the informational quota headers for a decision.

    Args:
        decision: The limiter's decision for the current request.

    Returns:
        dict[str, str]: Limit, remaining and reset (seconds) headers.
    """
    return {
        RATE_LIMIT_LIMIT_HEADER: str(decision.limit),
        RATE_LIMIT_REMAINING_HEADER: str(decision.remaining),
        RATE_LIMIT_RESET_HEADER: str(decision.retry_after_seconds),
    }


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Middleware enforcing the per-client request quota.

    Args:
        app: The ASGI application.
        limiter: Counter table shared by every request.
        config: Rate limit configuration (status code and message).
        trust_proxy_headers: Whether proxy headers identify the client.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        limiter: FixedWindowRateLimiter,
        config: RateLimitConfig,
        trust_proxy_headers: bool = False,
    ) -> None:
        super().__init__(app)
        self.limiter = limiter
        self.config = config
        self.trust_proxy_headers = trust_proxy_headers

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Count the request and reject it if the client is over quota.

        Args:
            request: The incoming request.
            call_next: The next middleware/endpoint.

        Returns:
            Response: The rate-limit response, or the downstream response.
        """
        client_ip = resolve_client_ip(
            request, trust_proxy_headers=self.trust_proxy_headers
        )
        decision = self.limiter.hit(client_ip)
        headers = rate_limit_headers(decision)

        if not decision.allowed:
            logger.warning(
                "Rate limit exceeded for {}",
                client_ip,
                limit=decision.limit,
                retry_after=decision.retry_after_seconds,
            )
            headers[RETRY_AFTER_HEADER] = str(decision.retry_after_seconds)
            return PlainTextResponse(
                self.config.message,
                status_code=self.config.status_code,
                headers=headers,
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response
