"""HTTP access logging with latency tracking.

Every request not on the exclusion list produces a "Request completed" record
carrying method, path, status, duration, client address, user agent and
sizes. Latency is measured from the arrival time recorded by the request
context stage. Slow requests get an extra warning. Failures are logged with
status 500 and re-raised for the error handler; this stage never produces a
response of its own.
"""

import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from src.api.constants import REQUEST_ID_HEADER
from src.api.utils.client import declared_content_length, resolve_client_ip
from src.core.config import LogConfig
from src.core.constants import MILLISECONDS_PER_SECOND
from src.core.context import RequestContext, generate_request_id

MAX_USER_AGENT_LENGTH = 200


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging HTTP requests and responses.

    Args:
        app: The ASGI application.
        log_config: Logging configuration.
        trust_proxy_headers: Whether proxy headers identify the client.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        log_config: LogConfig,
        trust_proxy_headers: bool = False,
    ) -> None:
        super().__init__(app)
        self.log_config = log_config
        self.excluded_paths = set(log_config.excluded_paths)
        self.trust_proxy_headers = trust_proxy_headers

    def _get_user_agent(self, request: Request) -> str:
        """Extract and truncate the user agent.

        Args:
            request: The incoming request.

        Returns:
            str: The user agent string, truncated if necessary.
        """
        ua = request.headers.get("user-agent", "")
        return ua[:MAX_USER_AGENT_LENGTH] if ua else "unknown"

    def _get_start_time(self) -> float:
        """Arrival time recorded by the request context, or now."""
        info = RequestContext.get()
        if info is not None and info.started_at is not None:
            return info.started_at
        return time.perf_counter()

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Process the request and log details.

        Args:
            request: The incoming request.
            call_next: The next middleware/endpoint.

        Returns:
            Response: The response from the application.

        Raises:
            Exception: Any exception raised downstream is re-raised after logging.
        """
        if request.url.path in self.excluded_paths:
            return await call_next(request)

        request_id = request.headers.get(REQUEST_ID_HEADER) or generate_request_id()
        start_time = self._get_start_time()

        with logger.contextualize(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            client_host=resolve_client_ip(
                request, trust_proxy_headers=self.trust_proxy_headers
            ),
            user_agent=self._get_user_agent(request),
            request_size=declared_content_length(request) or 0,
        ):
            try:
                response = await call_next(request)
            except Exception as exc:
                elapsed = time.perf_counter() - start_time
                duration_ms = elapsed * MILLISECONDS_PER_SECOND
                logger.error(
                    "Request failed",
                    status_code=500,
                    duration_ms=round(duration_ms, 2),
                    error_type=type(exc).__name__,
                )
                raise

            duration_ms = (time.perf_counter() - start_time) * MILLISECONDS_PER_SECOND

            logger.info(
                "Request completed",
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
                response_size=int(response.headers.get("content-length") or 0),
            )

            response.headers[REQUEST_ID_HEADER] = request_id

            if duration_ms > self.log_config.slow_request_threshold_ms:
                logger.warning(
                    "Slow request detected",
                    duration_ms=round(duration_ms, 2),
                    threshold_ms=self.log_config.slow_request_threshold_ms,
                )

            return response
