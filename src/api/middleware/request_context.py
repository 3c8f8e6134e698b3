"""Request context middleware.

Establishes the request's correlation ID (from ``X-Correlation-ID`` or newly
generated), resolves the client address once, and notes the arrival time.
All three are stored in ``RequestContext`` for the inner stages; the
correlation ID and client address are also bound to every log record, and the
correlation ID is echoed on the response.
"""

from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from src.api.constants import CORRELATION_ID_HEADER
from src.api.utils.client import get_client_ip
from src.core.context import RequestContext, generate_correlation_id


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware recording correlation ID, client address and arrival time.

    Args:
        app: The ASGI application.
        trust_proxy_headers: Whether proxy headers identify the client.
    """

    def __init__(self, app: ASGIApp, *, trust_proxy_headers: bool = False) -> None:
        super().__init__(app)
        self.trust_proxy_headers = trust_proxy_headers

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Process the request with context management.

        Args:
            request: The incoming request.
            call_next: The next middleware/endpoint.

        Returns:
            Response: Response with correlation ID header.
        """
        info = RequestContext.start(
            correlation_id=request.headers.get(CORRELATION_ID_HEADER)
            or generate_correlation_id(),
            client_ip=get_client_ip(
                request, trust_proxy_headers=self.trust_proxy_headers
            ),
        )

        with logger.contextualize(
            correlation_id=info.correlation_id, client_host=info.client_ip
        ):
            response = await call_next(request)

        response.headers[CORRELATION_ID_HEADER] = info.correlation_id
        return response
