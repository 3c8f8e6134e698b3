"""Per-request state shared by the middleware chain.

The request context stage records who is calling and when the request
arrived. Later stages read those values instead of recomputing them, so the
access log and the rate limiter always agree on the client address, and
latency is measured from the moment the request entered the chain.
"""

import dataclasses
import time
import uuid
from contextvars import ContextVar
from dataclasses import dataclass

from src.core.constants import MILLISECONDS_PER_SECOND


@dataclass(frozen=True, slots=True)
class RequestInfo:
    """Identity and timing of the request being handled.

    Attributes:
        correlation_id: ID propagated across services for this request.
        client_ip: Address the rate limiter counts against.
        started_at: ``time.perf_counter()`` reading taken on arrival.
    """

    correlation_id: str
    client_ip: str | None = None
    started_at: float | None = None

    def elapsed_ms(self, now: float | None = None) -> float | None:
        """Milliseconds since arrival, or None if no start time was recorded."""
        if self.started_at is None:
            return None
        current = time.perf_counter() if now is None else now
        return (current - self.started_at) * MILLISECONDS_PER_SECOND


_request_info_var: ContextVar[RequestInfo | None] = ContextVar(
    "request_info", default=None
)


class RequestContext:
    """Access to the current ``RequestInfo`` through a context variable.

    Values set by the request context middleware are visible to every stage
    and handler running on behalf of the same request, and to nothing else.
    """

    @staticmethod
    def start(correlation_id: str, client_ip: str) -> RequestInfo:
        """Record a new request arriving now.

        Args:
            correlation_id: The correlation ID for the request.
            client_ip: The resolved client address.

        Returns:
            RequestInfo: The stored request info.
        """
        info = RequestInfo(
            correlation_id=correlation_id,
            client_ip=client_ip,
            started_at=time.perf_counter(),
        )
        _request_info_var.set(info)
        return info

    @staticmethod
    def get() -> RequestInfo | None:
        """Return the current request info, if a request is being handled."""
        return _request_info_var.get()

    @staticmethod
    def set_correlation_id(correlation_id: str) -> None:
        """Set the correlation ID, keeping any other recorded fields.

        Args:
            correlation_id: The correlation ID to store in the context.
        """
        info = _request_info_var.get()
        if info is None:
            info = RequestInfo(correlation_id=correlation_id)
        else:
            info = dataclasses.replace(info, correlation_id=correlation_id)
        _request_info_var.set(info)

    @staticmethod
    def get_correlation_id() -> str | None:
        """Get the correlation ID from the current context."""
        info = _request_info_var.get()
        return info.correlation_id if info else None

    @staticmethod
    def get_client_ip() -> str | None:
        """Get the client address recorded on arrival."""
        info = _request_info_var.get()
        return info.client_ip if info else None

    @staticmethod
    def clear() -> None:
        """Forget the current request."""
        _request_info_var.set(None)


def generate_correlation_id() -> str:
    """Generate a unique correlation ID for request tracking.

    Returns:
        str: A string representation of a UUID4.
    """
    return str(uuid.uuid4())


def generate_request_id() -> str:
    """Generate a unique request ID for individual request tracking.

    Returns:
        str: A prefixed UUID4 string in format 'req-<uuid4>'.
    """
    return f"req-{uuid.uuid4()}"
