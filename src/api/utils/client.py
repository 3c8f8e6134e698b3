"""Request metadata helpers: client address and declared body size."""

from starlette.requests import Request

from src.core.context import RequestContext

UNKNOWN_CLIENT = "unknown"


def get_client_ip(request: Request, *, trust_proxy_headers: bool) -> str:
    """Extract the client IP, optionally honouring proxy headers.

    Args:
        request: The incoming request.
        trust_proxy_headers: Whether X-Forwarded-For / X-Real-IP may be used.
            Only enable behind a proxy that overwrites these headers.

    Returns:
        str: The client IP address, or "unknown" when it cannot be determined.
    """
    if trust_proxy_headers:
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            # First entry is the original client
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip.strip()

    if request.client:
        return request.client.host
    return UNKNOWN_CLIENT


def resolve_client_ip(request: Request, *, trust_proxy_headers: bool) -> str:
    """Return the client address recorded for this request.

    Falls back to resolving it from the request when no request context
    stage ran before the caller.

    Args:
        request: The incoming request.
        trust_proxy_headers: Whether X-Forwarded-For / X-Real-IP may be used.

    Returns:
        str: The client IP address, or "unknown" when it cannot be determined.
    """
    return RequestContext.get_client_ip() or get_client_ip(
        request, trust_proxy_headers=trust_proxy_headers
    )


def declared_content_length(request: Request) -> int | None:
    """Parse the Content-Length header.

    Args:
        request: The incoming request.

    Returns:
        int | None: The declared size, or None when absent, non-numeric or
            negative.
    """
    raw = request.headers.get("content-length")
    if raw is None:
        return None
    try:
        length = int(raw)
    except ValueError:
        return None
    return length if length >= 0 else None
