"""Centralized exception handling.

Two mechanisms cooperate:

- Exception handlers registered on the FastAPI app translate known exception
  types (``HTTPException``, ``RequestValidationError``, ``InsightTrackError``)
  raised by routes into the standard error envelope.
- ``ErrorHandlerMiddleware`` is the terminal stage for everything else. Any
  exception escaping the middleware below it or a route handler is logged
  with full detail and answered with a fixed 500 payload that reveals
  nothing about the failure.

The middleware sits inside the security-header and CORS stages, so error
responses carry the same headers as any other response.
"""

from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import Response
from loguru import logger
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from src.api.utils.responses import error_response
from src.core.constants import INTERNAL_ERROR_MESSAGE
from src.core.context import RequestContext
from src.core.error_context import sanitize_error_context
from src.core.exceptions import InsightTrackError, NotFoundError, ValidationError

CLIENT_ERROR_STATUS: dict[type[InsightTrackError], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
}


def internal_error_response() -> Response:
    """Build the generic 500 response sent for every unhandled failure."""
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)


def _client_status_for(exc: InsightTrackError) -> int | None:
    for error_type, status_code in CLIENT_ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return status_code
    return None


async def insighttrack_error_handler(request: Request, exc: Exception) -> Response:
    """Handle InsightTrackError exceptions.

    Validation and not-found errors are client errors and expose their
    message. All other application errors are internal: the client receives
    the generic 500 payload.

    Args:
        request: The request that caused the exception
        exc: The InsightTrackError exception to handle

    Returns:
        Response: Error envelope response

    Raises:
        TypeError: If exc is not an InsightTrackError instance
    """
    if not isinstance(exc, InsightTrackError):
        raise TypeError(f"Expected InsightTrackError, got {type(exc).__name__}")

    error_context = sanitize_error_context(
        exc,
        {
            "request_method": request.method,
            "request_path": str(request.url.path),
            "error_code": exc.error_code,
            "fingerprint": exc.fingerprint,
        },
    )

    status_code = _client_status_for(exc)
    if status_code is None:
        logger.opt(exception=exc).error(
            "Handling {exception_type}: {message}",
            exception_type=type(exc).__name__,
            message=exc.message,
            correlation_id=RequestContext.get_correlation_id(),
            **error_context,
        )
        return internal_error_response()

    log = logger.warning if exc.is_expected else logger.error
    log(
        "Handling {exception_type}: {message}",
        exception_type=type(exc).__name__,
        message=exc.message,
        correlation_id=RequestContext.get_correlation_id(),
        **error_context,
    )
    return error_response(status_code, exc.message, details=exc.context or None)


async def validation_error_handler(request: Request, exc: Exception) -> Response:
    """Handle FastAPI RequestValidationError exceptions.

    Args:
        request: The request that caused the exception
        exc: The RequestValidationError exception to handle

    Returns:
        Response: 422 error envelope with field-level details

    Raises:
        TypeError: If exc is not a RequestValidationError instance
    """
    if not isinstance(exc, RequestValidationError):
        raise TypeError(f"Expected RequestValidationError, got {type(exc).__name__}")

    # Group messages by field path, e.g. ['body', 'email'] -> 'email'
    field_errors: dict[str, list[str]] = {}
    for error in exc.errors():
        field_path = error.get("loc", ())
        field_name = ".".join(str(loc) for loc in field_path[1:] if loc != "__root__")
        field_errors.setdefault(field_name or "root", []).append(
            error.get("msg", "Invalid value")
        )

    logger.warning(
        "Request validation failed",
        correlation_id=RequestContext.get_correlation_id(),
        status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
        path=str(request.url.path),
        method=request.method,
        validation_errors=field_errors,
    )

    return error_response(
        status.HTTP_422_UNPROCESSABLE_CONTENT,
        "Request validation failed",
        details={"validation_errors": field_errors},
    )


async def http_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle Starlette HTTPException (404 for unmatched paths, 405, ...).

    Args:
        request: The request that caused the exception
        exc: The HTTPException to handle

    Returns:
        Response: Error envelope with the exception's status and detail

    Raises:
        TypeError: If exc is not an HTTPException instance
    """
    if not isinstance(exc, HTTPException):
        raise TypeError(f"Expected HTTPException, got {type(exc).__name__}")

    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(
            "HTTP exception",
            status_code=exc.status_code,
            method=request.method,
            path=str(request.url.path),
            detail=exc.detail,
        )
        return internal_error_response()

    logger.info(
        "HTTP exception",
        status_code=exc.status_code,
        method=request.method,
        path=str(request.url.path),
        detail=exc.detail,
    )

    return error_response(
        exc.status_code,
        str(exc.detail),
        headers=dict(exc.headers) if exc.headers else None,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle any other exception.

    The full exception, with stack trace and sanitized context, goes to the
    server log. The client receives the fixed internal-error payload in
    every environment.

    Args:
        request: The request that caused the exception
        exc: The unhandled exception

    Returns:
        Response: 500 response with the generic message
    """
    error_context = sanitize_error_context(
        exc,
        {
            "request_method": request.method,
            "request_path": str(request.url.path),
        },
    )

    logger.opt(exception=exc).error(
        "Unhandled exception: {exception_type}",
        exception_type=type(exc).__name__,
        correlation_id=RequestContext.get_correlation_id(),
        **error_context,
    )

    return internal_error_response()


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Terminal stage converting any escaped exception into the 500 payload."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Run the rest of the chain, catching anything it raises.

        Args:
            request: The incoming request.
            call_next: The next middleware/endpoint.

        Returns:
            Response: The downstream response, or the generic 500 response.
        """
        try:
            return await call_next(request)
        except Exception as exc:  # noqa: BLE001 - terminal handler
            return await generic_exception_handler(request, exc)


def register_exception_handlers(app: FastAPI) -> None:
    """Register the typed exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(InsightTrackError, insighttrack_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)

    logger.debug("Exception handlers registered")
