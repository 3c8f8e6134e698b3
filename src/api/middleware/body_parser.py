"""Request body parsing middleware.

Bodies are decoded once, before routing, and stored on ``request.state``
for route handlers (see ``src.api.dependencies.ParsedBody``). Malformed or
oversized bodies are answered here with a client error, so route handlers
only ever see well-formed input and parse failures never surface as 500s.

Supported media types:
- JSON (``application/json``, ``text/json``, ``application/*+json``)
- ``application/x-www-form-urlencoded``

Any other media type is left untouched and ``parsed_body`` stays ``None``.
"""

from collections.abc import Awaitable, Callable
from urllib.parse import parse_qs

import orjson
from fastapi import Request, Response, status
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from src.api.constants import (
    FORM_URLENCODED_CONTENT_TYPE,
    JSON_CONTENT_TYPES,
    JSON_SUFFIX,
    REQUEST_BODY_METHODS,
)
from src.api.utils.client import declared_content_length
from src.api.utils.responses import error_response
from src.core.config import BodyParserConfig
from src.core.types import FormBody, JsonValue

PARSED_BODY_STATE_KEY = "parsed_body"

MALFORMED_JSON_MESSAGE = "Malformed JSON request body"
NON_CONTAINER_JSON_MESSAGE = "JSON request body must be an object or an array"
MALFORMED_FORM_MESSAGE = "Malformed form-encoded request body"
PAYLOAD_TOO_LARGE_MESSAGE = "Request body is too large"


class BodyParseError(ValueError):
    """Raised when a request body cannot be decoded."""


class BodyTooLargeError(ValueError):
    """Raised when more body bytes arrive than the configured limit allows.

    Attributes:
        size: Bytes read when the limit was crossed.
    """

    def __init__(self, size: int) -> None:
        super().__init__(PAYLOAD_TOO_LARGE_MESSAGE)
        self.size = size


def get_media_type(content_type: str | None) -> str:
    """Return the lower-cased media type without parameters.

    Args:
        content_type: Raw Content-Type header value.

    Returns:
        str: e.g. ``application/json`` for ``application/json; charset=utf-8``.
    """
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def is_json_media_type(media_type: str) -> bool:
    """Check whether a media type carries JSON."""
    return media_type in JSON_CONTENT_TYPES or (
        media_type.startswith("application/") and media_type.endswith(JSON_SUFFIX)
    )


def parse_json_body(body: bytes, *, strict: bool) -> JsonValue:
    """Decode a JSON body.

    Args:
        body: Raw request body.
        strict: Reject top-level values other than objects and arrays.

    Returns:
        JsonValue: The decoded value, or None for an empty body.

    Raises:
        BodyParseError: If the body is not valid JSON, or violates strict mode.
    """
    if not body.strip():
        return None

    try:
        value: JsonValue = orjson.loads(body)
    except orjson.JSONDecodeError as e:
        raise BodyParseError(MALFORMED_JSON_MESSAGE) from e

    if strict and not isinstance(value, dict | list):
        raise BodyParseError(NON_CONTAINER_JSON_MESSAGE)

    return value


def parse_urlencoded_body(body: bytes) -> FormBody:
    """Decode an ``application/x-www-form-urlencoded`` body.

    Repeated keys are collected into a list; single keys map to a string.

    Args:
        body: Raw request body.

    Returns:
        FormBody: The decoded fields.

    Raises:
        BodyParseError: If the body is not valid UTF-8.
    """
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise BodyParseError(MALFORMED_FORM_MESSAGE) from e

    fields = parse_qs(text, keep_blank_values=True)
    return {
        key: values[0] if len(values) == 1 else values
        for key, values in fields.items()
    }


class BodyParsingMiddleware(BaseHTTPMiddleware):
    """Middleware that decodes request bodies before routing.

    Args:
        app: The ASGI application.
        config: Body parser configuration.
    """

    def __init__(self, app: ASGIApp, *, config: BodyParserConfig) -> None:
        super().__init__(app)
        self.config = config

    def _too_large(self, size: int) -> Response:
        logger.warning(
            "Request body rejected: {} bytes exceeds limit of {}",
            size,
            self.config.max_body_bytes,
        )
        return error_response(
            status.HTTP_413_CONTENT_TOO_LARGE,
            PAYLOAD_TOO_LARGE_MESSAGE,
            details={"limit_bytes": self.config.max_body_bytes},
        )

    async def _read_body(self, request: Request) -> bytes:
        """Read the body chunk by chunk, stopping once it passes the limit.

        The collected bytes are left on the request so handlers reading the
        raw body downstream receive them unchanged.

        Args:
            request: The incoming request.

        Returns:
            bytes: The complete body.

        Raises:
            BodyTooLargeError: As soon as the bytes read exceed the limit.
        """
        chunks: list[bytes] = []
        total = 0
        async for chunk in request.stream():
            total += len(chunk)
            if total > self.config.max_body_bytes:
                raise BodyTooLargeError(total)
            chunks.append(chunk)

        body = b"".join(chunks)
        # Starlette replays a cached _body to the wrapped receive channel
        request._body = body  # noqa: SLF001
        return body

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Parse the body, or short-circuit with a client error.

        Args:
            request: The incoming request.
            call_next: The next middleware/endpoint.

        Returns:
            Response: A 400/413 error response, or the downstream response.
        """
        setattr(request.state, PARSED_BODY_STATE_KEY, None)

        if request.method not in REQUEST_BODY_METHODS:
            return await call_next(request)

        media_type = get_media_type(request.headers.get("content-type"))
        parse_json = self.config.parse_json and is_json_media_type(media_type)
        parse_form = (
            self.config.parse_urlencoded and media_type == FORM_URLENCODED_CONTENT_TYPE
        )
        if not (parse_json or parse_form):
            return await call_next(request)

        declared_length = declared_content_length(request)
        if declared_length is not None and declared_length > self.config.max_body_bytes:
            return self._too_large(declared_length)

        try:
            body = await self._read_body(request)
        except BodyTooLargeError as e:
            return self._too_large(e.size)

        try:
            parsed = (
                parse_json_body(body, strict=self.config.strict_json)
                if parse_json
                else parse_urlencoded_body(body)
            )
        except BodyParseError as e:
            logger.warning(
                "Request body rejected: {}",
                str(e),
                media_type=media_type,
                body_size=len(body),
            )
            return error_response(status.HTTP_400_BAD_REQUEST, str(e))

        setattr(request.state, PARSED_BODY_STATE_KEY, parsed)
        return await call_next(request)
