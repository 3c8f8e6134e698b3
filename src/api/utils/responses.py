"""JSON response classes using orjson serialization.

``ORJSONResponse`` is the application's default response class. Error
responses from every layer (body parser, error handlers) are built with
``error_response`` so clients always see the same envelope.
"""

from typing import Any

import orjson
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from src.api.schemas.errors import ErrorResponse


class ORJSONResponse(JSONResponse):
    """Response class using orjson for JSON serialization.

    Attributes:
        media_type: The media type for the response.
    """

    media_type = "application/json"

    def render(self, content: Any) -> bytes:  # noqa: ANN401 - accepts any JSON-serializable content
        """Render the content as JSON using orjson.

        Args:
            content: The content to serialize to JSON.

        Returns:
            bytes: The JSON-encoded bytes.
        """
        if isinstance(content, BaseModel):
            content = content.model_dump(mode="json", exclude_none=True)

        return orjson.dumps(content, option=orjson.OPT_SORT_KEYS)


def error_response(
    status_code: int,
    message: str,
    details: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> ORJSONResponse:
    """Build a response carrying the standard error envelope.

    Args:
        status_code: HTTP status code.
        message: Human-readable message for the client.
        details: Optional structured details (client errors only).
        headers: Optional extra response headers.

    Returns:
        ORJSONResponse: ``{"status": "error", "message": ...}`` response.
    """
    return ORJSONResponse(
        status_code=status_code,
        content=ErrorResponse(message=message, details=details),
        headers=headers,
    )
