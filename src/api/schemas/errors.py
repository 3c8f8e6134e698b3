"""Error response schema shared by every error path.

All error responses use the same envelope::

    {"status": "error", "message": "<human-readable text>"}

Client errors (malformed bodies, validation failures) may add a ``details``
object. Internal errors never do: their message is fixed and nothing about
the underlying failure leaves the server.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standardized error response model for API errors."""

    status: Literal["error"] = Field(
        default="error",
        description="Always the literal string 'error'",
    )

    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=[
            "An internal error occurred. Please try again later.",
            "Not Found",
            "Malformed JSON request body",
        ],
    )

    details: dict[str, Any] | None = Field(
        default=None,
        description="Additional client-error details (e.g., field validation errors)",
        examples=[{"validation_errors": {"email": ["Field required"]}}],
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "status": "error",
                    "message": "An internal error occurred. Please try again later.",
                },
                {
                    "status": "error",
                    "message": "Request validation failed",
                    "details": {"validation_errors": {"name": ["Field required"]}},
                },
            ]
        }
    }
