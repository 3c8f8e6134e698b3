"""Structured logging built on Loguru.

Two output formats are supported:
- **console**: Human-readable, colored, with request context inline (development)
- **json**: One JSON object per line for log collectors (staging/production)

Standard library loggers, uvicorn included, are redirected into Loguru
through ``InterceptHandler`` so every record shares the same sink and format.
Request-scoped fields (correlation ID, method, path, status) are attached
with ``logger.contextualize`` by the middleware and show up on every record
emitted while handling that request.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, Final, Protocol, cast

from loguru import logger

from src.core.config import get_settings
from src.core.constants import REDACTED


class _LoggingState:
    """Tracks whether logging has been configured."""

    def __init__(self) -> None:
        self.configured = False


_state = _LoggingState()


class LogConfigProtocol(Protocol):
    """Protocol for log configuration objects."""

    @property
    def log_level(self) -> str:
        """Logging level."""
        ...

    @property
    def log_formatter_type(self) -> str | None:
        """Log formatter type."""
        ...


class SettingsProtocol(Protocol):
    """Protocol for settings objects that setup_logging can accept."""

    @property
    def debug(self) -> bool:
        """Debug mode flag."""
        ...

    @property
    def log_config(self) -> LogConfigProtocol:
        """Log configuration."""
        ...


DEFAULT_LOG_FORMAT: Final[str] = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "{message}"
)
CORRELATION_ID_DISPLAY_LENGTH: Final[int] = 8
MAX_FIELD_VALUE_LENGTH: Final[int] = 100

# Shown first, in this order, when present on a record
PRIORITY_FIELDS: Final[tuple[str, ...]] = (
    "correlation_id",
    "request_id",
    "method",
    "path",
    "status_code",
    "duration_ms",
    "client_host",
)


def _escape(value: object) -> str:
    # Loguru treats braces in a format string as placeholders
    return str(value).replace("{", "{{").replace("}", "}}")


def _format_priority_field(field: str, value: object) -> str:
    """Format a priority field for display.

    Args:
        field: The field name.
        value: The field value.

    Returns:
        str: Formatted, brace-escaped value.
    """
    if field == "correlation_id" and len(str(value)) > CORRELATION_ID_DISPLAY_LENGTH:
        value = str(value)[:CORRELATION_ID_DISPLAY_LENGTH]
    elif field == "duration_ms":
        value = f"{value}ms"

    formatted = _escape(value)
    if field == "status_code":
        status_str = str(value)
        if status_str.startswith("2"):
            formatted = f"<green>{formatted}</green>"
        elif status_str.startswith("3"):
            formatted = f"<yellow>{formatted}</yellow>"
        elif status_str.startswith(("4", "5")):
            formatted = f"<red>{formatted}</red>"
    return formatted


def _format_extra_field(key: str, value: object) -> str:
    """Format a non-priority field as ``key=value``, redacting sensitive keys.

    Args:
        key: The field name.
        value: The field value.

    Returns:
        str: Formatted, brace-escaped field.
    """
    str_value = str(value)
    if key in get_settings().log_config.sensitive_fields:
        str_value = REDACTED
    elif len(str_value) > MAX_FIELD_VALUE_LENGTH:
        str_value = str_value[: MAX_FIELD_VALUE_LENGTH - 3] + "..."
    return f"{_escape(key)}={_escape(str_value)}"


def _format_context_fields(extra: dict[str, Any]) -> list[str]:
    """Format all context fields from a record's extra data.

    Args:
        extra: Extra fields from the log record.

    Returns:
        list[str]: Formatted context parts, priority fields first.
    """
    context_parts = [
        f"<yellow>{_format_priority_field(field, extra[field])}</yellow>"
        for field in PRIORITY_FIELDS
        if extra.get(field) is not None
    ]
    context_parts.extend(
        f"<dim>{_format_extra_field(key, value)}</dim>"
        for key, value in extra.items()
        if key not in PRIORITY_FIELDS and not key.startswith("_") and value is not None
    )
    return context_parts


def format_console_with_context(record: dict[str, Any]) -> str:
    """Format a log record for the console with all context fields visible.

    Args:
        record: Loguru record to format.

    Returns:
        str: Loguru format string for this record.
    """
    try:
        timestamp = record["time"].strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        parts = [
            f"<green>{timestamp}</green>",
            f"<level>{record['level'].name: <8}</level>",
            f"<cyan>{record['name']}:{record['function']}:{record['line']}</cyan>",
        ]

        context_parts = _format_context_fields(record.get("extra", {}))
        if context_parts:
            parts.append(" ".join(f"[{part}]" for part in context_parts))

        parts.append(_escape(record.get("message", "")))

        line = " | ".join(parts)
        if record.get("exception"):
            line += "\n{exception}"
        return line + "\n"
    except (AttributeError, TypeError, ValueError, KeyError):
        return DEFAULT_LOG_FORMAT + "\n"


def serialize_for_json(record: dict[str, Any]) -> str:
    """Format a log record as a single JSON line.

    Args:
        record: Loguru record to format.

    Returns:
        str: JSON-formatted log entry with newline.
    """
    log_entry: dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "logger": record["name"],
        "function": record["function"],
        "line": record["line"],
    }

    if extra := record.get("extra", {}):
        log_entry.update({k: v for k, v in extra.items() if not k.startswith("_")})

    if exc := record.get("exception"):
        log_entry["exception"] = {
            "type": exc.type.__name__ if exc.type else None,
            "value": str(exc.value) if exc.value else None,
        }

    return json.dumps(log_entry, default=str) + "\n"


class InterceptHandler(logging.Handler):
    """Intercept standard logging and redirect to Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        """Forward log record to Loguru.

        Args:
            record: Standard library LogRecord to forward.
        """
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find the caller outside the logging module
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def _json_sink(message: object) -> None:
    """Write a record through the JSON formatter."""
    record = cast("Any", message).record
    sys.stdout.write(serialize_for_json(record))
    sys.stdout.flush()


def setup_logging(settings: SettingsProtocol) -> None:
    """Configure Loguru sinks and route standard logging into it.

    Args:
        settings: Application settings containing log configuration.

    Note:
        Only the first call has any effect.
    """
    if _state.configured:
        return

    logger.remove()

    formatter_type = settings.log_config.log_formatter_type or "console"

    if formatter_type == "json":
        logger.add(
            _json_sink,
            level=settings.log_config.log_level,
            enqueue=True,
            diagnose=False,
            backtrace=False,
        )
    else:
        logger.add(
            sys.stdout,
            format=cast("Any", format_console_with_context),
            level=settings.log_config.log_level,
            enqueue=True,
            colorize=True,
            diagnose=settings.debug,
            backtrace=settings.debug,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(logger_name)
        uvicorn_logger.handlers = [InterceptHandler()]
        uvicorn_logger.propagate = False

    logger.info(
        "Logging configured with {} formatter",
        formatter_type,
        log_level=settings.log_config.log_level,
    )

    _state.configured = True
