"""Structured exception hierarchy for consistent error handling.

Key components:
- **ErrorCode enum**: Standardized error identifiers for programmatic handling
- **Severity enum**: Error classification for monitoring and alerting
- **InsightTrackError**: Base exception with context and fingerprinting
- **Specialized exceptions**: Validation, not-found, datastore and configuration

Only ``ValidationError`` and ``NotFoundError`` map to client-visible statuses.
Every other application error reaches clients as the generic internal-error
payload; the detail stays in the server logs.
"""

import hashlib
import traceback
from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Standardized error codes for the InsightTrack service."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    """An unexpected internal error occurred in the system."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    """Input validation failed due to invalid or malformed data."""

    NOT_FOUND = "NOT_FOUND"
    """The requested resource could not be found."""

    DATASTORE_ERROR = "DATASTORE_ERROR"
    """The document store is unreachable or rejected an operation."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    """A mandatory setting is missing or invalid."""


class Severity(Enum):
    """Severity levels used to choose log levels and alerting."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class InsightTrackError(Exception):
    """Base exception class for all InsightTrack application exceptions.

    Args:
        error_code: Unique identifier for the error type (string or ErrorCode enum)
        message: Human-readable error message
        severity: Severity level of the error (defaults to MEDIUM)
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        error_code: str | ErrorCode,
        message: str,
        severity: Severity = Severity.MEDIUM,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.error_code = (
            error_code.value if isinstance(error_code, ErrorCode) else error_code
        )
        self.message = message
        self.severity = severity
        self.context = context or {}
        self.cause = cause

        # Capture stack trace at creation time, excluding this frame
        self.stack_trace = traceback.format_stack()[:-1]
        self.fingerprint = self._generate_fingerprint()

        super().__init__(message)
        if cause:
            self.__cause__ = cause

    def _generate_fingerprint(self) -> str:
        """Generate a fingerprint for grouping errors raised from the same place.

        Returns:
            str: A hash string for error grouping
        """
        max_frames = 5
        relevant_frames = self.stack_trace[-max_frames:]

        fingerprint_data = f"{self.__class__.__name__}:{self.error_code}"
        for frame in relevant_frames:
            if "site-packages" not in frame and "src/" in frame:
                lines = frame.strip().split("\n")
                if lines:
                    fingerprint_data += f":{lines[0]}"

        return hashlib.sha256(fingerprint_data.encode()).hexdigest()[:16]

    @property
    def is_expected(self) -> bool:
        """True for errors caused by normal operation (LOW or MEDIUM severity)."""
        return self.severity in (Severity.LOW, Severity.MEDIUM)

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        class_name = self.__class__.__name__
        context_str = f", context={self.context}" if self.context else ""
        return (
            f"{class_name}(error_code='{self.error_code}', "
            f"message='{self.message}', severity={self.severity.value}{context_str})"
        )


class ValidationError(InsightTrackError):
    """Exception raised when input validation fails.

    Args:
        message: Description of the validation failure
        error_code: Error code (defaults to VALIDATION_ERROR)
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        error_code: str | ErrorCode = ErrorCode.VALIDATION_ERROR,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(error_code, message, Severity.LOW, context, cause)


class NotFoundError(InsightTrackError):
    """Exception raised when a requested resource cannot be found.

    Args:
        message: Description of what resource was not found
        error_code: Error code (defaults to NOT_FOUND)
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        error_code: str | ErrorCode = ErrorCode.NOT_FOUND,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(error_code, message, Severity.LOW, context, cause)


class DatastoreError(InsightTrackError):
    """Exception raised when a document store operation fails."""

    def __init__(
        self,
        message: str,
        error_code: str | ErrorCode = ErrorCode.DATASTORE_ERROR,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(error_code, message, Severity.HIGH, context, cause)


class DatastoreUnavailableError(DatastoreError):
    """Exception raised when the datastore is used before a connection exists."""


class ConfigurationError(InsightTrackError):
    """Exception raised when a mandatory setting is missing or invalid."""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.CONFIGURATION_ERROR, message, Severity.CRITICAL, context, cause
        )
