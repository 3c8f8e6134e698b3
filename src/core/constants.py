"""Core application constants."""

# Time constants
MILLISECONDS_PER_SECOND = 1000

# Security and redaction
REDACTED = "[REDACTED]"
DEFAULT_HSTS_MAX_AGE = 31536000  # 1 year in seconds

# Request body limits
DEFAULT_MAX_BODY_BYTES = 100 * 1024

# Rate limiting: 100 requests per 15 minutes per client
DEFAULT_RATE_LIMIT_MAX_REQUESTS = 100
DEFAULT_RATE_LIMIT_WINDOW_SECONDS = 15 * 60
RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."

# Client-facing message for every unhandled failure
INTERNAL_ERROR_MESSAGE = "An internal error occurred. Please try again later."

# Datastore
DEFAULT_DATABASE_NAME = "insighttrack"
