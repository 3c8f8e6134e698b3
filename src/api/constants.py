"""API-related constants."""

# HTTP Headers
CORRELATION_ID_HEADER = "X-Correlation-ID"
REQUEST_ID_HEADER = "X-Request-ID"
RATE_LIMIT_LIMIT_HEADER = "X-RateLimit-Limit"
RATE_LIMIT_REMAINING_HEADER = "X-RateLimit-Remaining"
RATE_LIMIT_RESET_HEADER = "X-RateLimit-Reset"
RETRY_AFTER_HEADER = "Retry-After"

# Request handling
REQUEST_BODY_METHODS = {"POST", "PUT", "PATCH", "DELETE"}

# Content types
JSON_CONTENT_TYPES = {"application/json", "text/json"}
JSON_SUFFIX = "+json"
FORM_URLENCODED_CONTENT_TYPE = "application/x-www-form-urlencoded"

# Route group prefixes
CUSTOMERS_PREFIX = "/api/customers"
ANALYTICS_PREFIX = "/api/analytics"
