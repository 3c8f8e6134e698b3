"""Core infrastructure package for shared application functionality.

This package provides the foundational components used across all layers
of the InsightTrack service:

- **config**: Settings snapshot loaded from the environment
- **context**: Request context and correlation ID management
- **exceptions**: Structured exception hierarchy with error codes
- **error_context**: Sensitive data sanitization for safe logging
- **logging**: Structured logging with Loguru
- **observability**: Distributed tracing with OpenTelemetry
- **rate_limit**: Fixed-window request counters shared by all requests
- **types**: Type aliases for dynamic data
"""
