"""HTTP API layer of the InsightTrack service, built on FastAPI.

Key components:
- **main**: Application factory and lifecycle management
- **middleware**: The ordered request pipeline
  - Security headers and cross-origin policy
  - Correlation IDs and access logging
  - Body parsing with size limits
  - Per-client rate limiting
  - Terminal error handling with a fixed 500 payload
- **routers**: Route groups mounted under ``/api/customers`` and ``/api/analytics``
- **dependencies**: Parsed body and datastore handles for route handlers
- **schemas**: The error envelope returned by every failure path
- **utils**: orjson responses and client address resolution
"""
