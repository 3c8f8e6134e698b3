"""InsightTrack - customer analytics API service.

The service is a single-process FastAPI application composed of:

- **Core Layer**: configuration, logging, error model and rate limiting
- **API Layer**: ordered middleware chain, route groups and error handlers
- **Infrastructure Layer**: the document store connector

Requests flow through security headers, cross-origin policy, correlation
context, the terminal error handler, access logging, body parsing and rate
limiting before reaching the route groups mounted under ``/api``.
"""
