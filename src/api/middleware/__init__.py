"""FastAPI middleware package for cross-cutting request/response concerns.

Execution order for an incoming request (outermost first):
1. **SecurityHeadersMiddleware**: hardening headers on every response
2. **CORSMiddleware** (Starlette): cross-origin policy
3. **RequestContextMiddleware**: correlation ID, client address and arrival time
4. **ErrorHandlerMiddleware**: terminal conversion of failures into a 500
5. **RequestLoggingMiddleware**: access log with latency
6. **BodyParsingMiddleware**: JSON / form decoding, 400 and 413 responses
7. **RateLimitMiddleware**: per-client quota, 429 responses

The chain is assembled by ``src.api.main.create_app``.
"""
