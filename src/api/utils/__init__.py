"""Utility modules for API-specific functionality.

- **responses**: orjson-backed JSON responses and the error envelope helper
- **client**: client address resolution and declared body size
"""
