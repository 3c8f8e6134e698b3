"""Document store access built on PyMongo's asyncio client.

- **manager**: ``DatastoreManager`` owning the client, its pool and lifecycle
- **lifecycle**: startup and shutdown hooks used by the application lifespan
"""

from src.infrastructure.datastore.lifecycle import (
    shutdown_datastore,
    startup_datastore,
)
from src.infrastructure.datastore.manager import DatastoreManager

__all__ = [
    "DatastoreManager",
    "shutdown_datastore",
    "startup_datastore",
]
