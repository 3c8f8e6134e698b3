"""Startup and shutdown hooks for the datastore connection.

The service decides at startup what a failed first connection means:

- missing or invalid ``MONGO_URI``: always fatal, startup aborts
- unreachable server with ``required_on_startup`` unset: the service starts
  degraded, the failure is logged, and datastore-backed requests fail
  individually through the error handler
- unreachable server with ``required_on_startup`` set: startup aborts
"""

from loguru import logger

from src.core.config import DatastoreConfig
from src.core.error_context import redact_connection_string
from src.core.exceptions import ConfigurationError, DatastoreUnavailableError
from src.infrastructure.datastore.manager import DatastoreManager


async def startup_datastore(manager: DatastoreManager, config: DatastoreConfig) -> bool:
    """Attempt the single startup connection.

    Args:
        manager: The application's datastore manager.
        config: Datastore settings carrying the startup policy.

    Returns:
        bool: True if connected, False if running degraded.

    Raises:
        ConfigurationError: If the connection string is missing or invalid.
        RuntimeError: If the connection fails and it is required on startup.
    """
    try:
        await manager.connect()
    except ConfigurationError as e:
        logger.error("Datastore configuration invalid: {}", e.message)
        raise
    except DatastoreUnavailableError as e:
        reason = redact_connection_string(str(e.cause) if e.cause else e.message)
        if config.required_on_startup:
            logger.error("Datastore connection failed during startup: {}", reason)
            msg = f"Datastore connection failed: {reason}"
            raise RuntimeError(msg) from e

        logger.error(
            "Datastore connection failed during startup, continuing degraded: {}",
            reason,
        )
        return False

    return True


async def shutdown_datastore(manager: DatastoreManager) -> None:
    """Close the datastore connection during shutdown."""
    await manager.close()
