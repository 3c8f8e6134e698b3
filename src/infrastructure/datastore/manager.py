"""Document store client lifecycle management.

``DatastoreManager`` owns the single ``AsyncMongoClient`` of the process.
It is created by the application factory, connected once by the lifespan
handler at startup and closed at shutdown. Request handlers never create or
close clients; they borrow the database handle through the ``Datastore``
dependency.

Connection behaviour:
- **Single attempt**: ``connect`` pings once and never retries.
- **Bounded waits**: server selection, socket connect and every operation
  carry driver-side timeouts, and the startup ping is also wrapped in
  ``asyncio.timeout``.
- **Fail fast on configuration**: a missing or invalid URI raises
  ``ConfigurationError`` immediately.
- **Redacted logging**: credentials are stripped from the URI before it is
  logged.
"""

import asyncio
from collections.abc import Callable
from typing import Any

from loguru import logger
from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import ConfigurationError as PyMongoConfigurationError
from pymongo.errors import PyMongoError

from src.core.config import DatastoreConfig
from src.core.constants import DEFAULT_DATABASE_NAME, MILLISECONDS_PER_SECOND
from src.core.error_context import redact_connection_string
from src.core.exceptions import ConfigurationError, DatastoreUnavailableError

type ClientFactory = Callable[..., AsyncMongoClient[Any]]

PING_COMMAND = "ping"


class DatastoreManager:
    """Owns the document store client for the lifetime of the process.

    Args:
        uri: Connection string (``mongodb://`` or ``mongodb+srv://``).
        config: Pool, timeout and startup settings.
        app_name: Reported to the server as the client application name.
        client_factory: Builds the client. Defaults to ``AsyncMongoClient``.
    """

    def __init__(
        self,
        uri: str | None,
        config: DatastoreConfig,
        *,
        app_name: str = "InsightTrack",
        client_factory: ClientFactory = AsyncMongoClient,
    ) -> None:
        self._uri = uri
        self._config = config
        self._app_name = app_name
        self._client_factory = client_factory
        self._client: AsyncMongoClient[Any] | None = None
        self._database: AsyncDatabase[Any] | None = None
        self._lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        """True once a client has been created and has answered a ping."""
        return self._database is not None

    @property
    def redacted_uri(self) -> str | None:
        """The configured URI without credentials, for logs."""
        return redact_connection_string(self._uri) if self._uri else None

    @property
    def _ping_timeout_seconds(self) -> float:
        return self._config.server_selection_timeout_ms / MILLISECONDS_PER_SECOND

    def _create_client(self, uri: str) -> AsyncMongoClient[Any]:
        try:
            return self._client_factory(
                uri,
                appname=self._app_name,
                serverSelectionTimeoutMS=self._config.server_selection_timeout_ms,
                connectTimeoutMS=self._config.connect_timeout_ms,
                timeoutMS=self._config.operation_timeout_ms,
                maxPoolSize=self._config.max_pool_size,
                minPoolSize=self._config.min_pool_size,
                tz_aware=True,
            )
        except PyMongoConfigurationError as e:
            msg = "Datastore connection string is invalid"
            raise ConfigurationError(
                msg, context={"mongo_uri": self.redacted_uri}, cause=e
            ) from e

    def _select_database(self, client: AsyncMongoClient[Any]) -> AsyncDatabase[Any]:
        if self._config.database_name:
            return client[self._config.database_name]
        return client.get_default_database(default=DEFAULT_DATABASE_NAME)

    async def connect(self) -> None:
        """Create the client and verify the server answers, once.

        Raises:
            ConfigurationError: If no URI is configured or the URI is invalid.
            DatastoreUnavailableError: If the server cannot be reached within
                the timeout.
        """
        if not self._uri:
            msg = "MONGO_URI is not set; the datastore cannot be connected"
            raise ConfigurationError(msg)

        async with self._lock:
            if self._database is not None:
                return

            client = self._create_client(self._uri)
            try:
                async with asyncio.timeout(self._ping_timeout_seconds):
                    await client.admin.command(PING_COMMAND)
            except (PyMongoError, TimeoutError) as e:
                await client.close()
                msg = "Failed to connect to datastore"
                raise DatastoreUnavailableError(
                    msg,
                    context={"mongo_uri": self.redacted_uri},
                    cause=e,
                ) from e

            self._client = client
            self._database = self._select_database(client)

        logger.info(
            "Connected to datastore {} (database: {})",
            self.redacted_uri,
            self._database.name,
        )

    def get_database(self) -> AsyncDatabase[Any]:
        """Return the connected database.

        Returns:
            AsyncDatabase: Database handle shared by all requests.

        Raises:
            DatastoreUnavailableError: If ``connect`` has not succeeded.
        """
        if self._database is None:
            msg = "Datastore is not connected"
            raise DatastoreUnavailableError(msg)
        return self._database

    async def ping(self) -> tuple[bool, str | None]:
        """Check whether the datastore answers.

        Returns:
            tuple[bool, str | None]: Health flag and, when unhealthy, the reason.
        """
        if self._client is None:
            return False, "Datastore is not connected"

        try:
            async with asyncio.timeout(self._ping_timeout_seconds):
                await self._client.admin.command(PING_COMMAND)
        except (PyMongoError, TimeoutError) as e:
            return False, redact_connection_string(str(e)) or type(e).__name__
        return True, None

    async def close(self) -> None:
        """Close the client and release pooled connections."""
        async with self._lock:
            if self._client is None:
                return
            await self._client.close()
            self._client = None
            self._database = None
        logger.info("Datastore connection closed")
