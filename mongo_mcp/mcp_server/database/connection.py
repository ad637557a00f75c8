"""MongoDB connection manager with explicit lifecycle state.

The process owns exactly one ``ConnectionManager``. It is created by the entry
point, connected once at startup, handed to the tool layer, and shut down once
when a termination signal arrives.

Lifecycle::

    UNINITIALIZED --connect()--> READY --shutdown()/close()--> CLOSED

Tool handlers check ``is_ready()`` before every store operation. Marking the
manager CLOSED is the first step of shutdown, so requests arriving during the
drain window get the "not connected" response instead of racing the close.

Example:
    >>> manager = ConnectionManager(settings)
    >>> manager.connect()
    >>> names = await manager.run(manager.get_database().list_collection_names)
    >>> await manager.shutdown(grace_period=5.0)
"""

import logging
from enum import Enum
from typing import Any, Callable, TypeVar

from pymongo import MongoClient
from pymongo.database import Database

from mongo_mcp.config.settings import Settings
from mongo_mcp.mcp_server.exceptions import DatabaseConnectionError, DatabaseNotConnectedError

from .async_executor import AsyncExecutorPool

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ConnectionState(str, Enum):
    """Readiness of the store connection.

    Attributes:
        UNINITIALIZED: connect() has not succeeded yet
        READY: client connected and database selected
        CLOSED: shutdown started or finished; no new operations accepted
    """

    UNINITIALIZED = "uninitialized"
    READY = "ready"
    CLOSED = "closed"


class ConnectionManager:
    """Owns the single MongoClient for the lifetime of the process.

    Args:
        settings: Validated application settings
        client_factory: Callable building the client; defaults to MongoClient
    """

    def __init__(
        self,
        settings: Settings,
        client_factory: Callable[..., MongoClient] = MongoClient,
    ) -> None:
        self._settings = settings
        self._client_factory = client_factory
        self._client: MongoClient | None = None
        self._database: Database | None = None
        self._state = ConnectionState.UNINITIALIZED
        self._executor = AsyncExecutorPool(max_workers=settings.executor_max_workers)

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def settings(self) -> Settings:
        return self._settings

    def is_ready(self) -> bool:
        """True when tool handlers may issue store operations."""
        return self._state is ConnectionState.READY

    def connect(self) -> None:
        """Connect to MongoDB and select the configured database.

        The connection is verified with a ``ping``. There is no retry: any
        failure leaves the manager UNINITIALIZED and is raised to the caller.

        Raises:
            DatabaseConnectionError: If the client cannot be created or the
                server does not answer the ping
        """
        if self._state is ConnectionState.READY:
            logger.debug("Already connected to MongoDB")
            return
        if self._state is ConnectionState.CLOSED:
            raise DatabaseConnectionError(
                message="Connection manager has been shut down",
                details={"state": self._state.value},
            )

        timeout_ms = self._settings.mongodb_timeout * 1000
        logger.info(f"Connecting to MongoDB at {self._settings.redacted_url()}...")

        client = None
        try:
            client = self._client_factory(
                self._settings.mongo_url,
                serverSelectionTimeoutMS=timeout_ms,
                connectTimeoutMS=timeout_ms,
            )
            client.admin.command("ping")
            database = client[self._settings.db_name]
        except Exception as e:
            logger.error(f"MongoDB connection error: {e}")
            if client is not None:
                client.close()
            raise DatabaseConnectionError(
                message=f"Failed to connect to MongoDB: {e}",
                details={"url": self._settings.redacted_url(), "database": self._settings.db_name},
                original_exception=e,
            ) from e

        self._client = client
        self._database = database
        self._state = ConnectionState.READY
        logger.info(f"Connected to MongoDB (database: {self._settings.db_name})")

    def get_database(self) -> Database:
        """Return the selected database.

        Raises:
            DatabaseNotConnectedError: If the manager is not READY
        """
        if not self.is_ready() or self._database is None:
            raise DatabaseNotConnectedError(details={"state": self._state.value})
        return self._database

    async def run(self, operation: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run a blocking pymongo call off the event loop and await its result."""
        return await self._executor.run(operation, *args, **kwargs)

    @property
    def in_flight(self) -> int:
        return self._executor.in_flight

    async def shutdown(self, grace_period: float | None = None) -> None:
        """Stop accepting operations, drain in-flight ones, then close the client.

        Args:
            grace_period: Seconds to wait for in-flight operations. Defaults to
                ``settings.shutdown_grace_period``. Operations still running
                afterwards fail however the driver fails them on close.
        """
        if self._state is ConnectionState.CLOSED and self._client is None:
            return

        self._state = ConnectionState.CLOSED
        if grace_period is None:
            grace_period = self._settings.shutdown_grace_period

        abandoned = await self._executor.drain(timeout=grace_period)
        if abandoned:
            logger.warning(f"Closing MongoDB connection with {abandoned} operation(s) in flight")
        self.close()

    def close(self) -> None:
        """Close the client immediately without waiting for in-flight work."""
        self._state = ConnectionState.CLOSED
        if self._client is not None:
            self._client.close()
            logger.info("MongoDB connection closed")
        self._client = None
        self._database = None
        self._executor.shutdown(wait=False)
