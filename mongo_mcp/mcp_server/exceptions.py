"""Exception hierarchy for the MongoDB MCP server.

All server-specific errors inherit from ``MongoMCPError``. Each carries a
human-readable ``message``, a machine-readable ``error_code`` and a ``details``
mapping, and serializes to a dict via ``to_dict()`` for structured logging.

Hierarchy::

    MongoMCPError
    ├── ConfigurationError
    ├── DatabaseError
    │   ├── DatabaseConnectionError
    │   ├── DatabaseNotConnectedError
    │   └── QueryExecutionError
    └── ValidationError
        └── InvalidArgumentError

Tool handlers never let these escape to the transport; they are rendered into
the text of the tool response instead. Startup code treats
``ConfigurationError`` and ``DatabaseConnectionError`` as fatal.

Usage Example:
--------------
```python
try:
    client.admin.command("ping")
except pymongo.errors.ConnectionFailure as e:
    raise DatabaseConnectionError(
        message="Failed to connect to MongoDB",
        details={"url": settings.redacted_url()},
        original_exception=e,
    ) from e
```
"""

import json
import traceback
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

# =============================================================================
# BASE EXCEPTION CLASS
# =============================================================================


@dataclass(frozen=True, eq=False)
class MongoMCPError(Exception):
    """Base exception for all MongoDB MCP server errors.

    Attributes:
    -----------
    message : str
        Human-readable error description for logs and tool responses
    error_code : str
        Machine-readable error identifier (e.g., "DB_NOT_CONNECTED")
    details : dict
        Additional context about the error (collection, operation, ...)
    timestamp : str
        ISO 8601 timestamp when the error occurred
    original_exception : Optional[Exception]
        The underlying exception that caused this error
    """

    message: str
    error_code: str = "MONGO_MCP_ERROR"
    details: dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    original_exception: Exception | None = None

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"error_code='{self.error_code}', "
            f"message='{self.message}', "
            f"timestamp='{self.timestamp}'"
            f")"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for structured logging.

        Returns:
        --------
        dict with keys: error, error_code, details, timestamp and, when the
        error wraps another exception, original_error.
        """
        error_dict = {
            "error": self.message,
            "error_code": self.error_code,
            "details": self.details,
            "timestamp": self.timestamp,
        }

        if self.original_exception:
            error_dict["original_error"] = {
                "type": type(self.original_exception).__name__,
                "message": str(self.original_exception),
                "traceback": traceback.format_exception(
                    type(self.original_exception),
                    self.original_exception,
                    self.original_exception.__traceback__,
                ),
            }

        return error_dict


# =============================================================================
# CONFIGURATION EXCEPTIONS
# =============================================================================


@dataclass(frozen=True, eq=False)
class ConfigurationError(MongoMCPError):
    """Required configuration is missing or invalid.

    Always fatal: raised before any connection attempt, the process prints
    the message to stderr and exits with status 1.
    """

    error_code: str = "CONFIGURATION_ERROR"


# =============================================================================
# DATABASE EXCEPTIONS
# =============================================================================


@dataclass(frozen=True, eq=False)
class DatabaseError(MongoMCPError):
    """Base class for all database-related errors."""

    error_code: str = "DATABASE_ERROR"


@dataclass(frozen=True, eq=False)
class DatabaseConnectionError(DatabaseError):
    """The initial connection to MongoDB failed.

    Use Case:
    ---------
    - MongoDB server unreachable or server selection timed out
    - Authentication failure
    - Malformed connection string

    There is no retry; the process exits with status 1.
    """

    error_code: str = "DB_CONNECTION_FAILED"


@dataclass(frozen=True, eq=False)
class DatabaseNotConnectedError(DatabaseError):
    """A store operation was requested while the connection is not ready."""

    message: str = "Database not connected"
    error_code: str = "DB_NOT_CONNECTED"


@dataclass(frozen=True, eq=False)
class QueryExecutionError(DatabaseError):
    """A MongoDB operation failed after the connection was established."""

    error_code: str = "QUERY_EXECUTION_FAILED"


# =============================================================================
# VALIDATION EXCEPTIONS
# =============================================================================


@dataclass(frozen=True, eq=False)
class ValidationError(MongoMCPError):
    """Tool input could not be used as given."""

    error_code: str = "VALIDATION_ERROR"


@dataclass(frozen=True, eq=False)
class InvalidArgumentError(ValidationError):
    """A JSON argument parsed but has the wrong shape.

    Example:
    --------
    >>> raise InvalidArgumentError(
    ...     message="pipeline must be a JSON array",
    ...     details={"argument": "pipeline", "received": "object"},
    ... )
    """

    error_code: str = "INVALID_ARGUMENT"


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def convert_to_mcp_exception(
    exception: Exception,
    default_message: str = "An unexpected error occurred",
    context: dict[str, Any] | None = None,
) -> MongoMCPError:
    """Convert any exception to an appropriate MongoMCPError.

    Used by the tool layer so every failure is logged with the same structure.

    Args:
    -----
    exception : Exception
        The original exception to convert
    default_message : str
        Fallback message if exception type is unknown
    context : dict, optional
        Additional context to include in error details
    """
    import pydantic
    import pymongo.errors

    context = context or {}

    if isinstance(exception, MongoMCPError):
        return exception

    if isinstance(
        exception, (pymongo.errors.ConnectionFailure, pymongo.errors.ServerSelectionTimeoutError)
    ):
        return DatabaseConnectionError(
            message=str(exception),
            details={**context, "error": str(exception)},
            original_exception=exception,
        )

    if isinstance(exception, pymongo.errors.PyMongoError):
        return QueryExecutionError(
            message=str(exception),
            details={**context, "error": str(exception)},
            original_exception=exception,
        )

    if isinstance(exception, (json.JSONDecodeError, pydantic.ValidationError)):
        return ValidationError(
            message=str(exception),
            details={**context, "error": str(exception)},
            original_exception=exception,
        )

    return MongoMCPError(
        message=str(exception) or default_message,
        error_code="INTERNAL_ERROR",
        details={**context, "error_type": type(exception).__name__, "error": str(exception)},
        original_exception=exception,
    )
