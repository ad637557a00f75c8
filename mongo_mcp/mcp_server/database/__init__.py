"""MongoDB connection lifecycle and blocking-call execution."""

from .async_executor import AsyncExecutorPool
from .connection import ConnectionManager, ConnectionState

__all__ = ["AsyncExecutorPool", "ConnectionManager", "ConnectionState"]
