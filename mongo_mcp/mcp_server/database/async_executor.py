"""Thread pool for running blocking pymongo operations from async tool handlers.

pymongo's ``MongoClient`` is synchronous. Tool handlers are coroutines, so each
store call is pushed onto this pool and awaited, which keeps the event loop
(and therefore the stdio transport) responsive while MongoDB answers.

The pool also keeps track of the calls that are still running so shutdown can
wait for them before the client is closed.

Example:
    >>> executor = AsyncExecutorPool(max_workers=4)
    >>> docs = await executor.run(lambda: list(collection.find({})))
    >>> await executor.drain(timeout=5.0)
    >>> executor.shutdown()
"""

import asyncio
import functools
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AsyncExecutorPool:
    """Thread pool executor for running blocking operations asynchronously.

    Attributes:
        DEFAULT_MAX_WORKERS: Default number of threads in pool (10)
    """

    DEFAULT_MAX_WORKERS: int = 10

    def __init__(self, max_workers: int | None = None) -> None:
        max_workers = max_workers or self.DEFAULT_MAX_WORKERS
        self._executor: ThreadPoolExecutor | None = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="mongo-mcp-worker-"
        )
        self._in_flight: set[asyncio.Future] = set()

        logger.debug(f"AsyncExecutorPool initialized with {max_workers} workers")

    @property
    def in_flight(self) -> int:
        """Number of submitted operations that have not finished yet."""
        return len(self._in_flight)

    async def run(self, operation: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run ``operation(*args, **kwargs)`` on the pool and await its result.

        Raises:
            RuntimeError: If the pool has been shut down
        """
        if self._executor is None:
            raise RuntimeError("executor pool is shut down")

        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(self._executor, functools.partial(operation, *args, **kwargs))
        self._in_flight.add(future)
        future.add_done_callback(self._in_flight.discard)
        return await future

    async def drain(self, timeout: float | None = None) -> int:
        """Wait for in-flight operations to finish.

        Args:
            timeout: Maximum seconds to wait; None waits indefinitely

        Returns:
            Number of operations still running when the wait ended
        """
        if not self._in_flight:
            return 0

        pending_count = len(self._in_flight)
        logger.info(f"Waiting for {pending_count} in-flight operation(s) to finish...")
        _, pending = await asyncio.wait(set(self._in_flight), timeout=timeout)
        if pending:
            logger.warning(f"{len(pending)} operation(s) still running after {timeout}s")
        return len(pending)

    def shutdown(self, wait: bool = False) -> None:
        """Stop the pool. Queued operations that have not started are cancelled."""
        if self._executor is None:
            return
        logger.debug(f"Shutting down AsyncExecutorPool (wait={wait})...")
        self._executor.shutdown(wait=wait, cancel_futures=True)
        self._executor = None
