"""Serving loop: run the stdio transport until a shutdown signal arrives.

SIGINT and SIGTERM set a shutdown event. The supervising coroutine then closes
the connection manager (which first stops accepting new store operations and
waits up to the grace period for in-flight ones) and finally stops the
transport.
"""

import asyncio
import contextlib
import logging
import os
import signal
from typing import Any, Protocol

from .database.connection import ConnectionManager

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)

# Seconds to wait for the transport task after cancelling it
TRANSPORT_STOP_TIMEOUT = 1.0


class Transport(Protocol):
    async def run_async(self, transport: str | None = None, **kwargs) -> None: ...


def install_signal_handlers(stop: asyncio.Event) -> dict[signal.Signals, Any]:
    """Route SIGINT/SIGTERM to ``stop``.

    Returns:
        What ``remove_signal_handlers`` needs to undo: for each hooked signal,
        None when the loop owns the handler, otherwise the handler it replaced
    """
    loop = asyncio.get_running_loop()
    hooked: dict[signal.Signals, Any] = {}
    for sig in SHUTDOWN_SIGNALS:
        try:
            loop.add_signal_handler(sig, stop.set)
        except (NotImplementedError, RuntimeError):
            # Windows event loops, or not running in the main thread
            previous = signal.getsignal(sig)
            signal.signal(sig, lambda *_: loop.call_soon_threadsafe(stop.set))
            hooked[sig] = signal.SIG_DFL if previous is None else previous
        else:
            hooked[sig] = None
    return hooked


def remove_signal_handlers(hooked: dict[signal.Signals, Any]) -> None:
    loop = asyncio.get_running_loop()
    for sig, previous in hooked.items():
        if previous is None:
            loop.remove_signal_handler(sig)
        else:
            signal.signal(sig, previous)


async def serve(
    server: Transport,
    manager: ConnectionManager,
    grace_period: float | None = None,
    stop: asyncio.Event | None = None,
) -> int:
    """Serve ``server`` over stdio until ``stop`` is set or the transport ends.

    Args:
        server: FastMCP server (anything with ``run_async``)
        manager: Connection manager to shut down on exit
        grace_period: Seconds to wait for in-flight store operations
        stop: Shutdown event; signal handlers are installed when omitted

    Returns:
        Process exit status: 0 after a clean shutdown, 1 if the transport failed
    """
    hooked: dict[signal.Signals, Any] = {}
    if stop is None:
        stop = asyncio.Event()
        hooked = install_signal_handlers(stop)

    transport_task = asyncio.create_task(server.run_async(transport="stdio"), name="mcp-transport")
    stop_task = asyncio.create_task(stop.wait(), name="shutdown-signal")

    try:
        await asyncio.wait({transport_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        remove_signal_handlers(hooked)

    if stop_task.done():
        logger.info("Shutdown signal received")
    else:
        stop_task.cancel()
        logger.info("Transport closed")

    await manager.shutdown(grace_period)

    if not transport_task.done():
        transport_task.cancel()
        await asyncio.wait({transport_task}, timeout=TRANSPORT_STOP_TIMEOUT)
        if not transport_task.done():
            # The stdin reader blocks in a worker thread until the next line;
            # nothing is left to clean up, so leave without waiting for it.
            logger.info("Exiting without waiting for the stdio reader")
            logging.shutdown()
            os._exit(0)

    if transport_task.cancelled():
        return 0

    error = transport_task.exception()
    if error is not None:
        logger.error(f"MCP transport failed: {error}")
        return 1

    with contextlib.suppress(asyncio.CancelledError):
        await stop_task
    return 0
