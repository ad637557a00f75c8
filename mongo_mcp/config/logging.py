"""Logging setup.

Standard output carries MCP protocol frames, so every handler writes to
stderr.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging on stderr at ``level``."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )
    # pymongo is chatty at DEBUG (heartbeats, topology events)
    logging.getLogger("pymongo").setLevel(max(logging.INFO, logging.getLogger().level))
