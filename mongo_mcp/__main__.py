"""Command-line entry point: ``mongo-mcp`` / ``python -m mongo_mcp``.

Startup order matters: configuration is validated before any connection
attempt, and the stdio transport is attached only after MongoDB answered.
Either failure exits with status 1 without serving anything.
"""

import argparse
import asyncio
import logging
import sys

from mongo_mcp import __version__
from mongo_mcp.config import configure_logging, load_settings
from mongo_mcp.config.settings import DEFAULT_ENV_FILE
from mongo_mcp.mcp_server.database.connection import ConnectionManager
from mongo_mcp.mcp_server.exceptions import ConfigurationError, DatabaseConnectionError
from mongo_mcp.mcp_server.lifecycle import serve
from mongo_mcp.mcp_server.server import create_server

logger = logging.getLogger("mongo_mcp")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="mongo-mcp",
        description="Expose MongoDB CRUD and aggregation operations as MCP tools over stdio.",
    )
    parser.add_argument(
        "--env-file",
        default=DEFAULT_ENV_FILE,
        help=f"KEY=value file exported into the environment before reading settings (default: {DEFAULT_ENV_FILE})",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Override LOG_LEVEL",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    try:
        settings = load_settings(args.env_file)
    except ConfigurationError as e:
        print(f"❌ {e.message}", file=sys.stderr)
        return 1

    configure_logging(args.log_level or settings.log_level)

    manager = ConnectionManager(settings)
    try:
        manager.connect()
    except DatabaseConnectionError as e:
        logger.error(f"❌ {e.message}")
        manager.close()
        return 1

    server = create_server(manager)
    logger.info("✅ MCP server ready with stdio transport")
    return asyncio.run(serve(server, manager, settings.shutdown_grace_period))


if __name__ == "__main__":
    sys.exit(main())
