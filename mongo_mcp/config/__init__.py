"""Configuration loading for the MongoDB MCP server."""

from .logging import configure_logging
from .settings import Settings, configuration_help, load_settings

__all__ = ["Settings", "configuration_help", "configure_logging", "load_settings"]
