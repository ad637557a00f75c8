"""Centralized configuration management using Pydantic Settings.

Settings are read from the process environment. Before they are read, an
optional ``.env`` file is parsed and every key it defines is exported into
``os.environ`` (keys already present in the environment keep their value).

Only two settings are required:

    MONGO_URL   MongoDB connection string
    DB_NAME     Name of the database every tool operates on

Example:
    >>> from mongo_mcp.config.settings import load_settings
    >>> settings = load_settings(".env")
    >>> settings.db_name
    'shop'
"""

import logging
import re
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mongo_mcp.mcp_server.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_ENV_FILE = ".env"

REQUIRED_KEYS: dict[str, str] = {
    "MONGO_URL": "mongodb://localhost:27017",
    "DB_NAME": "my_database",
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables using uppercase
    names (e.g. ``MONGODB_TIMEOUT=5``).
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================================================
    # MongoDB Configuration
    # ========================================================================

    mongo_url: str = Field(
        description=(
            "MongoDB connection URI. "
            "Format: mongodb://[username:password@]host[:port][/database][?options]"
        ),
    )

    db_name: str = Field(
        description="Name of the MongoDB database used by every tool",
    )

    mongodb_timeout: int = Field(
        default=30,
        description="Server selection and connect timeout in seconds",
        ge=1,
        le=300,
    )

    executor_max_workers: int = Field(
        default=10,
        description="Threads available for running blocking pymongo calls",
        ge=1,
    )

    # ========================================================================
    # Tool Configuration
    # ========================================================================

    default_query_limit: int = Field(
        default=10,
        description="Limit applied by the query tool when the caller gives none",
        ge=0,
    )

    max_result_documents: int | None = Field(
        default=None,
        description=(
            "Upper bound on documents materialized by query and aggregate. "
            "Unset means unbounded"
        ),
        ge=1,
    )

    # ========================================================================
    # MCP Server Configuration
    # ========================================================================

    server_name: str = Field(default="mongo-mcp", description="Name advertised to MCP clients")

    server_version: str = Field(default="1.0.0", description="Version advertised to MCP clients")

    shutdown_grace_period: float = Field(
        default=10.0,
        description="Seconds to wait for in-flight operations before closing the client",
        ge=0.0,
    )

    # ========================================================================
    # Logging Configuration
    # ========================================================================

    log_level: str = Field(
        default="INFO",
        description="Logging level for diagnostics written to stderr",
    )

    @field_validator("mongo_url", "db_name")
    @classmethod
    def validate_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level {value!r}")
        return level

    def redacted_url(self) -> str:
        """Connection string with the password masked, safe for logging."""
        return re.sub(r"(mongodb(?:\+srv)?://[^:/@]+:)[^@]+(@)", r"\1****\2", self.mongo_url)


def configuration_help(missing: list[str]) -> str:
    """Build the guidance printed when required configuration is missing."""
    lines = [f"Missing required configuration: {', '.join(missing)}", ""]
    lines.append(f"Set these in the environment or in a {DEFAULT_ENV_FILE} file:")
    for key, example in REQUIRED_KEYS.items():
        lines.append(f"  {key}={example}")
    return "\n".join(lines)


def load_env_file(env_file: str | Path | None = DEFAULT_ENV_FILE) -> bool:
    """Export the keys of a ``KEY=value`` file into ``os.environ``.

    Returns True when the file existed and was read. A missing file is not an
    error; the environment alone may carry the configuration.
    """
    if env_file is None:
        return False
    path = Path(env_file)
    if not path.is_file():
        logger.debug(f"No env file at {path}, using process environment only")
        return False
    loaded = load_dotenv(path, override=False)
    logger.debug(f"Loaded env file {path}")
    return loaded


def load_settings(env_file: str | Path | None = DEFAULT_ENV_FILE, **overrides) -> Settings:
    """Seed the environment from ``env_file`` and build validated settings.

    Raises:
        ConfigurationError: If MONGO_URL or DB_NAME is absent or blank, or
            any other setting fails validation.
    """
    load_env_file(env_file)

    try:
        return Settings(**overrides)
    except ValidationError as e:
        required = {key.lower(): key for key in REQUIRED_KEYS}
        missing = []
        invalid = []
        for error in e.errors():
            field_name = str(error["loc"][0]) if error["loc"] else ""
            if field_name in required:
                missing.append(required[field_name])
            else:
                invalid.append(f"{field_name.upper()}: {error['msg']}")

        if missing:
            raise ConfigurationError(
                message=configuration_help(missing),
                details={"missing": missing},
                original_exception=e,
            ) from e

        raise ConfigurationError(
            message="Invalid configuration: " + "; ".join(invalid),
            details={"invalid": invalid},
            original_exception=e,
        ) from e
