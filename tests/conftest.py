"""Pytest configuration and shared fixtures for the MongoDB MCP server tests.

Test Organization:
------------------
tests/
├── unit/          # Fast, isolated tests; pymongo replaced by MagicMock
├── integration/   # FastMCP server driven through an in-memory client
└── conftest.py    # This file - shared fixtures

Unit tests never touch a real MongoDB. The ``mock_client`` fixture stands in
for ``pymongo.MongoClient`` and is injected through the connection manager's
``client_factory``.
"""

from collections.abc import Generator
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from mongo_mcp.config.settings import Settings
from mongo_mcp.mcp_server.database.connection import ConnectionManager
from mongo_mcp.mcp_server.tools.document_tools import DocumentTools

CONFIG_ENV_VARS = (
    "MONGO_URL",
    "DB_NAME",
    "LOG_LEVEL",
    "MONGODB_TIMEOUT",
    "EXECUTOR_MAX_WORKERS",
    "DEFAULT_QUERY_LIMIT",
    "MAX_RESULT_DOCUMENTS",
    "SERVER_NAME",
    "SERVER_VERSION",
    "SHUTDOWN_GRACE_PERIOD",
)


# =============================================================================
# PYTEST CONFIGURATION
# =============================================================================


def pytest_configure(config):
    """Register custom markers.

    ```bash
    pytest -m unit              # Only unit tests (fast)
    pytest -m integration       # Only in-memory server tests
    ```
    """
    config.addinivalue_line("markers", "unit: Fast unit tests with mocked dependencies")
    config.addinivalue_line("markers", "integration: Tests driving the MCP server end to end")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath)

        if "unit" in test_path.parts:
            item.add_marker(pytest.mark.unit)
        elif "integration" in test_path.parts:
            item.add_marker(pytest.mark.integration)


# =============================================================================
# ENVIRONMENT FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove configuration variables for the duration of each test.

    Setting before deleting makes monkeypatch record the variable, so values
    exported by a test (e.g. from a .env file) are removed again afterwards.
    """
    for name in CONFIG_ENV_VARS:
        monkeypatch.setenv(name, "placeholder")
        monkeypatch.delenv(name)


@pytest.fixture
def settings() -> Settings:
    return Settings(mongo_url="mongodb://localhost:27017", db_name="test_db")


# =============================================================================
# MOCK DATABASE FIXTURES
# =============================================================================


@pytest.fixture
def mock_collection() -> MagicMock:
    """A pymongo Collection stand-in; configure return values per test."""
    return MagicMock(name="collection")


@pytest.fixture
def mock_database(mock_collection: MagicMock) -> MagicMock:
    """A pymongo Database stand-in; every ``db[name]`` returns ``mock_collection``."""
    database = MagicMock(name="database")
    database.__getitem__.return_value = mock_collection
    database.list_collection_names.return_value = []
    return database


@pytest.fixture
def mock_client(mock_database: MagicMock) -> MagicMock:
    """A MongoClient stand-in whose ping succeeds."""
    client = MagicMock(name="client")
    client.admin.command.return_value = {"ok": 1.0}
    client.__getitem__.return_value = mock_database
    return client


@pytest.fixture
def client_factory(mock_client: MagicMock) -> MagicMock:
    return MagicMock(name="client_factory", return_value=mock_client)


@pytest.fixture
def manager(settings: Settings, client_factory: MagicMock) -> Generator[ConnectionManager, None, None]:
    """A connected ConnectionManager backed by ``mock_client``."""
    manager = ConnectionManager(settings, client_factory=client_factory)
    manager.connect()
    yield manager
    manager.close()


@pytest.fixture
def disconnected_manager(
    settings: Settings, client_factory: MagicMock
) -> Generator[ConnectionManager, None, None]:
    """A ConnectionManager that was never connected."""
    manager = ConnectionManager(settings, client_factory=client_factory)
    yield manager
    manager.close()


@pytest.fixture
def document_tools(manager: ConnectionManager) -> DocumentTools:
    return DocumentTools(manager)
