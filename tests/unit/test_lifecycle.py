"""Unit tests for the serving loop and the command-line entry point."""

import asyncio
import signal
from unittest.mock import AsyncMock, MagicMock

import pytest

from mongo_mcp import __main__ as entry
from mongo_mcp.mcp_server.exceptions import DatabaseConnectionError
from mongo_mcp.mcp_server.lifecycle import (
    SHUTDOWN_SIGNALS,
    install_signal_handlers,
    remove_signal_handlers,
    serve,
)


class BlockingServer:
    """Stands in for FastMCP; its transport runs until cancelled."""

    def __init__(self):
        self.started = asyncio.Event()
        self.cancelled = False

    async def run_async(self, transport=None, **kwargs):
        assert transport == "stdio"
        self.started.set()
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.cancelled = True
            raise


class EndingServer:
    def __init__(self, error: Exception | None = None):
        self.error = error

    async def run_async(self, transport=None, **kwargs):
        if self.error:
            raise self.error


@pytest.fixture
def fake_manager():
    manager = MagicMock(name="manager")
    manager.shutdown = AsyncMock()
    return manager


class TestSignalHandlers:
    @pytest.mark.asyncio
    async def test_loop_handlers_are_removed(self):
        loop = asyncio.get_running_loop()
        stop = asyncio.Event()

        hooked = install_signal_handlers(stop)
        assert hooked == {sig: None for sig in SHUTDOWN_SIGNALS}
        remove_signal_handlers(hooked)

        assert not loop.remove_signal_handler(signal.SIGTERM)

    @pytest.mark.asyncio
    async def test_fallback_handlers_are_restored(self, monkeypatch):
        loop = asyncio.get_running_loop()
        monkeypatch.setattr(loop, "add_signal_handler", MagicMock(side_effect=NotImplementedError))
        before = {sig: signal.getsignal(sig) for sig in SHUTDOWN_SIGNALS}
        stop = asyncio.Event()

        hooked = install_signal_handlers(stop)
        try:
            handler = signal.getsignal(signal.SIGTERM)
            assert handler is not before[signal.SIGTERM]
            handler(signal.SIGTERM, None)
            await asyncio.sleep(0)
            assert stop.is_set()
        finally:
            remove_signal_handlers(hooked)

        assert {sig: signal.getsignal(sig) for sig in SHUTDOWN_SIGNALS} == before


class TestServe:
    @pytest.mark.asyncio
    async def test_stop_event_shuts_down_then_stops_transport(self, fake_manager):
        server = BlockingServer()
        stop = asyncio.Event()

        task = asyncio.create_task(serve(server, fake_manager, grace_period=2.5, stop=stop))
        await server.started.wait()
        stop.set()

        assert await task == 0
        fake_manager.shutdown.assert_awaited_once_with(2.5)
        assert server.cancelled

    @pytest.mark.asyncio
    async def test_transport_end_closes_connection(self, fake_manager):
        code = await serve(EndingServer(), fake_manager, grace_period=1.0, stop=asyncio.Event())

        assert code == 0
        fake_manager.shutdown.assert_awaited_once_with(1.0)

    @pytest.mark.asyncio
    async def test_transport_failure_exits_non_zero(self, fake_manager):
        code = await serve(
            EndingServer(RuntimeError("stdin broken")), fake_manager, stop=asyncio.Event()
        )

        assert code == 1
        fake_manager.shutdown.assert_awaited_once()


class TestMain:
    @pytest.fixture(autouse=True)
    def no_logging_setup(self, monkeypatch):
        monkeypatch.setattr(entry, "configure_logging", MagicMock())

    def test_missing_configuration_exits_1_before_connecting(self, monkeypatch, tmp_path, capsys):
        manager_cls = MagicMock()
        monkeypatch.setattr(entry, "ConnectionManager", manager_cls)

        code = entry.main(["--env-file", str(tmp_path / "absent.env")])

        assert code == 1
        stderr = capsys.readouterr().err
        assert "MONGO_URL=mongodb://localhost:27017" in stderr
        assert "DB_NAME=my_database" in stderr
        manager_cls.assert_not_called()

    def test_connection_failure_exits_1_without_serving(self, monkeypatch, tmp_path):
        monkeypatch.setenv("MONGO_URL", "mongodb://nowhere:27017")
        monkeypatch.setenv("DB_NAME", "shop")
        manager = MagicMock()
        manager.connect.side_effect = DatabaseConnectionError(message="Failed to connect to MongoDB: timeout")
        monkeypatch.setattr(entry, "ConnectionManager", MagicMock(return_value=manager))
        create_server = MagicMock()
        monkeypatch.setattr(entry, "create_server", create_server)

        code = entry.main(["--env-file", str(tmp_path / "absent.env")])

        assert code == 1
        manager.close.assert_called_once()
        create_server.assert_not_called()

    def test_serves_after_successful_connect(self, monkeypatch, tmp_path):
        monkeypatch.setenv("MONGO_URL", "mongodb://db:27017")
        monkeypatch.setenv("DB_NAME", "shop")
        manager = MagicMock()
        monkeypatch.setattr(entry, "ConnectionManager", MagicMock(return_value=manager))
        monkeypatch.setattr(entry, "create_server", MagicMock(return_value="server"))
        serve_mock = AsyncMock(return_value=0)
        monkeypatch.setattr(entry, "serve", serve_mock)

        code = entry.main(["--env-file", str(tmp_path / "absent.env"), "--log-level", "warning"])

        assert code == 0
        manager.connect.assert_called_once()
        serve_mock.assert_awaited_once_with("server", manager, 10.0)
