"""Tests for Connection lifecycle and the reader task."""

import asyncio
import logging

import pytest

from ls30.commander import Commander
from ls30.config import ConnectionConfig
from ls30.connection import Connection
from ls30.exceptions import ConnectionError, TransportError
from ls30.protocol.messages import GsmLine
from ls30.protocol.router import FrameRouter, MessageHandler
from ls30.transport import MockTransport, TcpTransport


class CollectingHandler(MessageHandler):
    """Handler that collects every message into one list."""

    def __init__(self):
        self.messages = []

    async def _collect(self, message):
        self.messages.append(message)

    handle_response = _collect
    handle_added_device = _collect
    handle_contact_id = _collect
    handle_extended_status = _collect
    handle_at = _collect
    handle_gsm = _collect


class FlakyTransport(MockTransport):
    """Mock transport whose first few open() calls fail."""

    def __init__(self, failures):
        super().__init__()
        self.failures = failures

    async def open(self):
        if self.failures > 0:
            self.failures -= 1
            raise TransportError("Connection refused")
        await super().open()


async def wait_until(predicate, timeout=1.0):
    """Poll a condition while the reader task runs."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not met in time")
        await asyncio.sleep(0.01)


class TestConnection:
    """Tests for Connection class."""

    @pytest.fixture
    def mock_transport(self):
        """Create a mock transport."""
        return MockTransport()

    @pytest.fixture
    def handler(self):
        """Create a collecting handler."""
        return CollectingHandler()

    @pytest.fixture
    def connection(self, mock_transport, handler):
        """Create a connection with the collecting handler."""
        connection = Connection(mock_transport)
        connection.set_handler(handler)
        return connection

    def test_default_router(self, connection, handler):
        """Test that a router is created when none is given."""
        assert isinstance(connection.router, FrameRouter)
        assert connection.router.handler is handler
        assert not connection.is_connected
        assert not connection.is_running

    @pytest.mark.asyncio
    async def test_context_manager(self, connection, mock_transport):
        """Test start and close through async with."""
        async with connection:
            assert connection.is_connected
            assert connection.is_running

        assert not connection.is_connected
        assert not connection.is_running
        assert mock_transport.open_count == 1

    @pytest.mark.asyncio
    async def test_reader_routes_lines(self, connection, mock_transport, handler):
        """Test that received lines reach the handler."""
        mock_transport.add_lines("GSM=ready", "!&", "XINPIC=0a")

        async with connection:
            await wait_until(lambda: len(handler.messages) == 2)

        assert isinstance(handler.messages[0], GsmLine)
        assert handler.messages[1].payload == "0a"

    @pytest.mark.asyncio
    async def test_send_command(self, connection, mock_transport):
        """Test writing a frame."""
        async with connection:
            await connection.send_command("!n0?&")

        mock_transport.assert_written(b"!n0?&")

    @pytest.mark.asyncio
    async def test_send_when_closed(self, connection):
        """Test that sending without a connection raises."""
        with pytest.raises(ConnectionError, match="Unable to send !n0\\?&: Not connected"):
            await connection.send_command("!n0?&")

    @pytest.mark.asyncio
    async def test_start_failure_raises(self):
        """Test that a failed connect raises without reconnect."""
        connection = Connection(FlakyTransport(failures=1))
        with pytest.raises(TransportError):
            await connection.start()
        assert not connection.is_running

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, connection, mock_transport):
        """Test that a second start does nothing."""
        await connection.start()
        await connection.start()
        assert mock_transport.open_count == 1
        await connection.close()
        await connection.close()

    @pytest.mark.asyncio
    async def test_disconnect_stops_reader(self, connection, mock_transport, caplog):
        """Test that a dropped connection ends the reader without reconnect."""
        await connection.start()
        await asyncio.sleep(0)

        with caplog.at_level(logging.ERROR):
            await mock_transport.drop_connection()
            await wait_until(lambda: not connection.is_running)

        assert not connection.is_connected
        assert "Connection to mock://ls30 lost" in caplog.text

    @pytest.mark.asyncio
    async def test_reconnect_after_disconnect(self, mock_transport, handler):
        """Test that the reader reopens the transport with reconnect on."""
        connection = Connection(mock_transport, reconnect=True, reconnect_delay=0)
        connection.set_handler(handler)

        await connection.start()
        await asyncio.sleep(0)
        await mock_transport.drop_connection()
        await wait_until(lambda: mock_transport.open_count == 2)

        mock_transport.add_line("GSM=back")
        await wait_until(lambda: len(handler.messages) == 1)
        assert handler.messages[0].text == "GSM=back"

        await connection.close()

    @pytest.mark.asyncio
    async def test_reconnect_after_failed_start(self):
        """Test that a failed first connect is retried in the background."""
        transport = FlakyTransport(failures=2)
        connection = Connection(transport, reconnect=True, reconnect_delay=0)

        await connection.start()
        assert connection.is_running
        await wait_until(lambda: connection.is_connected)

        assert transport.failures == 0
        await connection.close()

    @pytest.mark.asyncio
    async def test_processing_error_keeps_reading(self, mock_transport, caplog):
        """Test that a handler failure does not stop the reader."""

        class FailingHandler(CollectingHandler):
            async def handle_at(self, message):
                raise ConnectionError("handler failed")

        failing = FailingHandler()
        connection = Connection(mock_transport, FrameRouter(handler=failing))
        mock_transport.add_lines("ATZ", "GSM=ok")

        with caplog.at_level(logging.ERROR):
            async with connection:
                await wait_until(lambda: len(failing.messages) == 1)

        assert failing.messages[0].text == "GSM=ok"
        assert "Failed to process line: ATZ" in caplog.text

    def test_from_config(self):
        """Test building a TCP connection from configuration."""
        config = ConnectionConfig(server="alarm.local:1681", reconnect=True)
        connection = Connection.from_config(config)

        assert isinstance(connection.transport, TcpTransport)
        assert connection.transport.address == "alarm.local:1681"
        assert connection.reconnect
        assert connection.command_timeout == 5.0
        assert connection.discard_on_timeout

    def test_from_config_command_settings(self):
        """Test that the configured response timeout reaches the commander."""
        config = ConnectionConfig(server="alarm:1681", timeout=0.5, discard_on_timeout=False)
        connection = Connection.from_config(config)
        commander = Commander(connection)

        assert connection.command_timeout == 0.5
        assert commander.timeout == 0.5
        assert not commander.discard_on_timeout

    def test_commander_arguments_override_connection(self):
        """Test explicit commander settings win over the connection's."""
        connection = Connection(MockTransport(), command_timeout=0.5)
        commander = Commander(connection, timeout=2.0, discard_on_timeout=False)

        assert commander.timeout == 2.0
        assert not commander.discard_on_timeout
