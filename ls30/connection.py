"""
Persistent connection to an LS30 device.

A Connection owns a transport and a FrameRouter. A background reader task
reads lines from the transport and routes each one to the current message
handler (normally a Commander). Outgoing frames are written directly.

Lifecycle:
    start() -> open transport, start reader task
    stop()  -> cancel reader task
    close() -> stop, then close transport

With reconnect enabled, a failed connect or a dropped socket is retried
after a fixed delay for as long as the connection is running.

Example:
    >>> connection = Connection.from_config(ConnectionConfig.from_env())
    >>> commander = Commander(connection)
    >>> async with connection:
    ...     mode = await commander.get_setting("Operation Mode")
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from ls30.exceptions import ConnectionError, LS30Error, TimeoutError, TransportError
from ls30.protocol.constants import ProtocolConstants
from ls30.protocol.router import FrameRouter
from ls30.transport.tcp import TcpTransport

if TYPE_CHECKING:
    from types import TracebackType

    from ls30.config import ConnectionConfig
    from ls30.protocol.commands import CommandCodec
    from ls30.protocol.messages import Message
    from ls30.protocol.router import MessageHandler
    from ls30.transport.abc import AbstractTransport

logger = logging.getLogger(__name__)


class Connection:
    """
    Line-oriented connection with a background reader.

    Attributes:
        transport: The underlying transport.
        router: Router that classifies and dispatches received lines.
        reconnect: Whether failures are retried.
        is_connected: Whether the transport is open.
        is_running: Whether the reader task is active.
    """

    def __init__(
        self,
        transport: AbstractTransport,
        router: FrameRouter | None = None,
        *,
        reconnect: bool = False,
        reconnect_delay: float = ProtocolConstants.RECONNECT_DELAY,
        command_timeout: float = ProtocolConstants.DEFAULT_TIMEOUT,
        discard_on_timeout: bool = True,
    ) -> None:
        """
        Initialize the connection.

        Args:
            transport: Transport to the device.
            router: Line router (default: router over the built-in commands).
            reconnect: Retry failed connects and dropped connections.
            reconnect_delay: Seconds between reconnect attempts.
            command_timeout: Response timeout for commanders on this
                connection.
            discard_on_timeout: Whether those commanders drop timed-out
                commands.
        """
        self._transport = transport
        self._router = router if router is not None else FrameRouter()
        self._reconnect = reconnect
        self._reconnect_delay = reconnect_delay
        self._command_timeout = command_timeout
        self._discard_on_timeout = discard_on_timeout
        self._reader_task: asyncio.Task[None] | None = None

    @classmethod
    def from_config(
        cls,
        config: ConnectionConfig,
        codec: CommandCodec | None = None,
    ) -> Connection:
        """
        Build a TCP connection from a configuration.

        Args:
            config: Connection settings.
            codec: Command codec for the router (default: built-in table).

        Returns:
            Unstarted Connection.
        """
        transport = TcpTransport(
            config.server.host,
            config.server.port,
            connect_timeout=config.connect_timeout,
        )
        return cls(
            transport,
            FrameRouter(codec),
            reconnect=config.reconnect,
            reconnect_delay=config.reconnect_delay,
            command_timeout=config.timeout,
            discard_on_timeout=config.discard_on_timeout,
        )

    @property
    def transport(self) -> AbstractTransport:
        """Get the underlying transport."""
        return self._transport

    @property
    def router(self) -> FrameRouter:
        """Get the line router."""
        return self._router

    @property
    def reconnect(self) -> bool:
        return self._reconnect

    @property
    def command_timeout(self) -> float:
        """Default response timeout for commanders."""
        return self._command_timeout

    @property
    def discard_on_timeout(self) -> bool:
        return self._discard_on_timeout

    @property
    def is_connected(self) -> bool:
        """Check if the transport is open."""
        return self._transport.is_open

    @property
    def is_running(self) -> bool:
        """Check if the reader task is active."""
        return self._reader_task is not None and not self._reader_task.done()

    def set_handler(self, handler: MessageHandler | None) -> None:
        """Set the object that receives all routed messages."""
        self._router.set_handler(handler)

    async def open(self) -> None:
        """
        Open the transport.

        Raises:
            TransportError: If the connection fails.
            TimeoutError: If the connection attempt times out.
        """
        if self._transport.is_open:
            return
        await self._transport.open()
        logger.info("Connected to %s", self._transport.address)

    async def start(self) -> None:
        """
        Open the transport (if needed) and start the reader task.

        Without reconnect, a failure to connect is raised. With reconnect,
        the reader task keeps retrying in the background.
        """
        if self.is_running:
            return

        try:
            await self.open()
        except (TransportError, TimeoutError) as e:
            if not self._reconnect:
                raise
            logger.error("Connection to %s failed, retrying: %s", self._transport.address, e)

        self._reader_task = asyncio.create_task(self._read_loop())

    async def stop(self) -> None:
        """Cancel the reader task."""
        task = self._reader_task
        self._reader_task = None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def close(self) -> None:
        """Stop reading and close the transport. Safe to call repeatedly."""
        await self.stop()
        if self._transport.is_open:
            await self._transport.close()
            logger.info("Disconnected from %s", self._transport.address)

    async def send_command(self, command: str) -> None:
        """
        Write one request frame.

        Args:
            command: Frame text, e.g. "!n0?&".

        Raises:
            ConnectionError: If the transport is not open.
            TransportError: If the write fails.
        """
        if not self._transport.is_open:
            raise ConnectionError(f"Unable to send {command}: Not connected")

        await self._transport.write(command.encode("latin-1"))
        logger.debug("Sent: %s", command)

    async def process_line(self, line: str) -> Message | None:
        """
        Route one received line.

        Args:
            line: Line text.

        Returns:
            The dispatched message, or None if the line was dropped.
        """
        logger.debug("Received: %s", line)
        return await self._router.route(line)

    async def _read_loop(self) -> None:
        while True:
            if not self._transport.is_open:
                if not self._reconnect:
                    return
                await self._retry_connect()

            try:
                line = await self._transport.read_line()
            except TransportError as e:
                if not self._reconnect:
                    logger.error("Connection to %s lost: %s", self._transport.address, e)
                    await self._transport.close()
                    return
                logger.error("Disconnected from %s, retrying: %s", self._transport.address, e)
                await self._transport.close()
                continue

            try:
                await self.process_line(line)
            except LS30Error:
                logger.exception("Failed to process line: %s", line)

    async def _retry_connect(self) -> None:
        while not self._transport.is_open:
            await asyncio.sleep(self._reconnect_delay)
            try:
                await self.open()
            except (TransportError, TimeoutError) as e:
                logger.error("Connection to %s failed, retrying: %s", self._transport.address, e)

    async def __aenter__(self) -> Connection:
        """Async context manager entry - starts the connection."""
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Async context manager exit - closes the connection."""
        await self.close()

    def __repr__(self) -> str:
        status = "running" if self.is_running else "stopped"
        return f"Connection({self._transport.address!r}, {status})"
