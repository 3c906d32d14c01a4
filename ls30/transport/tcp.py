"""
TCP transport using asyncio streams.

The LS30 is normally reached through its network module or a serial-to-TCP
bridge. Both expose the device's serial stream unchanged: requests are
written as bare frames and the device answers with newline-terminated
lines (usually CR LF).

Example:
    >>> transport = TcpTransport("alarm.local", 1681)
    >>> async with transport:
    ...     await transport.write(b"!n0?&")
    ...     line = await transport.read_line(timeout=5.0)
"""

from __future__ import annotations

import asyncio
import logging

from ls30.exceptions import TimeoutError, TransportError
from ls30.protocol.constants import ProtocolConstants
from ls30.transport.abc import AbstractTransport

logger = logging.getLogger(__name__)


class TcpTransport(AbstractTransport):
    """
    Line-oriented TCP transport.

    Attributes:
        host: Device host name or IP address.
        port: Device TCP port.
        is_open: Whether the socket is currently open.
    """

    def __init__(
        self,
        host: str,
        port: int,
        connect_timeout: float = ProtocolConstants.CONNECT_TIMEOUT,
        encoding: str = "latin-1",
    ) -> None:
        """
        Initialize the TCP transport.

        Args:
            host: Device host name or IP address.
            port: Device TCP port.
            connect_timeout: Seconds to wait for the connection.
            encoding: Text encoding of the line stream.
        """
        self._host = host
        self._port = port
        self._connect_timeout = connect_timeout
        self._encoding = encoding
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None

    @property
    def is_open(self) -> bool:
        """Check if the socket is currently open."""
        return (
            self._writer is not None
            and not self._writer.is_closing()
            and self._reader is not None
        )

    @property
    def address(self) -> str:
        """Get the host:port address."""
        return f"{self._host}:{self._port}"

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    async def open(self) -> None:
        """
        Open the TCP connection.

        Raises:
            TimeoutError: If the connection is not established in time.
            TransportError: If the connection is refused or fails.
        """
        if self.is_open:
            return

        try:
            self._reader, self._writer = await asyncio.wait_for(
                asyncio.open_connection(self._host, self._port),
                timeout=self._connect_timeout,
            )
        except asyncio.TimeoutError:
            raise TimeoutError(
                f"Timeout connecting to {self.address}",
                timeout_seconds=self._connect_timeout,
            ) from None
        except OSError as e:
            raise TransportError(f"Failed to connect to {self.address}: {e}") from e

        logger.debug("Socket open to %s", self.address)

    async def close(self) -> None:
        """
        Close the TCP connection.

        Safe to call multiple times.
        """
        writer = self._writer
        self._reader = None
        self._writer = None

        if writer is not None:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError as e:
                logger.debug("Error closing socket to %s: %s", self.address, e)

    async def write(self, data: bytes) -> None:
        """
        Write data to the socket.

        Args:
            data: Bytes to transmit.

        Raises:
            TransportError: If the socket is not open or write fails.
        """
        if not self.is_open:
            raise TransportError(f"Not connected to {self.address}")

        try:
            self._writer.write(data)
            await self._writer.drain()
        except OSError as e:
            raise TransportError(f"Write failed: {e}") from e

    async def read_line(self, timeout: float | None = None) -> str:
        """
        Read one newline-terminated line.

        Args:
            timeout: Read timeout in seconds. None waits indefinitely.

        Returns:
            Line text with the trailing CR/LF removed.

        Raises:
            TimeoutError: If timeout expires before a full line is received.
            TransportError: If the socket is not open or the peer closed it.
        """
        if not self.is_open:
            raise TransportError(f"Not connected to {self.address}")

        try:
            data = await asyncio.wait_for(
                self._reader.readuntil(ProtocolConstants.LINE_TERMINATOR),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            raise TimeoutError("Timeout waiting for line", timeout_seconds=timeout) from None
        except asyncio.IncompleteReadError as e:
            if e.partial:
                raise TransportError(
                    f"Connection closed with partial line: {e.partial!r}"
                ) from e
            raise TransportError(f"Connection closed by {self.address}") from e
        except asyncio.LimitOverrunError as e:
            raise TransportError(f"Line too long from {self.address}") from e
        except OSError as e:
            raise TransportError(f"Read failed: {e}") from e

        return data.decode(self._encoding).rstrip("\r\n")

    def __repr__(self) -> str:
        status = "open" if self.is_open else "closed"
        return f"TcpTransport({self.address!r}, {status})"
