"""
Abstract transport interface for LS30 communication.

This module defines the abstract base class for all transport implementations.
Transports carry the line-oriented text stream between the client and the
device (or the serial-to-TCP bridge in front of it).

The transport layer is responsible for:
- Opening/closing the connection
- Writing request frames
- Reading complete lines, with timeout handling

Implementations:
- TcpTransport: asyncio streams over TCP
- MockTransport: For testing without hardware
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types import TracebackType


class AbstractTransport(ABC):
    """
    Abstract base class for LS30 transports.

    Transports support async context manager protocol for safe resource
    management:

        async with TcpTransport("alarm.local", 1681) as transport:
            await transport.write(b"!n0?&")
            line = await transport.read_line()

    Attributes:
        is_open: Whether the transport connection is currently open.
        address: Identifier for the transport (e.g., "host:port").
    """

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """
        Check if the transport connection is currently open.

        Returns:
            True if connected and ready for I/O, False otherwise.
        """
        ...

    @property
    @abstractmethod
    def address(self) -> str:
        """
        Get the transport identifier.

        Returns:
            Address string (e.g., "alarm.local:1681").
        """
        ...

    @abstractmethod
    async def open(self) -> None:
        """
        Open the transport connection.

        Raises:
            TransportError: If the connection cannot be established.
            TimeoutError: If the connection attempt times out.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """
        Close the transport connection.

        Safe to call multiple times (idempotent). After closing, the
        transport can be reopened with open().
        """
        ...

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """
        Write data to the transport.

        Args:
            data: Bytes to send, normally one complete request frame.

        Raises:
            TransportError: If the transport is not open or write fails.
        """
        ...

    @abstractmethod
    async def read_line(self, timeout: float | None = None) -> str:
        """
        Read one line.

        Args:
            timeout: Read timeout in seconds. None waits indefinitely.

        Returns:
            Line text without the trailing CR/LF.

        Raises:
            TimeoutError: If timeout expires before a full line is received.
            TransportError: If the transport is not open, the peer closed
                the stream, or the read fails.
        """
        ...

    async def __aenter__(self) -> AbstractTransport:
        """Async context manager entry - opens the transport."""
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Async context manager exit - closes the transport."""
        await self.close()
