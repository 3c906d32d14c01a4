"""
Mock transport for testing.

This module provides a mock transport implementation that allows testing
the LS30 client without a device. Lines can be queued up front, fed while
a reader is waiting, or generated by a callback for each written frame.

Example:
    >>> from ls30.transport import MockTransport
    >>>
    >>> mock = MockTransport()
    >>> mock.set_response_callback(lambda frame: "!n0s2&" if frame == b"!n0?&" else None)
    >>>
    >>> async with mock:
    ...     await mock.write(b"!n0?&")
    ...     assert await mock.read_line() == "!n0s2&"
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable

from ls30.exceptions import TimeoutError, TransportError
from ls30.transport.abc import AbstractTransport

ResponseCallback = Callable[[bytes], "str | Iterable[str] | None"]

_CLOSED = object()


class MockTransport(AbstractTransport):
    """
    Mock transport for testing without hardware.

    read_line() waits for the next queued line, so a background reader
    behaves as it would on a quiet socket. Closing the transport wakes any
    waiting reader with a TransportError.

    Attributes:
        written_data: List of all frames written to the transport.

    Example:
        >>> mock = MockTransport()
        >>> mock.add_line("XINPIC=0a")
        >>>
        >>> async with mock:
        ...     await mock.write(b"!n0?&")
        ...     assert await mock.read_line() == "XINPIC=0a"
        ...     assert mock.written_data == [b"!n0?&"]
    """

    def __init__(self, address: str = "mock://ls30") -> None:
        """
        Initialize the mock transport.

        Args:
            address: Identifier for the mock transport.
        """
        self._address = address
        self._is_open = False
        self._lines: asyncio.Queue[object] = asyncio.Queue()
        self._written_data: list[bytes] = []
        self._response_callback: ResponseCallback | None = None
        self._open_count = 0

    @property
    def is_open(self) -> bool:
        """Check if the mock transport is open."""
        return self._is_open

    @property
    def address(self) -> str:
        """Get the mock address."""
        return self._address

    @property
    def open_count(self) -> int:
        """Number of times open() has succeeded."""
        return self._open_count

    @property
    def written_data(self) -> list[bytes]:
        """Get all data written to the transport."""
        return self._written_data.copy()

    @property
    def written_frames(self) -> list[str]:
        """Get all written data decoded as text."""
        return [data.decode("latin-1") for data in self._written_data]

    @property
    def last_written(self) -> bytes | None:
        """Get the most recently written data."""
        return self._written_data[-1] if self._written_data else None

    @property
    def pending_lines(self) -> int:
        """Number of queued lines not yet read."""
        return self._lines.qsize()

    def add_line(self, line: str) -> None:
        """
        Queue a line to be returned by read_line().

        Args:
            line: Line text, without terminator.
        """
        self._lines.put_nowait(line)

    def add_lines(self, *lines: str) -> None:
        """
        Queue multiple lines.

        Args:
            *lines: Lines in the order they should be read.
        """
        for line in lines:
            self._lines.put_nowait(line)

    def set_response_callback(self, callback: ResponseCallback | None) -> None:
        """
        Set a callback to generate lines for each written frame.

        The callback receives the written bytes and returns a line, several
        lines, or None for no reply.

        Args:
            callback: Function that takes written bytes and returns lines.
        """
        self._response_callback = callback

    def clear(self) -> None:
        """Clear all written data and queued lines."""
        self._written_data.clear()
        while not self._lines.empty():
            self._lines.get_nowait()

    def clear_written(self) -> None:
        """Clear only the written data history."""
        self._written_data.clear()

    async def open(self) -> None:
        """Open the mock transport."""
        if self._is_open:
            raise TransportError("Mock transport already open")
        self._is_open = True
        self._open_count += 1

    async def close(self) -> None:
        """Close the mock transport, waking any waiting reader."""
        if self._is_open:
            self._is_open = False
            self._lines.put_nowait(_CLOSED)

    async def write(self, data: bytes) -> None:
        """
        Write data to the mock transport.

        Records the written data and optionally triggers the response
        callback.

        Args:
            data: Bytes to write.

        Raises:
            TransportError: If transport is not open.
        """
        if not self._is_open:
            raise TransportError("Mock transport not open")

        self._written_data.append(bytes(data))

        if self._response_callback:
            reply = self._response_callback(bytes(data))
            if reply is None:
                return
            if isinstance(reply, str):
                self.add_line(reply)
            else:
                self.add_lines(*reply)

    async def read_line(self, timeout: float | None = None) -> str:
        """
        Return the next queued line.

        Args:
            timeout: Seconds to wait for a line. None waits indefinitely.

        Returns:
            Line text.

        Raises:
            TimeoutError: If no line is queued within the timeout.
            TransportError: If transport is not open or closes while waiting.
        """
        if not self._is_open:
            raise TransportError("Mock transport not open")

        try:
            item = await asyncio.wait_for(self._lines.get(), timeout=timeout)
        except asyncio.TimeoutError:
            raise TimeoutError("No mock line available", timeout_seconds=timeout) from None

        if item is _CLOSED:
            raise TransportError("Mock transport closed")
        return str(item).rstrip("\r\n")

    async def drop_connection(self) -> None:
        """Simulate the peer closing the connection."""
        await self.close()

    def assert_written(self, expected: bytes | str, index: int = -1) -> None:
        """
        Assert that specific data was written.

        Args:
            expected: Expected bytes or text.
            index: Index in written_data list (-1 for last).

        Raises:
            AssertionError: If data doesn't match.
        """
        if not self._written_data:
            raise AssertionError("No data written to mock transport")

        if isinstance(expected, str):
            expected = expected.encode("latin-1")

        actual = self._written_data[index]
        if actual != expected:
            raise AssertionError(f"Written data mismatch: expected {expected!r}, got {actual!r}")

    def assert_write_count(self, expected: int) -> None:
        """
        Assert number of write operations.

        Args:
            expected: Expected number of writes.

        Raises:
            AssertionError: If count doesn't match.
        """
        actual = len(self._written_data)
        if actual != expected:
            raise AssertionError(f"Write count mismatch: expected {expected}, got {actual}")

    def __repr__(self) -> str:
        status = "open" if self._is_open else "closed"
        return f"MockTransport({self._address!r}, {status})"
