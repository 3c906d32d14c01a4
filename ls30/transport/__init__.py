"""
Transport layer for LS30 communication.

This package provides line-oriented transport implementations.

Available transports:
- TcpTransport: asyncio streams over TCP
- MockTransport: Mock transport for testing without hardware

Example:
    >>> from ls30.transport import TcpTransport
    >>> async with TcpTransport("alarm.local", 1681) as transport:
    ...     await transport.write(b"!n0?&")
    ...     line = await transport.read_line(timeout=5.0)

Testing Example:
    >>> from ls30.transport import MockTransport
    >>> mock = MockTransport()
    >>> mock.add_line("!n0s2&")
"""

from ls30.transport.abc import AbstractTransport
from ls30.transport.mock import MockTransport
from ls30.transport.tcp import TcpTransport

__all__ = [
    "AbstractTransport",
    "TcpTransport",
    "MockTransport",
]
