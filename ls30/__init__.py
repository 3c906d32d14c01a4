"""
ls30 - Python library for communicating with LS30 home alarm systems.

This library provides async communication with an LS30 alarm control unit
over TCP, supporting named settings, device inventory and spontaneous
alarm events.

Example:
    >>> from ls30 import AlarmModel, Commander, Connection, ConnectionConfig
    >>>
    >>> async def main():
    ...     connection = Connection.from_config(ConnectionConfig.from_env())
    ...     commander = Commander(connection)
    ...     async with connection:
    ...         print(await commander.get_setting("Operation Mode"))
    ...         await commander.set_setting("Exit Delay", 30)
"""

from ls30.commander import Commander, PendingCommand
from ls30.config import ConnectionConfig
from ls30.connection import Connection
from ls30.exceptions import (
    ConfigurationError,
    ConnectionError,
    InvalidValueError,
    LS30Error,
    MalformedFrameError,
    NotASettingError,
    ParseError,
    ProtocolError,
    TimeoutError,
    TransportError,
    UnknownCommandError,
    UnknownTableError,
)
from ls30.model import AlarmModel, SettingsSource
from ls30.models.records import DeviceConfig, DeviceStatus, ServerAddress
from ls30.protocol.commands import CommandCodec, CommandSpec
from ls30.protocol.router import FrameRouter, MessageHandler
from ls30.protocol.types import TypeRegistry
from ls30.transport import AbstractTransport, MockTransport, TcpTransport

__version__ = "0.1.0"
__all__ = [
    # Client
    "Connection",
    "ConnectionConfig",
    "Commander",
    "PendingCommand",
    "AlarmModel",
    "SettingsSource",
    # Protocol
    "TypeRegistry",
    "CommandCodec",
    "CommandSpec",
    "FrameRouter",
    "MessageHandler",
    # Models
    "ServerAddress",
    "DeviceConfig",
    "DeviceStatus",
    # Exceptions
    "LS30Error",
    "ProtocolError",
    "UnknownCommandError",
    "UnknownTableError",
    "NotASettingError",
    "InvalidValueError",
    "MalformedFrameError",
    "ParseError",
    "TimeoutError",
    "ConnectionError",
    "TransportError",
    "ConfigurationError",
    # Transport
    "AbstractTransport",
    "TcpTransport",
    "MockTransport",
    # Version
    "__version__",
]
