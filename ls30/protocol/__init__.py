"""
Protocol layer for LS30 communication.

This module contains the wire-level protocol handling:
- Protocol constants and line patterns
- Custom hex alphabet encoding/decoding
- Type tables (human strings <-> wire codes)
- Field codecs and the command table
- Line classification and dispatch
"""

from ls30.protocol.commands import (
    DEFAULT_COMMAND_CODEC,
    CommandCodec,
    CommandSpec,
    build_clear,
    build_query,
    build_set,
    create_default_codec,
    list_commands,
    parse,
)
from ls30.protocol.constants import Action, MessageKind, ProtocolConstants
from ls30.protocol.device_config import parse_device_config
from ls30.protocol.encoding import hex_decode, hex_encode, to_custom_hex, to_standard_hex, try_hex_decode
from ls30.protocol.fields import FieldCodec, FuncField, TypeField, decode_field, encode_field
from ls30.protocol.messages import (
    AddedDevice,
    AtLine,
    ContactIdEvent,
    ExtendedStatus,
    GsmLine,
    Message,
    Prompt,
    Response,
    Unparseable,
)
from ls30.protocol.router import FrameRouter, MessageHandler
from ls30.protocol.types import DEFAULT_TYPE_REGISTRY, TypeRegistry, get_code, get_string, list_strings

__all__ = [
    # Constants
    "ProtocolConstants",
    "MessageKind",
    "Action",
    # Encoding
    "hex_decode",
    "hex_encode",
    "try_hex_decode",
    "to_standard_hex",
    "to_custom_hex",
    # Types
    "TypeRegistry",
    "DEFAULT_TYPE_REGISTRY",
    "get_code",
    "get_string",
    "list_strings",
    # Fields
    "FieldCodec",
    "TypeField",
    "FuncField",
    "encode_field",
    "decode_field",
    "parse_device_config",
    # Commands
    "CommandSpec",
    "CommandCodec",
    "DEFAULT_COMMAND_CODEC",
    "create_default_codec",
    "build_query",
    "build_set",
    "build_clear",
    "parse",
    "list_commands",
    # Messages
    "Message",
    "Response",
    "Unparseable",
    "AddedDevice",
    "ContactIdEvent",
    "ExtendedStatus",
    "AtLine",
    "GsmLine",
    "Prompt",
    # Routing
    "FrameRouter",
    "MessageHandler",
]
