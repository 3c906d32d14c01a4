"""
Table-driven command codec.

Every command the device understands is described by a CommandSpec: a human
title, a 1-2 character wire key and up to three field layouts. The
CommandCodec indexes the specs by title (for callers) and by key (for
decoding), builds request frames and decodes response frames.

Frame grammar:

    query:     ! key [?] query_args &
    set:       ! key [s] args &
    clear:     ! key [s] &
    response:  ! key [s] fields &      (fields per response, else args)
    pushed:    ! h fields &            (single-character record)

Example:
    >>> from ls30.protocol.commands import DEFAULT_COMMAND_CODEC as codec
    >>> codec.build_query("Operation Mode")
    '!n0?&'
    >>> codec.build_set("Operation Mode", {"value": "Away"})
    '!n0s2&'
    >>> response = codec.parse("!n0s2&")
    >>> response.title, response.action.value, response.value
    ('Operation Mode', 'set', 'Away')
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Final

from ls30.exceptions import ParseError, UnknownCommandError
from ls30.protocol.constants import Action, ProtocolConstants
from ls30.protocol.fields import (
    BOOLEAN,
    DATE,
    DECIMAL_TIME,
    DELAY,
    HEX1,
    HEX2,
    HEX3,
    INTERVAL,
    STRING,
    TELNO,
    Field,
    FieldCodec,
    FuncField,
    TypeField,
    decode_field,
    encode_field,
)
from ls30.protocol.messages import Response, Unparseable
from ls30.protocol.types import DEFAULT_TYPE_REGISTRY, TypeRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandSpec:
    """
    Description of one device command.

    Attributes:
        title: Unique human-readable name ("Operation Mode").
        key: Wire key, 1 or 2 characters ("n0").
        query_args: Fields appended to a query request.
        args: Fields appended to a set request; also the response layout
            when `response` is None.
        response: Explicit response layout.
        no_query: Omit the "?" marker from query requests.
        no_set: Omit the "s" marker from set requests.
    """

    title: str
    key: str
    query_args: tuple[Field, ...] = ()
    args: tuple[Field, ...] = ()
    response: tuple[Field, ...] | None = None
    no_query: bool = False
    no_set: bool = False

    @property
    def response_layout(self) -> tuple[Field, ...]:
        """Layout used to decode responses to this command."""
        if self.response is not None:
            return self.response
        return self.args

    @property
    def is_setting(self) -> bool:
        """A setting is a command with a set layout."""
        return bool(self.args)

    @property
    def value_field(self) -> Field | None:
        """The set field named "value", or the first set field."""
        for field in self.args:
            if field.key == "value":
                return field
        return self.args[0] if self.args else None


def simple_command(
    title: str,
    key: str,
    length: int | None = None,
    codec: FieldCodec | None = None,
    *,
    table: str | None = None,
) -> CommandSpec:
    """
    Build a command whose set layout is a single "value" field.

    With neither a codec nor a table the command has no layout: it can be
    queried, and its response is recognised, but it is not a setting.
    """
    if table is not None:
        field: Field = TypeField(key="value", length=length or 1, table=table)
        return CommandSpec(title=title, key=key, args=(field,))
    if codec is not None and length:
        return CommandSpec(title=title, key=key, args=(FuncField(key="value", length=length, codec=codec),))
    return CommandSpec(title=title, key=key)


def _status_command(title: str, key: str) -> CommandSpec:
    return CommandSpec(
        title=title,
        key=key,
        query_args=(FuncField("index", 2, HEX2),),
        response=(
            TypeField("type", 2, "Device Specific Type"),
            FuncField("device_id", 6, STRING),
            FuncField("junk2", 4, STRING),
            FuncField("junk3", 2, STRING),
            FuncField("zone", 2, STRING),
            FuncField("id", 2, STRING),
            FuncField("config", 8, STRING),
            FuncField("rest", 4, STRING),
        ),
    )


SIMPLE_COMMANDS: Final[tuple[CommandSpec, ...]] = (
    simple_command("Date/Time", "dt", 11, DATE),
    simple_command("Switch  1", "s6", 1, HEX1),
    simple_command("Switch  2", "s7", 1, HEX1),
    simple_command("Switch  3", "s4", 1, HEX1),
    simple_command("Switch  4", "s5", 1, HEX1),
    simple_command("Switch  5", "s8", 1, HEX1),
    simple_command("Switch  6", "s9", 1, HEX1),
    simple_command("Switch  7", "s:", 1, HEX1),
    simple_command("Switch  8", "s;", 1, HEX1),
    simple_command("Switch  9", "s>", 1, HEX1),
    simple_command("Switch 10", "s?", 1, HEX1),
    simple_command("Switch 11", "s<", 1, HEX1),
    simple_command("Switch 12", "s=", 1, HEX1),
    simple_command("Switch 13", "s0", 1, HEX1),
    simple_command("Switch 14", "s1", 1, HEX1),
    simple_command("Switch 15", "s2", 1, HEX1),
    simple_command("Switch 16", "s3", 1, HEX1),
    simple_command("Auto Answer Ring Count", "a0"),
    simple_command("Sensor Supervise Time", "a2", 2, HEX2),
    simple_command("Modem Ring Count", "a3", 2, HEX2),
    simple_command("RF Jamming Warning", "c0"),
    simple_command("Switch 16 Control", "c8", table="Switch 16"),
    simple_command("RS-232 Control", "c9"),
    simple_command("GSM Phone 1", "g0", 99, TELNO),
    simple_command("GSM Phone 2", "g1", 99, TELNO),
    simple_command("GSM ID", "g2"),
    simple_command("GSM PIN No", "g3"),
    simple_command("GSM Phone 3", "g4", 99, TELNO),
    simple_command("GSM Phone 4", "g5", 99, TELNO),
    simple_command("GSM Phone 5", "g6", 99, TELNO),
    simple_command("Exit Delay", "l0", 2, HEX2),
    simple_command("Entry Delay", "l1", 2, HEX2),
    simple_command("Remote Siren Time", "l2", 2, INTERVAL),
    simple_command("Relay Action Time", "l3", 2, DELAY),
    simple_command("Door Bell", "m0"),
    simple_command("Dial Tone Check", "m1"),
    simple_command("Telephone Line Cut Detection", "m2", table="Telephone Line Cut"),
    simple_command("Mode Change Chirp", "m3", 1, BOOLEAN),
    simple_command("Emergency Button Assignment", "m4", table="Emergency Button"),
    simple_command("Entry delay beep", "m5"),
    simple_command("Tamper Siren in Disarm", "m7", 1, BOOLEAN),
    simple_command("Telephone Ringer", "m8"),
    simple_command("Cease Dialing Mode", "m9", table="Cease Dialing"),
    simple_command("Alarm Warning Dong", "mj"),
    simple_command("Switch Type", "mk", table="Switch Type"),
    simple_command("Inner Siren Enable", "n1", 1, BOOLEAN),
    simple_command("Dial Mode", "n2", table="Dial Mode"),
    simple_command("X-10 House Code", "n7"),
    simple_command("Inactivity Function", "o0"),
    simple_command("ROM Version", "vn"),
    simple_command("Telephone Common 1", "t0", 99, TELNO),
    simple_command("Telephone Common 2", "t1", 99, TELNO),
    simple_command("Telephone Common 3", "t2", 99, TELNO),
    simple_command("Telephone Common 4", "t3", 99, TELNO),
    simple_command("Telephone Panic", "t4", 99, TELNO),
    simple_command("Telephone Burglar", "t5", 99, TELNO),
    simple_command("Telephone Fire", "t6", 99, TELNO),
    simple_command("Telephone Medical", "t7", 99, TELNO),
    simple_command("Telephone Special", "t8", 99, TELNO),
    simple_command("Telephone Latchkey/Power", "t9", 99, TELNO),
    simple_command("Telephone Pager", "t:", 99, TELNO),
    simple_command("Telephone Data", "t;", 99, TELNO),
    # CMS 1
    simple_command("CMS 1 Telephone No", "t<", 99, TELNO),
    simple_command("CMS 1 User Account No", "t="),
    simple_command("CMS 1 Mode Change Report", "n3"),
    simple_command("CMS 1 Auto Link Check Period", "n5"),
    simple_command("CMS 1 Two-way Audio", "c3"),
    simple_command("CMS 1 DTMF Data Length", "c5"),
    simple_command("CMS Report", "c7", table="CMS Report"),
    simple_command("CMS 1 GSM No", "tp", 99, TELNO),
    simple_command("Ethernet (IP) Report", "c1"),
    simple_command("GPRS Report", "c:"),
    simple_command("IP Report Format", "ml", table="IP Report Format"),
    # CMS 2
    simple_command("CMS 2 Telephone No", "t>", 99, TELNO),
    simple_command("CMS 2 User Account No", "t?"),
    simple_command("CMS 2 Mode Change Report", "n4"),
    simple_command("CMS 2 Auto Link Check Period", "n6"),
    simple_command("CMS 2 Two-way Audio", "c4"),
    simple_command("CMS 2 DTMF Data Length", "c6"),
    simple_command("CMS 2 GSM No", "tq", 99, TELNO),
)
"""Commands with at most a single "value" field."""


LAYOUT_COMMANDS: Final[tuple[CommandSpec, ...]] = (
    CommandSpec(
        title="Operation Mode",
        key="n0",
        args=(TypeField("value", 1, "Arm Mode"),),
    ),
    CommandSpec(
        title="Device Count",
        key="b3",
        query_args=(TypeField("device_type", 1, "Device Type"),),
        response=(
            TypeField("device_type", 1, "Device Type"),
            FuncField("value", 2, HEX2),
        ),
    ),
    CommandSpec(
        title="Remote Siren Type",
        key="d1",
        args=(
            TypeField("value", 1, "Siren Type"),
            FuncField("Siren ID", 2, HEX2),
        ),
    ),
    _status_command("Burglar Sensor Status", "kb"),
    _status_command("Controller Status", "kc"),
    _status_command("Fire Status", "kf"),
    _status_command("Medical Sensor Status", "km"),
    _status_command("Extra Sensor Status", "ke"),
    CommandSpec(
        title="Query Operation Schedule",
        key="hq",
        no_query=True,
        query_args=(FuncField("value", 3, HEX3),),
    ),
    CommandSpec(
        title="Partial Arm",
        key="n8",
        query_args=(TypeField("group_number", 2, "Group 91-99"),),
        response=(
            TypeField("group_number", 2, "Group 91-99"),
            FuncField("value", 1, BOOLEAN),
        ),
    ),
    CommandSpec(
        title="Event",
        key="ev",
        no_query=True,
        query_args=(FuncField("value", 3, HEX3),),
    ),
    CommandSpec(
        title="Inner Siren Time",
        key="l4",
        args=(FuncField("value", 2, HEX2),),
    ),
    # 1-char keys
    CommandSpec(
        title="Password",
        key="p",
        query_args=(TypeField("password_no", 1, "Password"),),
    ),
    CommandSpec(
        title="Switch/Operation Scene",
        key="u",
        query_args=(TypeField("value", 1, "Switch/Operation Scene"),),
    ),
)
"""Commands with explicit layouts."""


SINGLE_CHAR_RESPONSES: Final[dict[str, CommandSpec]] = {
    "h": CommandSpec(
        title="Operation Schedule",
        key="h",
        args=(
            FuncField("start_time", 4, DECIMAL_TIME),
            TypeField("zone", 1, "Schedule Zone"),
            TypeField("op_code", 1, "Operation Code"),
        ),
    ),
}
"""Records pushed by the device, recognised by their first character."""


# Status command key is this prefix plus the "Device Code" letter
STATUS_KEY_PREFIX: Final[str] = "k"


class CommandCodec:
    """
    Registry of command descriptions with request and response codecs.

    Commands are indexed by title and by wire key. Registering a duplicate
    title or key logs a warning; the later registration wins.

    Args:
        commands: Specs to register, in order.
        single_char: Leading character -> spec for pushed records.
        types: Type registry used for TypeField lookups.
        strict: Raise ParseError when a response field is short, instead
            of decoding the truncated slice.

    Example:
        >>> codec = CommandCodec([simple_command("Entry Delay", "l1", 2, HEX2)])
        >>> codec.build_set("Entry Delay", {"value": 45})
        '!l1s2=&'
    """

    def __init__(
        self,
        commands: Iterable[CommandSpec] = (),
        single_char: Mapping[str, CommandSpec] | None = None,
        types: TypeRegistry | None = None,
        *,
        strict: bool = False,
    ) -> None:
        self._by_title: dict[str, CommandSpec] = {}
        self._by_key: dict[str, CommandSpec] = {}
        self._single_char: dict[str, CommandSpec] = dict(single_char or {})
        self._types = types if types is not None else DEFAULT_TYPE_REGISTRY
        self._strict = strict

        for spec in commands:
            self.register(spec)

    @property
    def types(self) -> TypeRegistry:
        """Type registry used by this codec."""
        return self._types

    @property
    def strict(self) -> bool:
        """Whether short response fields raise ParseError."""
        return self._strict

    def register(self, spec: CommandSpec) -> None:
        """
        Register a command.

        Args:
            spec: Command description.
        """
        if spec.title in self._by_title:
            logger.warning("Command re-added: %s", spec.title)
        if spec.key in self._by_key:
            logger.warning("Command key re-added: %s, %s", spec.title, spec.key)

        self._by_title[spec.title] = spec
        self._by_key[spec.key] = spec

    def get(self, title: str) -> CommandSpec | None:
        """Get a command by title."""
        return self._by_title.get(title)

    def get_by_key(self, key: str) -> CommandSpec | None:
        """Get a command by wire key."""
        return self._by_key.get(key)

    def require(self, title: str) -> CommandSpec:
        """
        Get a command by title, raising if it is not registered.

        Raises:
            UnknownCommandError: If the title is not registered.
        """
        spec = self._by_title.get(title)
        if spec is None:
            raise UnknownCommandError(title=title)
        return spec

    def list_commands(self) -> list[str]:
        """Return all registered titles, sorted."""
        return sorted(self._by_title)

    def is_setting(self, title: str) -> bool:
        """Check if a title names a registered setting."""
        spec = self._by_title.get(title)
        return spec is not None and spec.is_setting

    def status_command(self, device_type: str) -> CommandSpec | None:
        """
        Get the status command for a device class.

        Args:
            device_type: Device class name ("Burglar Sensor", ...).

        Returns:
            The k[bcefm] command, or None if the class is unknown.
        """
        code = self._types.code("Device Code", device_type)
        if code is None:
            return None
        return self._by_key.get(STATUS_KEY_PREFIX + code)

    # ===== Requests =====

    def _encode_fields(
        self,
        layout: tuple[Field, ...],
        args: Mapping[str, Any],
        *,
        warn: bool,
    ) -> str:
        parts: list[str] = []
        for field in layout:
            value = encode_field(field, args.get(field.key), self._types, warn=warn)
            if value is not None:
                parts.append(value)
        return "".join(parts)

    def build_query(self, title: str, args: Mapping[str, Any] | None = None) -> str | None:
        """
        Build a query request.

        Fields whose value is missing or unencodable are omitted.

        Args:
            title: Command title.
            args: Query argument values keyed by field name.

        Returns:
            Request frame, or None if the title is not registered.
        """
        spec = self._by_title.get(title)
        if spec is None:
            logger.warning("Unknown command title: %s", title)
            return None

        frame = ProtocolConstants.START + spec.key
        if not spec.no_query:
            frame += ProtocolConstants.QUERY_MARKER
        frame += self._encode_fields(spec.query_args, args or {}, warn=False)
        return frame + ProtocolConstants.END

    def build_set(self, title: str, args: Mapping[str, Any] | None = None) -> str | None:
        """
        Build a set request.

        A type field with a missing or unmapped value logs a warning and is
        omitted; the frame is still produced.

        Args:
            title: Command title.
            args: Field values keyed by field name ("value" for most settings).

        Returns:
            Request frame, or None if the title is not registered.
        """
        spec = self._by_title.get(title)
        if spec is None:
            logger.warning("Unknown command title: %s", title)
            return None

        frame = ProtocolConstants.START + spec.key
        if not spec.no_set:
            frame += ProtocolConstants.SET_MARKER
        frame += self._encode_fields(spec.args, args or {}, warn=True)
        return frame + ProtocolConstants.END

    def build_clear(self, title: str) -> str | None:
        """
        Build a clear request: the set frame with no fields.

        Returns:
            Request frame, or None if the title is not registered.
        """
        spec = self._by_title.get(title)
        if spec is None:
            logger.warning("Unknown command title: %s", title)
            return None

        frame = ProtocolConstants.START + spec.key
        if not spec.no_set:
            frame += ProtocolConstants.SET_MARKER
        return frame + ProtocolConstants.END

    def test_setting_value(self, title: str, value: Any) -> str | None:
        """
        Encode a value for a setting without building a frame.

        Returns:
            Wire encoding of the value, or None if the title is not a
            setting or the value cannot be encoded.
        """
        spec = self._by_title.get(title)
        if spec is None:
            return None
        field = spec.value_field
        if field is None:
            return None
        return encode_field(field, value, self._types)

    # ===== Responses =====

    def _decode_fields(self, text: str, layout: tuple[Field, ...], raw: str) -> dict[str, Any]:
        fields: dict[str, Any] = {}
        offset = 0
        for field in layout:
            chunk = text[offset:offset + field.length]
            if self._strict and len(chunk) < field.length:
                raise ParseError(
                    f"Field {field.key} needs {field.length} chars, got {len(chunk)}",
                    field=field.key,
                    offset=offset,
                    raw_data=raw,
                )
            fields[field.key] = decode_field(field, chunk, self._types)
            offset += field.length
        return fields

    def parse(self, line: str) -> Response | Unparseable | None:
        """
        Decode a response frame.

        Args:
            line: One line of device output.

        Returns:
            Response for a registered key, Unparseable for an unregistered
            key, or None if the line is not a `!...&` frame.

        Raises:
            ParseError: In strict mode, if a field is short.
            UnknownTableError: If a layout names an unregistered table.
        """
        if (
            len(line) < 3
            or not line.startswith(ProtocolConstants.START)
            or not line.endswith(ProtocolConstants.END)
        ):
            return None

        body = line[1:-1]

        pushed = self._single_char.get(body[0])
        if pushed is not None:
            fields = self._decode_fields(body[1:], pushed.response_layout, line)
            return Response(key=pushed.key, title=pushed.title, action=None, fields=fields, raw=line)

        key = body[:2]
        spec = self._by_key.get(key)
        if spec is None:
            # Commands with a 1-char key answer with that char then data
            spec = self._by_key.get(body[:1])
            if spec is not None:
                key = body[:1]

        if spec is None:
            logger.warning("Unparseable response: %s", line)
            return Unparseable(key=key, text=line)

        rest = body[len(key):]
        if rest.startswith(ProtocolConstants.SET_MARKER):
            action = Action.SET
            rest = rest[1:]
        else:
            action = Action.QUERY

        fields = self._decode_fields(rest, spec.response_layout, line)
        return Response(key=spec.key, title=spec.title, action=action, fields=fields, raw=line)

    def __contains__(self, title: object) -> bool:
        return title in self._by_title

    def __len__(self) -> int:
        return len(self._by_title)

    def __repr__(self) -> str:
        return f"CommandCodec(commands={len(self._by_title)}, strict={self._strict})"


def create_default_codec(*, strict: bool = False) -> CommandCodec:
    """
    Create a codec holding the full LS30 command table.

    Args:
        strict: Raise ParseError on short response fields.

    Returns:
        CommandCodec with every built-in command registered.
    """
    return CommandCodec(
        (*SIMPLE_COMMANDS, *LAYOUT_COMMANDS),
        SINGLE_CHAR_RESPONSES,
        DEFAULT_TYPE_REGISTRY,
        strict=strict,
    )


DEFAULT_COMMAND_CODEC: Final[CommandCodec] = create_default_codec()
"""Shared codec with the built-in command table."""


def build_query(title: str, args: Mapping[str, Any] | None = None) -> str | None:
    """Build a query request with the default codec."""
    return DEFAULT_COMMAND_CODEC.build_query(title, args)


def build_set(title: str, args: Mapping[str, Any] | None = None) -> str | None:
    """Build a set request with the default codec."""
    return DEFAULT_COMMAND_CODEC.build_set(title, args)


def build_clear(title: str) -> str | None:
    """Build a clear request with the default codec."""
    return DEFAULT_COMMAND_CODEC.build_clear(title)


def parse(line: str) -> Response | Unparseable | None:
    """Decode a response frame with the default codec."""
    return DEFAULT_COMMAND_CODEC.parse(line)


def list_commands() -> list[str]:
    """List all built-in command titles, sorted."""
    return DEFAULT_COMMAND_CODEC.list_commands()


def test_setting_value(title: str, value: Any) -> str | None:
    """Encode a setting value with the default codec."""
    return DEFAULT_COMMAND_CODEC.test_setting_value(title, value)
