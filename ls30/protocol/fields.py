"""
Field layouts and value codecs for LS30 command frames.

Every command argument and response field occupies a fixed number of
characters. A field is one of two kinds:

1. **TypeField**: the value is a human string looked up in a type table
   (e.g. "Away" <-> "2" in "Arm Mode")
2. **FuncField**: the value passes through a FieldCodec, a pair of pure
   encode/decode transforms (e.g. 45 <-> "2=" for two-digit custom hex)

encode_field() and decode_field() are the single dispatch point for both
kinds. Encoding returns None when no wire value can be produced, which the
command builders treat as "omit this field". Decoding never raises on short
input; it yields None or a truncated value instead.

Example:
    >>> field = FuncField(key="value", length=2, codec=HEX2)
    >>> encode_field(field, 45)
    '2='
    >>> decode_field(field, "2=")
    45
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Final, Union

from ls30.protocol.constants import ProtocolConstants
from ls30.protocol.encoding import hex_encode, try_hex_decode

if TYPE_CHECKING:
    from ls30.protocol.types import TypeRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldCodec:
    """
    A named, symmetric value transform.

    Attributes:
        name: Codec name used in log messages.
        encode: Converts a caller value to wire text, or None if it cannot.
        decode: Converts a wire slice to a caller value.
    """

    name: str
    encode: Callable[[Any], str | None]
    decode: Callable[[str], Any]

    def __repr__(self) -> str:
        return f"FieldCodec({self.name})"


@dataclass(frozen=True)
class TypeField:
    """A fixed-width field whose value comes from a type table."""

    key: str
    length: int
    table: str


@dataclass(frozen=True)
class FuncField:
    """A fixed-width field whose value passes through a codec."""

    key: str
    length: int
    codec: FieldCodec


Field = Union[TypeField, FuncField]
"""Either kind of field descriptor."""


# ===== Codec helpers =====

_DURATION_PATTERN: Final[re.Pattern[str]] = re.compile(r"^(\d+)(?: (minutes?|seconds?))?$")


def _parse_duration(value: Any) -> tuple[int, str] | None:
    """
    Split a duration into (amount, unit).

    Accepts "N minutes", "N seconds" or a bare integer, which is taken as
    seconds.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return (value, "seconds") if value >= 0 else None

    match = _DURATION_PATTERN.match(str(value).strip())
    if not match:
        return None

    amount = int(match.group(1))
    unit = match.group(2) or "seconds"
    return amount, "minutes" if unit.startswith("minute") else "seconds"


def _to_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


# ===== Codecs =====


def hex_codec(width: int) -> FieldCodec:
    """
    Build a fixed-width custom-hex number codec.

    Encodes a non-negative integer (or its decimal string) as `width`
    custom-hex digits; decodes the first `width` characters of a slice.
    """

    def encode(value: Any) -> str | None:
        if value is None:
            return None
        number = _to_int(value)
        if number is None:
            logger.warning("Invalid number for hex%d: %r", width, value)
            return None
        try:
            return hex_encode(number, width)
        except ValueError as e:
            logger.warning("Cannot encode %r as hex%d: %s", value, width, e)
            return None

    def decode(text: str) -> int | None:
        return try_hex_decode(text[:width])

    return FieldCodec(name=f"hex{width}", encode=encode, decode=decode)


def _encode_boolean(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        return "1" if value > 0 else "0"

    text = str(value).strip()
    if text.lower() in ("on", "true", "yes"):
        return "1"
    if text.lower() in ("off", "false", "no"):
        return "0"
    if re.match(r"^[+-]?\d+$", text):
        return "1" if int(text) > 0 else "0"

    logger.warning("Invalid boolean string: %r", value)
    return "0"


def _decode_boolean(text: str) -> bool | None:
    if not text:
        return None
    return text != "0"


def _encode_telno(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _decode_telno(text: str) -> str:
    # "no" means no number stored, or permission denied
    if text == ProtocolConstants.NO_VALUE:
        return ""
    return text


def _encode_delay(value: Any) -> str | None:
    if value is None:
        return None
    duration = _parse_duration(value)
    if duration is None:
        logger.warning("Invalid delay: %r", value)
        return None

    amount, unit = duration
    if unit == "minutes" and amount > 0:
        wire = 128 + amount
    elif amount <= 128:
        wire = amount
    else:
        wire = 128 + amount // 60

    if wire > 0xFF:
        logger.warning("Delay out of range: %r", value)
        return None
    return hex_encode(wire, 2)


def _decode_delay(text: str) -> str | None:
    value = try_hex_decode(text)
    if value is None:
        return None
    if value > 128:
        return f"{value - 128} minutes"
    return f"{value} seconds"


def _encode_interval(value: Any) -> str | None:
    if value is None:
        return None
    duration = _parse_duration(value)
    if duration is None:
        logger.warning("Invalid interval: %r", value)
        return None

    amount, unit = duration
    seconds = amount * 60 if unit == "minutes" else amount
    wire = seconds if seconds < 60 else 64 + seconds // 60

    if wire > 0xFF:
        logger.warning("Interval out of range: %r", value)
        return None
    return hex_encode(wire, 2)


def _decode_interval(text: str) -> str | None:
    value = try_hex_decode(text)
    if value is None:
        return None
    if value > 64:
        return f"{value - 64} minutes"
    return f"{value} seconds"


def _encode_decimal_time(value: Any) -> str:
    if not value:
        return ProtocolConstants.TIME_WILDCARD
    match = re.match(r"^(\d\d):(\d\d)$", str(value))
    if not match:
        logger.warning("Incorrect decimal time %r", value)
        return ProtocolConstants.TIME_WILDCARD
    return match.group(1) + match.group(2)


def _decode_decimal_time(text: str) -> str | None:
    match = re.match(r"^(\d\d)(\d\d)$", text)
    if not match:
        return None
    return f"{match.group(1)}:{match.group(2)}"


_WEEKDAYS: Final[tuple[str, ...]] = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def _encode_date(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.strftime("%y%m%d") + str(value.isoweekday()) + value.strftime("%H%M")

    match = re.match(r"^(\d\d)-(\d\d)-(\d\d) (\d\d):(\d\d) (\w{3})$", str(value))
    if not match or match.group(6) not in _WEEKDAYS:
        logger.warning("Incorrect date %r", value)
        return None

    yy, mm, dd, hh, mi, dow = match.groups()
    # Monday is 1, Sunday is 7
    day_number = _WEEKDAYS.index(dow, 1)
    return f"{yy}{mm}{dd}{day_number}{hh}{mi}"


def _decode_date(text: str) -> str | None:
    match = re.match(r"^(\d\d)(\d\d)(\d\d)(\d)(\d\d)(\d\d)$", text)
    if not match:
        return None
    yy, mm, dd, dow, hh, mi = match.groups()
    return f"{yy}-{mm}-{dd} {hh}:{mi} {_WEEKDAYS[int(dow) % 8]}"


def _encode_string(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _decode_string(text: str) -> str:
    return text


HEX1: Final[FieldCodec] = hex_codec(1)
"""One custom-hex digit."""

HEX2: Final[FieldCodec] = hex_codec(2)
"""Two custom-hex digits."""

HEX3: Final[FieldCodec] = hex_codec(3)
"""Three custom-hex digits."""

BOOLEAN: Final[FieldCodec] = FieldCodec("boolean", _encode_boolean, _decode_boolean)
"""on/true/yes or a positive number -> "1"; "0" decodes to False, else True."""

TELNO: Final[FieldCodec] = FieldCodec("telno", _encode_telno, _decode_telno)
"""Telephone number; the device's "no" decodes to an empty string."""

DELAY: Final[FieldCodec] = FieldCodec("delay", _encode_delay, _decode_delay)
"""Values up to 128 are seconds, above 128 are (value - 128) minutes."""

INTERVAL: Final[FieldCodec] = FieldCodec("interval", _encode_interval, _decode_interval)
"""Values up to 64 are seconds, above 64 are (value - 64) minutes."""

DECIMAL_TIME: Final[FieldCodec] = FieldCodec("decimal_time", _encode_decimal_time, _decode_decimal_time)
"""HHMM <-> HH:MM; an empty value encodes to "????"."""

DATE: Final[FieldCodec] = FieldCodec("date", _encode_date, _decode_date)
"""yymmdd + weekday digit + hhmm <-> "yy-mm-dd hh:mm Dow"."""

STRING: Final[FieldCodec] = FieldCodec("string", _encode_string, _decode_string)
"""Text passed through unchanged."""


# ===== Dispatch =====


def encode_field(
    field: Field,
    value: Any,
    types: TypeRegistry | None = None,
    *,
    warn: bool = False,
) -> str | None:
    """
    Encode one caller value for a field.

    Args:
        field: Field descriptor.
        value: Caller value (None if not supplied).
        types: Type registry for TypeField lookups (default registry if None).
        warn: Log a warning when a type lookup fails.

    Returns:
        Wire text, or None if the field should be omitted.

    Raises:
        UnknownTableError: If a TypeField names an unregistered table.
    """
    if isinstance(field, FuncField):
        return field.codec.encode(value)

    if types is None:
        from ls30.protocol.types import DEFAULT_TYPE_REGISTRY as types

    if value is None:
        if warn:
            logger.warning("Needed field %s is missing", field.key)
        return None

    code = types.code(field.table, value)
    if code is None and warn:
        logger.warning("Incorrect value %r for table %s", value, field.table)
    return code


def decode_field(field: Field, text: str, types: TypeRegistry | None = None) -> Any:
    """
    Decode one wire slice for a field.

    Args:
        field: Field descriptor.
        text: Wire slice (may be shorter than field.length).
        types: Type registry for TypeField lookups (default registry if None).

    Returns:
        Decoded value; None if the slice cannot be decoded.

    Raises:
        UnknownTableError: If a TypeField names an unregistered table.
    """
    if isinstance(field, FuncField):
        return field.codec.decode(text)

    if types is None:
        from ls30.protocol.types import DEFAULT_TYPE_REGISTRY as types

    return types.string(field.table, text)
