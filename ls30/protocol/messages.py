"""
Messages produced by routing one line of device output.

Each class is one variant of the tagged Message union. Messages are
immutable and transient: the router builds one, hands it to a handler and
forgets it.

Variants:
- Response: a decoded `!...&` frame, answering a queued command
- AddedDevice: enrollment notice (device id, or window expired)
- ContactIdEvent: parenthesised contact-id alarm report
- ExtendedStatus: XINPIC status report
- AtLine / GsmLine: modem chatter
- Prompt: the bare `!&` idle prompt
- Unparseable: a `!...&` frame whose key is not registered
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from ls30.protocol.constants import Action, MessageKind


@dataclass(frozen=True)
class Response:
    """
    Decoded response frame.

    Attributes:
        key: Wire key of the command ("n0", or "h" for a pushed schedule).
        title: Command title.
        action: QUERY or SET; None for single-character pushed records.
        fields: Decoded field values keyed by field name.
        raw: The complete frame text, sentinels included.

    Example:
        >>> response = parse("!n0s2&")
        >>> response.title, response.action, response.value
        ('Operation Mode', <Action.SET: 'set'>, 'Away')
    """

    key: str
    title: str
    action: Action | None
    fields: dict[str, Any] = field(default_factory=dict)
    raw: str = ""

    kind = MessageKind.RESPONSE

    @property
    def value(self) -> Any:
        """The field named "value", the single value of most settings."""
        return self.fields.get("value")

    def get(self, name: str, default: Any = None) -> Any:
        """Get a decoded field by name."""
        return self.fields.get(name, default)


@dataclass(frozen=True)
class Unparseable:
    """A sentinel-wrapped frame whose key is not registered."""

    key: str
    text: str

    kind = MessageKind.UNPARSEABLE

    @property
    def raw(self) -> str:
        return self.text


@dataclass(frozen=True)
class AddedDevice:
    """
    Enrollment notice pushed by the device.

    Attributes:
        device_code: Device class letter (b, c, e, f or m).
        device_type: Device class name from the "Device Code" table.
        device_id: 14-digit hex id; None if the window expired.
        raw: Frame text.
    """

    device_code: str
    device_type: str | None
    device_id: str | None
    raw: str

    kind = MessageKind.ADDED_DEVICE

    @property
    def timed_out(self) -> bool:
        """True if the enrollment window closed with no device added."""
        return self.device_id is None


@dataclass(frozen=True)
class ContactIdEvent:
    """Contact-id alarm report with its hex payload."""

    payload: str

    kind = MessageKind.CONTACT_ID


@dataclass(frozen=True)
class ExtendedStatus:
    """XINPIC status report with its hex payload."""

    payload: str

    kind = MessageKind.EXTENDED_STATUS


@dataclass(frozen=True)
class AtLine:
    """Modem AT command echo."""

    text: str

    kind = MessageKind.AT


@dataclass(frozen=True)
class GsmLine:
    """GSM module status line."""

    text: str

    kind = MessageKind.GSM


@dataclass(frozen=True)
class Prompt:
    """The bare idle prompt."""

    kind = MessageKind.PROMPT


Message = Union[
    Response,
    Unparseable,
    AddedDevice,
    ContactIdEvent,
    ExtendedStatus,
    AtLine,
    GsmLine,
    Prompt,
]
"""Any routed message."""
