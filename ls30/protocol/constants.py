"""
LS30 protocol constants.

Frame sentinels, markers, timing defaults and the regular expressions that
classify lines received from the device.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Final


class ProtocolConstants:
    """
    LS30 protocol constants.

    Contains frame sentinels, request markers, timing values and special
    strings used throughout the protocol implementation.
    """

    # ===== Frame Delimiters =====

    START: Final[str] = "!"
    """Start of a command or response frame."""

    END: Final[str] = "&"
    """End of a command or response frame."""

    PROMPT: Final[str] = "!&"
    """Bare idle prompt sent by the device."""

    LINE_TERMINATOR: Final[bytes] = b"\n"
    """Transport line terminator (a preceding CR is stripped)."""

    # ===== Request Markers =====

    QUERY_MARKER: Final[str] = "?"
    """Follows the key in a query request."""

    SET_MARKER: Final[str] = "s"
    """Follows the key in a set request and in responses to one."""

    # ===== Special Values =====

    NO_VALUE: Final[str] = "no"
    """Device sentinel for an empty telephone number or denied enrollment."""

    TIME_WILDCARD: Final[str] = "????"
    """Clock value meaning "no time set"."""

    # ===== Timing Constants (in seconds) =====

    DEFAULT_TIMEOUT: Final[float] = 5.0
    """Default response timeout in seconds."""

    CONNECT_TIMEOUT: Final[float] = 10.0
    """Timeout for establishing the TCP connection."""

    RECONNECT_DELAY: Final[float] = 5.0
    """Delay before reconnecting after a failure or disconnect."""


class MessageKind(Enum):
    """Kinds of line the router can classify."""

    RESPONSE = "response"
    ADDED_DEVICE = "added_device"
    CONTACT_ID = "contact_id"
    EXTENDED_STATUS = "extended_status"
    AT = "at"
    GSM = "gsm"
    PROMPT = "prompt"
    UNPARSEABLE = "unparseable"


class Action(str, Enum):
    """Whether a response answers a query or a set request."""

    QUERY = "query"
    SET = "set"


# ===== Line Patterns =====

EXTENDED_STATUS_PATTERN: Final[re.Pattern[str]] = re.compile(r"^XINPIC=([0-9a-f]+)$")
"""Extended status line with a hex payload."""

CONTACT_ID_PATTERN: Final[re.Pattern[str]] = re.compile(r"^\(([0-9a-f]+)\)$")
"""Parenthesised contact-id event."""

RESPONSE_PATTERN: Final[re.Pattern[str]] = re.compile(r"^(!.+&)$")
"""Sentinel-wrapped response frame."""

ENROLLED_PATTERN: Final[re.Pattern[str]] = re.compile(r"^!i([bcefm])l([0-9a-f]{14})&$")
"""New device enrolled: device code char and 14-digit device id."""

ENROLL_TIMEOUT_PATTERN: Final[re.Pattern[str]] = re.compile(r"^!i([bcefm])lno&$")
"""Enrollment window expired without a device."""

AT_PATTERN: Final[re.Pattern[str]] = re.compile(r"^AT.+")
"""Modem AT command echo."""

GSM_PATTERN: Final[re.Pattern[str]] = re.compile(r"^GSM=.+")
"""GSM module status line."""

# Recovery patterns, tried in priority order. The junk group is greedy, so
# the last embedded occurrence of a pattern wins within one kind.
RECOVERY_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(r"^(.+)(XINPIC=.+)"),
    re.compile(r"^(.+)(\(.+\))"),
    re.compile(r"^(.+)(!&)$"),
    re.compile(r"^(.+)(!.+&)"),
    re.compile(r"^(.+)(AT.+)"),
    re.compile(r"^(.+)(GSM=.+)"),
)
"""Embedded-frame patterns used to salvage a corrupted line."""
