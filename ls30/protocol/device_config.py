"""
Packed device configuration decoding.

Device status responses (and enrollment records) carry an 8-character
configuration field:

    ES1 ES2 SWITCH-MASK
    2   2   4          characters

ES1 and ES2 are status-flag bytes decoded through fixed bit masks; the
switch mask marks which of switches 1-15 the device operates, most
significant bit first.
"""

from __future__ import annotations

import re
from typing import Final

from ls30.exceptions import ParseError
from ls30.models.records import DeviceConfig
from ls30.protocol.encoding import to_standard_hex

ES1_FLAGS: Final[dict[str, int]] = {
    "bypass": 0x80,
    "delay": 0x40,
    "hrs_24": 0x20,
    "home_guard": 0x10,
    "pre_warning": 0x08,
    "siren_alarm": 0x04,
    "bell": 0x02,
    "latchkey_or_inactivity": 0x01,
}
"""Flag name to bit mask for the first status byte."""

ES2_FLAGS: Final[dict[str, int]] = {
    "es2_reserved_1": 0x80,
    "es2_reserved_2": 0x40,
    "es2_two_way": 0x20,
    "es2_supervisory": 0x10,
    "es2_rf_voice": 0x08,
}
"""Flag name to bit mask for the second status byte."""

ES2_RESERVED_3_MASK: Final[int] = 0x07

_CONFIG_PATTERN: Final[re.Pattern[str]] = re.compile(r"^([0-9a-f]{2})([0-9a-f]{2})([0-9a-f]{4})$")


def parse_device_config(text: str) -> DeviceConfig:
    """
    Decode an 8-character device configuration field.

    Args:
        text: Config field in custom or ordinary hex, e.g. "<4100000".

    Returns:
        Decoded DeviceConfig.

    Raises:
        ParseError: If text is not exactly 8 hex digits.

    Example:
        >>> config = parse_device_config("<4100000")
        >>> config.bypass, config.delay, config.es2_supervisory
        (True, True, True)
    """
    standard = to_standard_hex(text)
    match = _CONFIG_PATTERN.match(standard)
    if not match:
        raise ParseError(
            "Looking for an 8-char config string",
            field="config",
            raw_data=text,
        )

    es1 = int(match.group(1), 16)
    es2 = int(match.group(2), 16)
    mask = int(match.group(3), 16)

    flags: dict[str, bool] = {name: bool(es1 & bit) for name, bit in ES1_FLAGS.items()}
    flags.update({name: bool(es2 & bit) for name, bit in ES2_FLAGS.items()})

    switches = frozenset(n for n in range(1, 16) if mask & (1 << (16 - n)))

    return DeviceConfig(
        string=standard,
        es2_reserved_3=es2 & ES2_RESERVED_3_MASK,
        switches=switches,
        **flags,
    )
