"""
Custom hexadecimal alphabet used by the LS30.

The device writes hexadecimal digits 10-15 as the six ASCII characters that
follow '9' in the character set, rather than as letters:

    0 1 2 3 4 5 6 7 8 9 : ; < = > ?
                        a b c d e f

For example:
- 45 (0x2d) is transmitted as "2="
- 255 (0xff) is transmitted as "??"

Some payloads (contact-id events, extended status, enrollment ids) use
ordinary lowercase hex instead; to_standard_hex() normalises either form.
"""

from __future__ import annotations

from typing import Final

CUSTOM_HEX_DIGITS: Final[str] = "0123456789:;<=>?"
"""Digits of the device alphabet, indexed by value."""

_TO_STANDARD: Final[dict[int, int]] = str.maketrans(":;<=>?", "abcdef")
_TO_CUSTOM: Final[dict[int, int]] = str.maketrans("abcdefABCDEF", ":;<=>?:;<=>?")


def to_standard_hex(text: str) -> str:
    """
    Translate custom-alphabet digits to ordinary lowercase hex.

    Ordinary hex digits pass through unchanged, so the function is safe to
    apply to either alphabet.

    Example:
        >>> to_standard_hex("2=")
        '2d'
    """
    return text.translate(_TO_STANDARD)


def to_custom_hex(text: str) -> str:
    """
    Translate ordinary hex digits to the custom alphabet.

    Example:
        >>> to_custom_hex("2d")
        '2='
    """
    return text.translate(_TO_CUSTOM)


def hex_decode(text: str) -> int:
    """
    Decode a string of custom (or ordinary) hex digits.

    Args:
        text: One or more hex digits.

    Returns:
        Decoded non-negative integer.

    Raises:
        ValueError: If text is empty or contains a non-hex character.

    Example:
        >>> hex_decode(":")
        10
        >>> hex_decode("?")
        15
    """
    if not text:
        raise ValueError("Cannot decode an empty hex string")

    standard = to_standard_hex(text)
    if any(c not in "0123456789abcdefABCDEF" for c in standard):
        raise ValueError(f"Invalid hex digits: {text!r}")
    return int(standard, 16)


def hex_encode(value: int, width: int = 2) -> str:
    """
    Encode an integer as fixed-width custom hex.

    Args:
        value: Non-negative integer that fits in `width` digits.
        width: Number of digits to produce.

    Returns:
        Zero-padded string using only 0-9 and :;<=>?.

    Raises:
        ValueError: If value is negative or too wide.

    Example:
        >>> hex_encode(10, width=2)
        '0:'
    """
    if value < 0:
        raise ValueError(f"Value must be non-negative, got {value}")
    if value >= 16 ** width:
        raise ValueError(f"Value {value} does not fit in {width} hex digits")
    return to_custom_hex(f"{value:0{width}x}")


def try_hex_decode(text: str) -> int | None:
    """
    Decode custom hex, returning None instead of raising.

    Example:
        >>> try_hex_decode("2=")
        45
        >>> try_hex_decode("")
        None
    """
    try:
        return hex_decode(text)
    except ValueError:
        return None
