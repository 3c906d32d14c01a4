"""Tests for the custom hex alphabet."""

import pytest

from ls30.protocol.encoding import (
    CUSTOM_HEX_DIGITS,
    hex_decode,
    hex_encode,
    to_custom_hex,
    to_standard_hex,
    try_hex_decode,
)


class TestHexDecode:
    """Tests for hex_decode function."""

    def test_custom_digits(self):
        """Test the six punctuation digits."""
        assert hex_decode("<") == 12
        assert hex_decode(":") == 10
        assert hex_decode(";") == 11
        assert hex_decode("=") == 13
        assert hex_decode(">") == 14
        assert hex_decode("?") == 15

    def test_multi_digit(self):
        """Test decoding several digits."""
        assert hex_decode("2=") == 45
        assert hex_decode("??") == 255
        assert hex_decode("100") == 256

    def test_ordinary_hex_accepted(self):
        """Test that lowercase hex decodes too."""
        assert hex_decode("2d") == 45
        assert hex_decode("ff") == 255

    def test_empty_raises(self):
        """Test that empty input raises ValueError."""
        with pytest.raises(ValueError):
            hex_decode("")

    def test_invalid_raises(self):
        """Test that non-hex characters raise ValueError."""
        with pytest.raises(ValueError):
            hex_decode("zz")
        with pytest.raises(ValueError):
            hex_decode("1@")

    def test_try_hex_decode(self):
        """Test the non-raising variant."""
        assert try_hex_decode("0:") == 10
        assert try_hex_decode("") is None
        assert try_hex_decode("no") is None


class TestHexEncode:
    """Tests for hex_encode function."""

    def test_uses_custom_alphabet(self):
        """Test that output only uses the device alphabet."""
        encoded = hex_encode(10, width=2)
        assert encoded == "0:"
        assert all(c in CUSTOM_HEX_DIGITS for c in encoded)

    def test_all_byte_values(self):
        """Test every two-digit value stays in the alphabet."""
        for value in range(256):
            encoded = hex_encode(value, 2)
            assert len(encoded) == 2
            assert all(c in CUSTOM_HEX_DIGITS for c in encoded)
            assert hex_decode(encoded) == value

    def test_widths(self):
        """Test zero padding for each width."""
        assert hex_encode(5, 1) == "5"
        assert hex_encode(45, 2) == "2="
        assert hex_encode(4095, 3) == "???"
        assert hex_encode(1, 3) == "001"

    def test_negative_raises(self):
        """Test that negative values raise ValueError."""
        with pytest.raises(ValueError):
            hex_encode(-1, 2)

    def test_overflow_raises(self):
        """Test that values too wide for the field raise ValueError."""
        with pytest.raises(ValueError):
            hex_encode(256, 2)
        with pytest.raises(ValueError):
            hex_encode(16, 1)


class TestTranslation:
    """Tests for alphabet translation helpers."""

    def test_to_standard(self):
        """Test custom to standard translation."""
        assert to_standard_hex(":;<=>?") == "abcdef"
        assert to_standard_hex("0123456789") == "0123456789"

    def test_to_custom(self):
        """Test standard to custom translation."""
        assert to_custom_hex("abcdef") == ":;<=>?"
        assert to_custom_hex("ABCDEF") == ":;<=>?"
