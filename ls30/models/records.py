"""
Pydantic models for LS30 records.

This module defines the value objects and records returned by the
higher-level API, implemented as immutable Pydantic models with validation.

Design principles:
- All models are frozen (immutable)
- Fields carry decoded values; the raw wire text is kept alongside
- Unknown enumeration codes are represented as None, not guessed
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ServerAddress(BaseModel):
    """
    TCP address of the LS30 (or of a serial-to-TCP bridge in front of it).

    Example:
        >>> address = ServerAddress.parse("alarm.local:1681")
        >>> address.host, address.port
        ('alarm.local', 1681)
        >>> str(address)
        'alarm.local:1681'
    """

    model_config = ConfigDict(frozen=True)

    host: str = Field(min_length=1, description="Host name or IP address")
    port: int = Field(ge=1, le=65535, description="TCP port")

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        """Reject hosts containing whitespace or a port separator."""
        if any(c.isspace() for c in v):
            raise ValueError(f"Host must not contain whitespace: {v!r}")
        if ":" in v:
            raise ValueError(f"Host must not contain ':': {v!r}")
        return v

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"

    @classmethod
    def parse(cls, value: str) -> ServerAddress:
        """
        Parse a "host:port" string.

        Raises:
            ValueError: If the string is not of the form host:port.
        """
        host, sep, port = value.strip().rpartition(":")
        if not sep or not host or not port.isdigit():
            raise ValueError(f"Expected host:port, got {value!r}")
        return cls(host=host, port=int(port))


class DeviceConfig(BaseModel):
    """
    Decoded 8-character device configuration field.

    The field packs two status-flag bytes followed by a 16-bit switch mask.
    Bit 15 of the mask is switch 1, bit 1 is switch 15; bit 0 is unused.

    Example:
        >>> config = parse_device_config("<4108800")
        >>> config.bypass, config.siren_alarm
        (True, True)
        >>> sorted(config.switches)
        [1, 5]
    """

    model_config = ConfigDict(frozen=True)

    string: str = Field(description="Config field in ordinary lowercase hex")

    # First status byte
    bypass: bool = False
    delay: bool = False
    hrs_24: bool = False
    home_guard: bool = False
    pre_warning: bool = False
    siren_alarm: bool = False
    bell: bool = False
    latchkey_or_inactivity: bool = False

    # Second status byte
    es2_reserved_1: bool = False
    es2_reserved_2: bool = False
    es2_two_way: bool = False
    es2_supervisory: bool = False
    es2_rf_voice: bool = False
    es2_reserved_3: int = Field(default=0, ge=0, le=7)

    switches: frozenset[int] = Field(default_factory=frozenset)
    """Numbers (1-15) of the switches this device operates."""

    @field_validator("switches")
    @classmethod
    def validate_switches(cls, v: frozenset[int]) -> frozenset[int]:
        """Ensure switch numbers are in 1..15."""
        bad = [n for n in v if not 1 <= n <= 15]
        if bad:
            raise ValueError(f"Switch numbers out of range: {sorted(bad)}")
        return v

    def switch_active(self, number: int) -> bool:
        """Check whether switch `number` is set in the mask."""
        return number in self.switches


class DeviceStatus(BaseModel):
    """
    Status record of one enrolled device.

    Built from the response to a k[bcefm] status query.

    Attributes:
        device_type: Device class ("Burglar Sensor", "Controller", ...).
        index: Position of the device within its class.
        specific_type: Device-specific type name, None if the code is unknown.
        device_id: 6-character device id.
        zone: Zone number as sent by the device.
        id: Number of the device within its zone.
        config: Decoded configuration, None if the field was short.
        raw: The response frame text.
    """

    model_config = ConfigDict(frozen=True)

    device_type: str
    index: int = Field(ge=0)
    specific_type: str | None = None
    device_id: str = ""
    zone: str = ""
    id: str = ""
    config: DeviceConfig | None = None
    raw: str = ""

    @property
    def is_deleted(self) -> bool:
        """Check if the slot holds a deleted device."""
        return self.specific_type == "Deleted Device"

    def __str__(self) -> str:
        kind = self.specific_type or "Unknown"
        return f"{self.device_type} #{self.index}: {kind} id={self.device_id} zone={self.zone}-{self.id}"
