"""
Enumerated types used by the LS30 alarm system.

Each type table is a bijection between a human-readable string and the short
code the device puts on the wire. Codes use the device's hex alphabet and are
not necessarily numeric ("Duress" is ':').

A TypeRegistry owns the forward and reverse maps for every table. Both are
built once at construction, so lookups never mutate shared state.

Example:
    >>> from ls30.protocol.types import DEFAULT_TYPE_REGISTRY as types
    >>> types.code("Arm Mode", "Away")
    '2'
    >>> types.string("Arm Mode", "8")
    'Monitor'
    >>> types.values("Device Type")[:2]
    ['Burglar Sensor', 'Controller']
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Final

from ls30.exceptions import InvalidValueError, UnknownTableError

logger = logging.getLogger(__name__)


TYPE_TABLES: Final[dict[str, dict[str, str]]] = {
    # Device-specific type byte of status records
    "Device Specific Type": {
        "Deleted Device": "00",
        "Humidity Sensor": "01",
        "Temperature Sensor": "02",
        "Flood Detector": "05",
        "Medical Button": "08",
        "Light Sensor": "0a",
        "Analog Sensor": "0e",
        "Remote Control": "10",
        "Keypad": "19",
        "Smoke Detector": "20",
        "CO Detector": "25",
        "Door Switch": "40",
        "Vibration Sensor": "42",
        "PIR": "50",
        "Glass Break Detector": "60",
        "Siren": "70",
        "Base Unit": "80",
        "RF Switch": "a0",
        "RF Siren": "c0",
    },
    "Event Code": {
        "Remote Siren Test": "0a01",
        "Away mode": "0a10",
        "Check Status": "0a13",
        "Disarm mode": "0a14",
        "Home mode": "0a18",
        "Test": "0a20",
        "Power On": "0a2a",
        "Low Battery": "0a30",
        "Open": "0a40",
        "Close": "0a48",
        "Tamper": "0a50",
        "Trigger": "0a58",
        "Panic": "0a60",
    },
    # 'b3' command
    "Device Type": {
        "Controller": "0",
        "Burglar Sensor": "1",
        "Fire Sensor": "2",
        "Medical Button": "3",
        "Special Sensor": "4",
    },
    # 2nd letter of the 'k' status commands and of enrollment frames
    "Device Code": {
        "Burglar Sensor": "b",
        "Controller": "c",
        "Fire Sensor": "f",
        "Medical Button": "m",
        "Special Sensor": "e",
    },
    "Group": {f"Group {n}": str(n) for n in range(90, 100)},
    # 'n8' partial arm has no group 90
    "Group 91-99": {f"Group {n}": str(n) for n in range(91, 100)},
    "Schedule Zone": {
        "Main": "0",
        **{f"Zone {90 + n}": str(n) for n in range(1, 10)},
    },
    "Operation Code": {
        "Ignore": "?",
        "Disarm": "1",
        "Home": "2",
        "Away": "3",
        "Monitor": "9",
    },
    # 'n0' command
    "Arm Mode": {
        "Disarm": "0",
        "Home": "1",
        "Away": "2",
        "Monitor": "8",
    },
    "Cease Dialing": {
        "30-minute expires": "0",
        "Made successful CMS dialing": "1",
    },
    "Day of Week": {
        "Mon": "1",
        "Tue": "2",
        "Wed": "3",
        "Thu": "4",
        "Fri": "5",
        "Sat": "6",
        "Sun": "7",
    },
    "Schedule Day of Week": {
        "Daily": "0",
        "Mon": "1",
        "Tue": "2",
        "Wed": "3",
        "Thu": "4",
        "Fri": "5",
        "Sat": "6",
        "Sun": "7",
    },
    "Password": {
        "Master": "0",
        "USER2": "1",
        "USER3": "2",
        "USER4": "3",
        "USER5": "4",
        "USER6": "5",
        "USER7": "6",
        "USER8": "7",
        "USER9(L)": "8",
        "USER10(L)": "9",
        "Duress": ":",
        "CMS1": "<",
        "CMS2": "=",
    },
    "Switch": {"Off": "0", "On": "1"},
    "Yes/No 1": {"No": "0", "Yes": "1"},
    "Yes/No 2": {"No": "0", "Yes": "2"},
    "CMS Report": {"All": "0", "One": "1"},
    "DTMF duration": {"50ms": "0", "100ms": "1"},
    "Enablement": {"Disabled": "0", "Enabled": "1"},
    "Reverse Enablement": {"Enabled": "0", "Disabled": "1"},
    "IP Report Format": {
        "Scientech": "0",
        "CSV IP Alarm": "1",
        "Reserved": "2",
    },
    "Dial Mode": {
        "Dial Tone(DTMF)": "0",
        "Dial Pulse (33/66 B/M Ratio)": "1",
        "Dial Pulse (40/60 B/M Ratio)": "2",
    },
    "Switch Type": {
        "X-10": "0",
        "Type 2": "1",
        "Type 3": "2",
        "Type 4": "3",
        "Type 5": "4",
    },
    "Telephone Line Cut": {
        "Permanent Off": "0",
        "Away Mode On": "1",
        "Permanent On": "2",
    },
    "Emergency Button": {"Panic": "0", "Medical": "1"},
    "Switch 16": {"Disarm=On": "0", "Arm=On": "1"},
    # 'd1' command
    "Siren Type": {"Standard": "0", "HA Series": "1"},
    # 'u' command
    "Switch/Operation Scene": {
        **{f"Switch Scene {n}": "0123456789:;<=>?"[n - 1] for n in range(1, 9)},
        **{f"Operation Scene {n}": "0123456789:;<=>?"[n + 7] for n in range(1, 9)},
    },
    # Event log records carry the human text on the code side
    "Event Log Code": {
        "1100": "Medical Alarm",
        "1110": "Fire Alarm",
        "1111": "Smoke Alarm",
        "1120": "Panic",
        "1121": "Duress",
        "1130": "Burglar",
        "1137": "Tamper",
        "1144": "Sensor Tamper",
        "1301": "AC Loss",
        "1305": "Sys.Reset",
        "1351": "Telephone Line Fault",
        "1381": "Loss RF",
        "1384": "RF Low Battery",
        "1400": "Disarm",
        "1601": "Loop Test",
        "1618": "Trigger in Monitor Mode",
        "1619": "Monitor",
        "1641": "Inactivity Alarm",
        "3130": "Burglary Restore",
        "3158": "High Temp Restore",
        "3159": "Low Temp Restore",
        "3301": "AC Restore",
        "3381": "RF Restore",
        "3384": "RF Low Battery Restore",
        "3400": "Away",
        "3441": "Home",
    },
    "Event Source Code": {
        "00": "C",
        "01": "B",
        "02": "F",
        "03": "M",
        "04": "S",
        "05": "Z",
    },
    "X-10 Switch Command": {
        "All unit off": "0",
        "Hail request": "1",
        "Dim": "2",
        "Extended data": "3",
        "On": "4",
        "Preset dim": "5",
        "All lights off": "6",
        "Status off": "7",
        "All lights on": "8",
        "Hail acknowledge": "9",
        "Bright": ":",
        "Status on": ";",
        "Off": "<",
        "Extended code": ">",
        "Status request": "?",
    },
}
"""Built-in type tables, keyed by table name."""


class TypeRegistry:
    """
    Registry of named enumerations.

    Holds a forward map (string -> code) and a reverse map (code -> string)
    per table. If two strings in one table share a code, the string that
    appears last wins in the reverse map.

    Lookups by string or code raise UnknownTableError for an unregistered
    table, and return None for an unmapped value. values() is the lenient
    accessor and returns an empty list for an unknown table.

    Example:
        >>> registry = TypeRegistry({"Switch": {"Off": "0", "On": "1"}})
        >>> registry.code("Switch", "On")
        '1'
        >>> registry.code("Switch", "Dim") is None
        True
    """

    def __init__(self, tables: Mapping[str, Mapping[str, str]]) -> None:
        """
        Build the registry.

        Args:
            tables: Mapping of table name to {human string: wire code}.
        """
        self._forward: dict[str, dict[str, str]] = {
            name: dict(entries) for name, entries in tables.items()
        }
        self._reverse: dict[str, dict[str, str]] = {}
        for name, entries in self._forward.items():
            reverse: dict[str, str] = {}
            for string, code in entries.items():
                reverse[code] = string
            self._reverse[name] = reverse

    def _table(self, table: str) -> dict[str, str]:
        try:
            return self._forward[table]
        except KeyError:
            raise UnknownTableError(table) from None

    def has_table(self, table: str) -> bool:
        """Check if a table is registered."""
        return table in self._forward

    @property
    def tables(self) -> list[str]:
        """Sorted names of all registered tables."""
        return sorted(self._forward)

    def code(self, table: str, value: str | None, *, warn: bool = False) -> str | None:
        """
        Return the wire code for a human string.

        Args:
            table: Table name.
            value: Human string (case-sensitive).
            warn: Log a warning if the value is missing or unmapped.

        Returns:
            Wire code, or None if the value has no code.

        Raises:
            UnknownTableError: If the table is not registered.
        """
        entries = self._table(table)

        if value is None:
            if warn:
                logger.warning("Cannot look up undefined string in table %s", table)
            return None

        code = entries.get(value)
        if code is None and warn:
            logger.warning("Incorrect value %r for table %s", value, table)
        return code

    def require_code(self, table: str, value: str | None) -> str:
        """
        Return the wire code for a human string, raising if unmapped.

        Raises:
            UnknownTableError: If the table is not registered.
            InvalidValueError: If the value has no code.
        """
        code = self.code(table, value)
        if code is None:
            raise InvalidValueError(value, table=table)
        return code

    def string(self, table: str, code: str) -> str | None:
        """
        Return the human string for a wire code.

        Raises:
            UnknownTableError: If the table is not registered.
        """
        if table not in self._reverse:
            raise UnknownTableError(table)
        return self._reverse[table].get(code)

    def values(self, table: str) -> list[str]:
        """
        Return the sorted human strings of a table.

        Returns:
            Sorted list, or an empty list if the table is unknown.
        """
        entries = self._forward.get(table)
        if entries is None:
            return []
        return sorted(entries)

    def __contains__(self, table: object) -> bool:
        return table in self._forward

    def __repr__(self) -> str:
        return f"TypeRegistry(tables={len(self._forward)})"


DEFAULT_TYPE_REGISTRY: Final[TypeRegistry] = TypeRegistry(TYPE_TABLES)
"""Registry of the built-in LS30 type tables."""


def get_code(table: str, value: str | None) -> str | None:
    """Look up a wire code in the default registry."""
    return DEFAULT_TYPE_REGISTRY.code(table, value)


def get_string(table: str, code: str) -> str | None:
    """Look up a human string in the default registry."""
    return DEFAULT_TYPE_REGISTRY.string(table, code)


def list_strings(table: str) -> list[str]:
    """List the sorted human strings of a table in the default registry."""
    return DEFAULT_TYPE_REGISTRY.values(table)
