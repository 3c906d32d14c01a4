"""
Data models for LS30 records.

This module contains Pydantic models representing the values returned by
the higher-level API:

- ServerAddress: host:port of the device
- DeviceConfig: decoded device configuration bits
- DeviceStatus: status record of one enrolled device
"""

from ls30.models.records import DeviceConfig, DeviceStatus, ServerAddress

__all__ = [
    "ServerAddress",
    "DeviceConfig",
    "DeviceStatus",
]
