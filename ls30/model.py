"""
Caching model of an LS30 alarm system.

AlarmModel keeps the last known value of every setting, the device counts
and the device status records, and delegates to an upstream SettingsSource
(a Commander talking to the device, or another model) when a value is not
cached or the caller wants a fresh one.

Example:
    >>> model = AlarmModel(upstream=Commander(connection))
    >>> mode = await model.get_setting("Operation Mode", cached=True)
    >>> error = await model.set_setting("Operation Mode", "Away")
    >>> if error:
    ...     print(error)
"""

from __future__ import annotations

import inspect
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from ls30.protocol.commands import DEFAULT_COMMAND_CODEC, CommandCodec

if TYPE_CHECKING:
    from ls30.models.records import DeviceStatus
    from ls30.protocol.messages import Message

logger = logging.getLogger(__name__)

EventListener = Callable[["Message"], "Awaitable[None] | None"]
"""Callback for spontaneous device messages."""


class SettingsSource(ABC):
    """
    Anything that can read and write named settings and device records.

    set_setting() and clear_setting() return None on success and an error
    message otherwise.
    """

    @abstractmethod
    async def get_setting(self, title: str, cached: bool = False) -> Any:
        """Get the value of a setting, or None if unavailable."""
        ...

    @abstractmethod
    async def set_setting(self, title: str, value: Any) -> str | None:
        """Set a setting. Returns None on success, else an error message."""
        ...

    @abstractmethod
    async def clear_setting(self, title: str) -> str | None:
        """Clear a setting. Returns None on success, else an error message."""
        ...

    @abstractmethod
    async def get_device_count(self, device_type: str, cached: bool = False) -> int | None:
        """Get the number of enrolled devices of a class."""
        ...

    @abstractmethod
    async def get_device_status(
        self,
        device_type: str,
        index: int,
        cached: bool = False,
    ) -> DeviceStatus | None:
        """Get the status record of one device."""
        ...

    @abstractmethod
    def add_listener(self, listener: EventListener) -> None:
        """Register a callback for spontaneous device messages."""
        ...


async def notify_listeners(listeners: list[EventListener], message: Message) -> None:
    """
    Call every listener with a message.

    Coroutine listeners are awaited. A failing listener is logged and does
    not stop the others.
    """
    for listener in list(listeners):
        try:
            result = listener(message)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Event listener %r failed", listener)


class AlarmModel(SettingsSource):
    """
    Cache of settings and devices over an optional upstream source.

    Without an upstream the model is a plain in-memory store: values set
    are returned by later gets, and device counts default to 0.

    Attributes:
        upstream: The source consulted on cache misses.
    """

    def __init__(
        self,
        upstream: SettingsSource | None = None,
        codec: CommandCodec | None = None,
    ) -> None:
        """
        Initialize the model.

        Args:
            upstream: Source of fresh values (Commander or another model).
            codec: Command codec used to validate titles and values.
        """
        self._codec = codec if codec is not None else DEFAULT_COMMAND_CODEC
        self._settings: dict[str, Any] = {}
        self._device_counts: dict[str, int] = {}
        self._devices: dict[str, dict[int, DeviceStatus]] = {}
        self._listeners: list[EventListener] = []
        self._upstream: SettingsSource | None = None
        self.upstream = upstream

    @property
    def upstream(self) -> SettingsSource | None:
        """Get the upstream source."""
        return self._upstream

    @upstream.setter
    def upstream(self, upstream: SettingsSource | None) -> None:
        self._upstream = upstream
        if upstream is not None:
            upstream.add_listener(self._handle_event)

    @property
    def settings(self) -> dict[str, Any]:
        """Copy of the cached settings."""
        return dict(self._settings)

    def add_listener(self, listener: EventListener) -> None:
        """Register a callback for spontaneous messages seen upstream."""
        self._listeners.append(listener)

    async def _handle_event(self, message: Message) -> None:
        await notify_listeners(self._listeners, message)

    def _valid_device_type(self, device_type: str) -> bool:
        return self._codec.types.code("Device Type", device_type) is not None

    # ===== Settings =====

    async def get_setting(self, title: str, cached: bool = False) -> Any:
        """
        Get the current value of a setting.

        Args:
            title: Setting title, e.g. "Operation Mode".
            cached: Return the cached value if there is one.

        Returns:
            The value, or None if unknown.
        """
        if not self._codec.is_setting(title):
            logger.error("Is not a setting: <%s>", title)
            return None

        value = self._settings.get(title)
        if cached and value is not None:
            return value

        if self._upstream is not None:
            value = await self._upstream.get_setting(title, cached)
            self._settings[title] = value
            return value

        return value

    async def set_setting(self, title: str, value: Any) -> str | None:
        """
        Set a setting, upstream first.

        The cache is updated only if upstream reports success.

        Returns:
            None on success, or an error message.
        """
        if not self._codec.is_setting(title):
            return f"Is not a setting: <{title}>"

        if self._codec.test_setting_value(title, value) is None:
            return f"Value <{value}> is not valid for setting <{title}>"

        if self._upstream is not None:
            error = await self._upstream.set_setting(title, value)
            if error is None:
                self._settings[title] = value
            return error

        self._settings[title] = value
        return None

    async def clear_setting(self, title: str) -> str | None:
        """
        Clear a setting, upstream first.

        Returns:
            None on success, or an error message.
        """
        if not self._codec.is_setting(title):
            return f"Is not a setting: <{title}>"

        if self._upstream is not None:
            error = await self._upstream.clear_setting(title)
            if error is None:
                self._settings.pop(title, None)
            return error

        self._settings.pop(title, None)
        return None

    # ===== Devices =====

    async def get_device_count(self, device_type: str, cached: bool = False) -> int | None:
        """
        Get how many devices of a class are enrolled.

        Args:
            device_type: Device class ("Burglar Sensor", ...).
            cached: Return the cached count if there is one.

        Returns:
            The count, or None if the device type is invalid or upstream
            gave no answer.
        """
        if not self._valid_device_type(device_type):
            logger.error("Invalid device type <%s>", device_type)
            return None

        value = self._device_counts.get(device_type)
        if cached and value is not None:
            return value

        if self._upstream is not None:
            value = await self._upstream.get_device_count(device_type, cached)
            if value is not None:
                self._device_counts[device_type] = value
            return value

        return value if value is not None else 0

    async def get_device_status(
        self,
        device_type: str,
        index: int,
        cached: bool = False,
    ) -> DeviceStatus | None:
        """
        Get the status record of one device.

        The device count is fetched first (from cache for any index but 0)
        to reject indexes beyond the last enrolled device.

        Args:
            device_type: Device class ("Burglar Sensor", ...).
            index: Position within the class, from 0.
            cached: Return a cached record if there is one.

        Returns:
            DeviceStatus, or None on error.
        """
        if not self._valid_device_type(device_type):
            logger.error("Invalid device type <%s>", device_type)
            return None

        if index < 0:
            logger.error("Invalid device number <%d>", index)
            return None

        count = await self.get_device_count(device_type, cached or index != 0)
        if count is None or index >= count:
            logger.error("Device number %d beyond end of %s list", index, device_type)
            return None

        device = self._devices.get(device_type, {}).get(index)
        if cached and device is not None:
            return device

        if self._upstream is not None:
            device = await self._upstream.get_device_status(device_type, index, cached)
            if device is not None:
                self._devices.setdefault(device_type, {})[index] = device
            return device

        return device

    def store_device(self, device: DeviceStatus) -> None:
        """Put a device record into the cache."""
        self._devices.setdefault(device.device_type, {})[device.index] = device
        count = self._device_counts.get(device.device_type, 0)
        if device.index >= count:
            self._device_counts[device.device_type] = device.index + 1

    async def load_devices(self) -> dict[str, list[DeviceStatus]]:
        """
        Refresh the counts and status records of every device class.

        Returns:
            Device class name -> records in index order.
        """
        result: dict[str, list[DeviceStatus]] = {}

        for device_type in self._codec.types.values("Device Type"):
            count = await self.get_device_count(device_type)
            devices: list[DeviceStatus] = []
            for index in range(count or 0):
                device = await self.get_device_status(device_type, index, cached=False)
                if device is not None:
                    devices.append(device)
            result[device_type] = devices

        return result

    def __repr__(self) -> str:
        return f"AlarmModel(settings={len(self._settings)}, upstream={self._upstream!r})"
