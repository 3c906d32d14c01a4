"""
Command/response correlation for the LS30.

The device answers commands strictly in the order it receives them, and
response frames carry nothing that identifies the request. The Commander
therefore keeps one FIFO of pending commands per connection:

- queue_command() appends the command; if nothing was outstanding it is
  transmitted immediately
- each response frame resolves the oldest pending command and transmits
  the next one

Only one command is on the wire at a time. Spontaneous messages (contact-id
events, XINPIC status, enrollment notices, modem chatter) never touch the
queue; the last of each kind is kept and every one is passed to the
registered event listeners.

Example:
    >>> commander = Commander(connection, timeout=5.0)
    >>> response = await commander.send_command("!n0?&")
    >>> mode = await commander.get_setting("Operation Mode")
    >>> await commander.set_setting("Operation Mode", "Away")
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ls30.exceptions import ConnectionError, NotASettingError, ParseError, TransportError
from ls30.model import EventListener, SettingsSource, notify_listeners
from ls30.models.records import DeviceStatus
from ls30.protocol.constants import ProtocolConstants
from ls30.protocol.device_config import parse_device_config
from ls30.protocol.messages import Response
from ls30.protocol.router import MessageHandler

if TYPE_CHECKING:
    from ls30.connection import Connection
    from ls30.protocol.commands import CommandCodec
    from ls30.protocol.messages import (
        AddedDevice,
        AtLine,
        ContactIdEvent,
        ExtendedStatus,
        GsmLine,
        Message,
        Unparseable,
    )

logger = logging.getLogger(__name__)


@dataclass
class PendingCommand:
    """A transmitted or waiting command and the future for its response."""

    command: str
    future: asyncio.Future[str]


class Commander(MessageHandler, SettingsSource):
    """
    FIFO request/response engine over one Connection.

    The Commander installs itself as the connection's message handler.

    Attributes:
        connection: The device connection.
        codec: Command codec used by the setting operations.
        timeout: Seconds send_command() waits for a response.
        discard_on_timeout: Remove a timed-out command from the queue. If
            False, the stale entry stays and claims the next response.
    """

    def __init__(
        self,
        connection: Connection,
        timeout: float | None = None,
        *,
        discard_on_timeout: bool | None = None,
    ) -> None:
        """
        Initialize the commander.

        Args:
            connection: Connection to the device.
            timeout: Response timeout in seconds (default: the
                connection's command timeout); <= 0 selects 5 seconds.
            discard_on_timeout: Remove timed-out commands from the queue
                (default: the connection's setting).
        """
        if timeout is None:
            timeout = connection.command_timeout
        if discard_on_timeout is None:
            discard_on_timeout = connection.discard_on_timeout
        if timeout <= 0:
            timeout = ProtocolConstants.DEFAULT_TIMEOUT

        self._connection = connection
        self._timeout = timeout
        self._discard_on_timeout = discard_on_timeout
        self._queue: deque[PendingCommand] = deque()
        self._listeners: list[EventListener] = []
        self._listener_tasks: set[asyncio.Task[None]] = set()

        self._last_contact_id: str | None = None
        self._last_extended_status: str | None = None
        self._last_at: str | None = None
        self._last_gsm: str | None = None
        self._last_added_device: AddedDevice | None = None

        connection.set_handler(self)

    @property
    def connection(self) -> Connection:
        return self._connection

    @property
    def codec(self) -> CommandCodec:
        """Get the command codec of the connection's router."""
        return self._connection.router.codec

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def discard_on_timeout(self) -> bool:
        return self._discard_on_timeout

    @property
    def pending(self) -> list[str]:
        """Commands awaiting a response, oldest (transmitted) first."""
        return [entry.command for entry in self._queue]

    @property
    def last_contact_id(self) -> str | None:
        """Payload of the last contact-id event."""
        return self._last_contact_id

    @property
    def last_extended_status(self) -> str | None:
        """Payload of the last XINPIC line."""
        return self._last_extended_status

    @property
    def last_at(self) -> str | None:
        return self._last_at

    @property
    def last_gsm(self) -> str | None:
        return self._last_gsm

    @property
    def last_added_device(self) -> AddedDevice | None:
        """The last enrollment notice."""
        return self._last_added_device

    def add_listener(self, listener: EventListener) -> None:
        """
        Register a callback for spontaneous messages.

        The callback receives each AddedDevice, ContactIdEvent,
        ExtendedStatus, AtLine and GsmLine, and any response frame that
        arrives with no command pending. It may be a coroutine function.
        Listeners are called from a separate task, so they may send
        commands through this commander.
        """
        self._listeners.append(listener)

    def remove_listener(self, listener: EventListener) -> None:
        """Unregister a callback."""
        self._listeners.remove(listener)

    def _notify(self, message: Message) -> None:
        # Listeners run outside the reader task.
        if not self._listeners:
            return
        task = asyncio.create_task(notify_listeners(list(self._listeners), message))
        self._listener_tasks.add(task)
        task.add_done_callback(self._listener_tasks.discard)

    async def wait_listeners(self) -> None:
        """Wait until every dispatched listener call has finished."""
        while self._listener_tasks:
            await asyncio.gather(*self._listener_tasks, return_exceptions=True)

    # ===== Queue =====

    async def _transmit(self, command: str) -> None:
        await self._connection.send_command(command)

    async def queue_command(self, command: str) -> asyncio.Future[str]:
        """
        Queue a command.

        The command is transmitted at once if no other command is pending;
        otherwise it is transmitted when the responses to all earlier
        commands have arrived.

        Args:
            command: Request frame, e.g. "!n0?&".

        Returns:
            Future resolved with the raw response frame.

        Raises:
            ConnectionError: If the command must be sent now and the
                connection is closed.
            TransportError: If the write fails.
        """
        future: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        entry = PendingCommand(command, future)

        was_idle = not self._queue
        self._queue.append(entry)

        if was_idle:
            try:
                await self._transmit(command)
            except (ConnectionError, TransportError):
                self._queue.remove(entry)
                raise

        return future

    async def _transmit_head(self) -> None:
        while self._queue:
            head = self._queue[0]
            try:
                await self._transmit(head.command)
                return
            except (ConnectionError, TransportError) as e:
                logger.error("Unable to send %s: %s", head.command, e)
                self._queue.popleft()
                if not head.future.done():
                    head.future.set_exception(e)

    async def send_command(self, command: str) -> str | None:
        """
        Send a command and wait for its response.

        Args:
            command: Request frame.

        Returns:
            The raw response frame, or None on timeout.

        Raises:
            ConnectionError: If the connection is closed.
            TransportError: If the write fails.
        """
        future = await self.queue_command(command)

        try:
            return await asyncio.wait_for(asyncio.shield(future), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning("Timeout waiting for response to %s", command)
            if self._discard_on_timeout:
                await self._abandon(future)
            return None

    async def _abandon(self, future: asyncio.Future[str]) -> None:
        for position, entry in enumerate(self._queue):
            if entry.future is future:
                break
        else:
            return

        del self._queue[position]
        future.cancel()
        logger.debug("Discarded timed-out command %s", entry.command)

        # The head was on the wire; its successor has not been sent yet
        if position == 0:
            await self._transmit_head()

    # ===== MessageHandler =====

    async def handle_response(self, message: Response | Unparseable) -> None:
        """
        Resolve the oldest pending command with a response frame.

        With nothing pending the frame is treated as spontaneous and passed
        to the listeners.
        """
        if not self._queue:
            logger.debug("Response with no command pending: %s", message.raw)
            self._notify(message)
            return

        entry = self._queue.popleft()
        if not entry.future.done():
            entry.future.set_result(message.raw)

        await self._transmit_head()

    async def handle_added_device(self, message: AddedDevice) -> None:
        if message.timed_out:
            logger.info("Enrollment window closed, no %s added", message.device_type)
        else:
            logger.info("Enrolled %s %s", message.device_type, message.device_id)
        self._last_added_device = message
        self._notify(message)

    async def handle_contact_id(self, message: ContactIdEvent) -> None:
        self._last_contact_id = message.payload
        self._notify(message)

    async def handle_extended_status(self, message: ExtendedStatus) -> None:
        self._last_extended_status = message.payload
        self._notify(message)

    async def handle_at(self, message: AtLine) -> None:
        self._last_at = message.text
        self._notify(message)

    async def handle_gsm(self, message: GsmLine) -> None:
        self._last_gsm = message.text
        self._notify(message)

    # ===== Settings =====

    def _decode(self, raw: str) -> Message | None:
        try:
            return self.codec.parse(raw)
        except ParseError as e:
            logger.warning("Cannot decode response %s: %s", raw, e)
            return None

    def _require_setting(self, title: str) -> bool:
        spec = self.codec.get(title)
        if spec is None:
            logger.warning("Unknown setting: <%s>", title)
            return False
        if not spec.is_setting:
            raise NotASettingError(title)
        return True

    async def get_setting(self, title: str, cached: bool = False) -> Any:
        """
        Query the current value of a setting.

        Args:
            title: Setting title, e.g. "Operation Mode".
            cached: Ignored; the device is always queried.

        Returns:
            Decoded value, or None if the title is unknown, the device did
            not answer, or the answer could not be decoded.

        Raises:
            NotASettingError: If the title is not a setting.
        """
        if not self._require_setting(title):
            return None

        command = self.codec.build_query(title)
        if command is None:
            return None

        raw = await self.send_command(command)
        if raw is None:
            return None

        message = self._decode(raw)
        if not isinstance(message, Response):
            logger.warning("Unexpected response to %s: %s", command, raw)
            return None
        return message.value

    async def set_setting(self, title: str, value: Any) -> str | None:
        """
        Set a setting on the device.

        Args:
            title: Setting title.
            value: New value, e.g. "Away".

        Returns:
            None on success, or an error message.

        Raises:
            NotASettingError: If the title is not a setting.
        """
        if not self._require_setting(title):
            return f"Unknown setting: <{title}>"

        if self.codec.test_setting_value(title, value) is None:
            error = f"Value <{value}> is not valid for setting <{title}>"
            logger.warning("%s", error)
            return error

        field = self.codec.require(title).value_field
        command = self.codec.build_set(title, {field.key: value})
        if command is None:
            return f"Unknown setting: <{title}>"

        raw = await self.send_command(command)
        if raw is None:
            return f"No response setting <{title}>"
        return None

    async def clear_setting(self, title: str) -> str | None:
        """
        Clear a setting on the device.

        Returns:
            None on success, or an error message.

        Raises:
            NotASettingError: If the title is not a setting.
        """
        if not self._require_setting(title):
            return f"Unknown setting: <{title}>"

        command = self.codec.build_clear(title)
        if command is None:
            return f"Unknown setting: <{title}>"

        raw = await self.send_command(command)
        if raw is None:
            return f"No response clearing <{title}>"
        return None

    # ===== Devices =====

    async def get_device_count(self, device_type: str, cached: bool = False) -> int | None:
        """
        Query how many devices of a class are enrolled.

        Args:
            device_type: Device class ("Burglar Sensor", ...).
            cached: Ignored.

        Returns:
            The count, or None on error or timeout.
        """
        if self.codec.types.code("Device Type", device_type) is None:
            logger.error("Invalid device type <%s>", device_type)
            return None

        command = self.codec.build_query("Device Count", {"device_type": device_type})
        if command is None:
            return None

        raw = await self.send_command(command)
        if raw is None:
            return None

        message = self._decode(raw)
        if not isinstance(message, Response):
            return None
        return message.value

    async def get_device_status(
        self,
        device_type: str,
        index: int,
        cached: bool = False,
    ) -> DeviceStatus | None:
        """
        Query the status record of one device.

        Args:
            device_type: Device class ("Burglar Sensor", ...).
            index: Position within the class, from 0.
            cached: Ignored.

        Returns:
            DeviceStatus, or None on error or timeout.
        """
        spec = self.codec.status_command(device_type)
        if spec is None:
            logger.error("Invalid device type <%s>", device_type)
            return None
        if index < 0:
            logger.error("Invalid device number <%d>", index)
            return None

        command = self.codec.build_query(spec.title, {"index": index})
        if command is None:
            return None

        raw = await self.send_command(command)
        if raw is None:
            return None

        message = self._decode(raw)
        if not isinstance(message, Response):
            return None

        config = None
        config_text = message.get("config") or ""
        try:
            config = parse_device_config(config_text)
        except ParseError as e:
            logger.warning("Device %s #%d: %s", device_type, index, e)

        return DeviceStatus(
            device_type=device_type,
            index=index,
            specific_type=message.get("type"),
            device_id=message.get("device_id") or "",
            zone=message.get("zone") or "",
            id=message.get("id") or "",
            config=config,
            raw=raw,
        )

    def __repr__(self) -> str:
        return f"Commander(pending={len(self._queue)}, timeout={self._timeout})"
