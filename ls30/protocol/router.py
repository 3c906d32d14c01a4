"""
Line classification and dispatch.

The device writes one message per line, but its serial output is noisy:
lines arrive with garbage in front of them, or with two messages run
together. The FrameRouter classifies each line against the known message
patterns in a fixed priority order:

1. XINPIC=<hex>         extended status
2. (<hex>)              contact-id event
3. !&                   idle prompt (ignored)
4. !...&                enrollment notice, else a command response
5. AT...                modem echo
6. GSM=...              GSM status

A line matching none of these is searched for each pattern preceded by
junk, in the same order. The junk is logged and dropped and the remainder
is routed again. Where a line holds two embedded messages the first pattern
in the list wins and everything before it is junk, so recovery may lose a
message; it never raises.

Example:
    >>> router = FrameRouter(handler=my_handler)
    >>> await router.route("garbage!n0s2&")   # dispatches Operation Mode = Away
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from ls30.exceptions import MalformedFrameError, ParseError
from ls30.protocol.commands import DEFAULT_COMMAND_CODEC, CommandCodec
from ls30.protocol.constants import (
    AT_PATTERN,
    CONTACT_ID_PATTERN,
    ENROLL_TIMEOUT_PATTERN,
    ENROLLED_PATTERN,
    EXTENDED_STATUS_PATTERN,
    GSM_PATTERN,
    RECOVERY_PATTERNS,
    RESPONSE_PATTERN,
    ProtocolConstants,
)
from ls30.protocol.messages import (
    AddedDevice,
    AtLine,
    ContactIdEvent,
    ExtendedStatus,
    GsmLine,
    Message,
    Prompt,
    Response,
    Unparseable,
)

logger = logging.getLogger(__name__)


class MessageHandler(ABC):
    """
    Receiver of routed messages, one method per message kind.

    Response frames, recovered or clean, decoded or Unparseable, all go to
    handle_response(): each one answers exactly one queued command.
    """

    @abstractmethod
    async def handle_response(self, message: Response | Unparseable) -> None:
        """Handle a `!...&` frame that is not an enrollment notice."""
        ...

    @abstractmethod
    async def handle_added_device(self, message: AddedDevice) -> None:
        """Handle an enrollment notice."""
        ...

    @abstractmethod
    async def handle_contact_id(self, message: ContactIdEvent) -> None:
        """Handle a contact-id event."""
        ...

    @abstractmethod
    async def handle_extended_status(self, message: ExtendedStatus) -> None:
        """Handle an XINPIC status line."""
        ...

    @abstractmethod
    async def handle_at(self, message: AtLine) -> None:
        """Handle a modem AT line."""
        ...

    @abstractmethod
    async def handle_gsm(self, message: GsmLine) -> None:
        """Handle a GSM status line."""
        ...


class FrameRouter:
    """
    Classifies lines of device output and dispatches them to a handler.

    Attributes:
        codec: Command codec used to decode response frames.
        handler: Current message handler (may be None).
    """

    def __init__(
        self,
        codec: CommandCodec | None = None,
        handler: MessageHandler | None = None,
    ) -> None:
        """
        Initialize the router.

        Args:
            codec: Command codec (default: the built-in command table).
            handler: Receiver of routed messages.
        """
        self._codec = codec if codec is not None else DEFAULT_COMMAND_CODEC
        self._handler = handler

    @property
    def codec(self) -> CommandCodec:
        """Get the command codec."""
        return self._codec

    @property
    def handler(self) -> MessageHandler | None:
        """Get the message handler."""
        return self._handler

    def set_handler(self, handler: MessageHandler | None) -> None:
        """Replace the message handler."""
        self._handler = handler

    def classify(self, line: str) -> Message | None:
        """
        Classify one complete line without recovery.

        Args:
            line: Line text with the terminator removed.

        Returns:
            The message, or None if the line matches no pattern.

        Raises:
            ParseError: If the codec is strict and a response field is short.
        """
        match = EXTENDED_STATUS_PATTERN.match(line)
        if match:
            return ExtendedStatus(payload=match.group(1))

        match = CONTACT_ID_PATTERN.match(line)
        if match:
            return ContactIdEvent(payload=match.group(1))

        if line == ProtocolConstants.PROMPT:
            return Prompt()

        if RESPONSE_PATTERN.match(line):
            match = ENROLLED_PATTERN.match(line)
            if match:
                code, device_id = match.groups()
                return AddedDevice(
                    device_code=code,
                    device_type=self._codec.types.string("Device Code", code),
                    device_id=device_id,
                    raw=line,
                )

            match = ENROLL_TIMEOUT_PATTERN.match(line)
            if match:
                # The window is at most 60 seconds and may be shorter
                code = match.group(1)
                return AddedDevice(
                    device_code=code,
                    device_type=self._codec.types.string("Device Code", code),
                    device_id=None,
                    raw=line,
                )

            return self._codec.parse(line)

        if AT_PATTERN.match(line):
            return AtLine(text=line)

        if GSM_PATTERN.match(line):
            return GsmLine(text=line)

        return None

    def classify_strict(self, line: str) -> Message:
        """
        Classify one line, raising instead of recovering.

        Raises:
            MalformedFrameError: If the line matches no pattern.
        """
        message = self.classify(line)
        if message is None:
            raise MalformedFrameError(line)
        return message

    async def route(self, line: str) -> Message | None:
        """
        Classify one line, recovering embedded messages, and dispatch it.

        Args:
            line: One line of device output (a trailing CR/LF is stripped).

        Returns:
            The dispatched message, or None if the line was dropped.
        """
        line = line.rstrip("\r\n")

        try:
            message = self.classify(line)
        except ParseError as e:
            logger.warning("Dropping undecodable response: %s", e)
            return None

        if message is None:
            return await self._recover(line)

        await self._dispatch(message)
        return message

    async def _recover(self, line: str) -> Message | None:
        logger.debug("Unrecognised: %s", line)

        for pattern in RECOVERY_PATTERNS:
            match = pattern.match(line)
            if match:
                junk, remainder = match.groups()
                logger.warning("Skipping junk %s", junk)
                return await self.route(remainder)

        logger.warning("Ignoring: %s", line)
        return None

    async def _dispatch(self, message: Message) -> None:
        if isinstance(message, Prompt):
            return

        handler = self._handler
        if handler is None:
            logger.error("Cannot run handler for %s", message.kind.value)
            return

        if isinstance(message, (Response, Unparseable)):
            await handler.handle_response(message)
        elif isinstance(message, AddedDevice):
            await handler.handle_added_device(message)
        elif isinstance(message, ContactIdEvent):
            await handler.handle_contact_id(message)
        elif isinstance(message, ExtendedStatus):
            await handler.handle_extended_status(message)
        elif isinstance(message, AtLine):
            await handler.handle_at(message)
        elif isinstance(message, GsmLine):
            await handler.handle_gsm(message)
