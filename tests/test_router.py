"""Tests for line classification and routing."""

import logging

import pytest

from ls30.exceptions import MalformedFrameError
from ls30.protocol.commands import create_default_codec
from ls30.protocol.messages import (
    AddedDevice,
    AtLine,
    ContactIdEvent,
    ExtendedStatus,
    GsmLine,
    Prompt,
    Response,
    Unparseable,
)
from ls30.protocol.router import FrameRouter, MessageHandler


class RecordingHandler(MessageHandler):
    """Handler that records every message it receives."""

    def __init__(self):
        self.received = []

    async def handle_response(self, message):
        self.received.append(("response", message))

    async def handle_added_device(self, message):
        self.received.append(("added_device", message))

    async def handle_contact_id(self, message):
        self.received.append(("contact_id", message))

    async def handle_extended_status(self, message):
        self.received.append(("extended_status", message))

    async def handle_at(self, message):
        self.received.append(("at", message))

    async def handle_gsm(self, message):
        self.received.append(("gsm", message))


class TestClassify:
    """Tests for FrameRouter.classify."""

    @pytest.fixture
    def router(self):
        """Create a router without a handler."""
        return FrameRouter()

    def test_extended_status(self, router):
        """Test XINPIC lines."""
        message = router.classify("XINPIC=0a1b")
        assert isinstance(message, ExtendedStatus)
        assert message.payload == "0a1b"

    def test_contact_id(self, router):
        """Test contact-id lines."""
        message = router.classify("(18113001001f)")
        assert isinstance(message, ContactIdEvent)
        assert message.payload == "18113001001f"

    def test_prompt(self, router):
        """Test the idle prompt."""
        assert isinstance(router.classify("!&"), Prompt)

    def test_enrolled(self, router):
        """Test a successful enrollment notice."""
        message = router.classify("!ibl0123456789abcd&")
        assert isinstance(message, AddedDevice)
        assert message.device_code == "b"
        assert message.device_type == "Burglar Sensor"
        assert message.device_id == "0123456789abcd"
        assert not message.timed_out

    def test_enroll_timeout(self, router):
        """Test an expired enrollment window."""
        message = router.classify("!iflno&")
        assert isinstance(message, AddedDevice)
        assert message.device_type == "Fire Sensor"
        assert message.device_id is None
        assert message.timed_out

    def test_response(self, router):
        """Test a command response."""
        message = router.classify("!n0s2&")
        assert isinstance(message, Response)
        assert message.value == "Away"

    def test_unparseable_response(self, router):
        """Test a frame with an unknown key."""
        assert isinstance(router.classify("!zz1&"), Unparseable)

    def test_at_and_gsm(self, router):
        """Test modem chatter."""
        assert isinstance(router.classify("AT+CSQ"), AtLine)
        assert isinstance(router.classify("GSM=ready"), GsmLine)

    def test_unknown(self, router):
        """Test that other lines are not classified."""
        assert router.classify("hello") is None
        assert router.classify("") is None

    def test_classify_strict(self, router):
        """Test the raising variant."""
        with pytest.raises(MalformedFrameError) as exc_info:
            router.classify_strict("hello")
        assert exc_info.value.line == "hello"


class TestRoute:
    """Tests for FrameRouter.route."""

    @pytest.fixture
    def handler(self):
        """Create a recording handler."""
        return RecordingHandler()

    @pytest.fixture
    def router(self, handler):
        """Create a router with a recording handler."""
        return FrameRouter(handler=handler)

    @pytest.mark.asyncio
    async def test_dispatch_by_kind(self, router, handler):
        """Test each kind reaches its handler method."""
        for line in ("XINPIC=01", "(0123)", "!n0s2&", "!iblno&", "ATZ", "GSM=1"):
            await router.route(line)

        kinds = [kind for kind, _ in handler.received]
        assert kinds == [
            "extended_status",
            "contact_id",
            "response",
            "added_device",
            "at",
            "gsm",
        ]

    @pytest.mark.asyncio
    async def test_strips_line_ending(self, router, handler):
        """Test CR/LF removal."""
        message = await router.route("!n0s2&\r\n")
        assert isinstance(message, Response)
        assert handler.received[0][1].raw == "!n0s2&"

    @pytest.mark.asyncio
    async def test_prompt_ignored(self, router, handler):
        """Test that the prompt reaches no handler."""
        message = await router.route("!&")
        assert isinstance(message, Prompt)
        assert handler.received == []

    @pytest.mark.asyncio
    async def test_recovers_response(self, router, handler, caplog):
        """Test junk in front of a response."""
        with caplog.at_level(logging.WARNING):
            message = await router.route("garbage!n0s2&")
        assert isinstance(message, Response)
        assert message.value == "Away"
        assert "Skipping junk garbage" in caplog.text

    @pytest.mark.asyncio
    async def test_recovers_contact_id(self, router, handler):
        """Test junk in front of a contact-id event."""
        message = await router.route("xx(18113001001f)")
        assert isinstance(message, ContactIdEvent)
        assert handler.received[0][0] == "contact_id"

    @pytest.mark.asyncio
    async def test_recovery_prefers_earlier_pattern(self, router, handler):
        """Test that an embedded XINPIC wins over an embedded response."""
        message = await router.route("junk!n0s2&XINPIC=0f")
        assert isinstance(message, ExtendedStatus)
        assert message.payload == "0f"

    @pytest.mark.asyncio
    async def test_ignores_noise(self, router, handler, caplog):
        """Test that unrecoverable lines are dropped."""
        with caplog.at_level(logging.WARNING):
            assert await router.route("hello world") is None
        assert handler.received == []
        assert "Ignoring: hello world" in caplog.text

    @pytest.mark.asyncio
    async def test_strict_parse_error_dropped(self, handler, caplog):
        """Test that a strict decode failure drops the line."""
        router = FrameRouter(codec=create_default_codec(strict=True), handler=handler)
        with caplog.at_level(logging.WARNING):
            assert await router.route("!l02&") is None
        assert handler.received == []
        assert "Dropping undecodable response" in caplog.text

    @pytest.mark.asyncio
    async def test_no_handler(self, caplog):
        """Test routing without a handler logs an error."""
        router = FrameRouter()
        with caplog.at_level(logging.ERROR):
            message = await router.route("!n0s2&")
        assert isinstance(message, Response)
        assert "Cannot run handler for response" in caplog.text

    @pytest.mark.asyncio
    async def test_set_handler(self, handler):
        """Test replacing the handler."""
        router = FrameRouter()
        router.set_handler(handler)
        await router.route("GSM=ok")
        assert router.handler is handler
        assert handler.received[0][0] == "gsm"
