"""Tests for the caching AlarmModel."""

import logging

import pytest

from ls30.model import AlarmModel, SettingsSource
from ls30.models import DeviceStatus
from ls30.protocol.messages import ContactIdEvent


class FakeSource(SettingsSource):
    """In-memory upstream that counts calls."""

    def __init__(self):
        self.settings = {"Operation Mode": "Away"}
        self.counts = {"Burglar Sensor": 2}
        self.calls = []
        self.set_error = None
        self.listeners = []

    async def get_setting(self, title, cached=False):
        self.calls.append(("get", title))
        return self.settings.get(title)

    async def set_setting(self, title, value):
        self.calls.append(("set", title, value))
        if self.set_error is None:
            self.settings[title] = value
        return self.set_error

    async def clear_setting(self, title):
        self.calls.append(("clear", title))
        self.settings.pop(title, None)
        return None

    async def get_device_count(self, device_type, cached=False):
        self.calls.append(("count", device_type))
        return self.counts.get(device_type, 0)

    async def get_device_status(self, device_type, index, cached=False):
        self.calls.append(("status", device_type, index))
        return DeviceStatus(device_type=device_type, index=index, specific_type="PIR")

    def add_listener(self, listener):
        self.listeners.append(listener)


class TestAlarmModelSettings:
    """Tests for AlarmModel setting operations."""

    @pytest.fixture
    def upstream(self):
        """Create a fake upstream."""
        return FakeSource()

    @pytest.fixture
    def model(self, upstream):
        """Create a model over the fake upstream."""
        return AlarmModel(upstream=upstream)

    @pytest.mark.asyncio
    async def test_get_fetches_and_caches(self, model, upstream):
        """Test that a fetched value is cached."""
        assert await model.get_setting("Operation Mode") == "Away"
        assert model.settings == {"Operation Mode": "Away"}
        assert upstream.calls == [("get", "Operation Mode")]

    @pytest.mark.asyncio
    async def test_cached_get(self, model, upstream):
        """Test that a cached read skips upstream."""
        await model.get_setting("Operation Mode")
        assert await model.get_setting("Operation Mode", cached=True) == "Away"
        assert len(upstream.calls) == 1

    @pytest.mark.asyncio
    async def test_uncached_get_refreshes(self, model, upstream):
        """Test that a plain read always asks upstream."""
        await model.get_setting("Operation Mode")
        upstream.settings["Operation Mode"] = "Home"
        assert await model.get_setting("Operation Mode") == "Home"
        assert len(upstream.calls) == 2

    @pytest.mark.asyncio
    async def test_get_not_a_setting(self, model, upstream, caplog):
        """Test reading a title that is not a setting."""
        with caplog.at_level(logging.ERROR):
            assert await model.get_setting("ROM Version") is None
        assert upstream.calls == []
        assert "Is not a setting: <ROM Version>" in caplog.text

    @pytest.mark.asyncio
    async def test_set_upstream_first(self, model, upstream):
        """Test that a successful set updates the cache."""
        assert await model.set_setting("Operation Mode", "Home") is None
        assert upstream.settings["Operation Mode"] == "Home"
        assert model.settings["Operation Mode"] == "Home"

    @pytest.mark.asyncio
    async def test_set_failure_leaves_cache(self, model, upstream):
        """Test that a failed set does not update the cache."""
        upstream.set_error = "No response setting <Operation Mode>"
        assert await model.set_setting("Operation Mode", "Home") == upstream.set_error
        assert "Operation Mode" not in model.settings

    @pytest.mark.asyncio
    async def test_set_errors(self, model, upstream):
        """Test validation errors."""
        assert await model.set_setting("ROM Version", 1) == "Is not a setting: <ROM Version>"
        assert (
            await model.set_setting("Operation Mode", "Sleep")
            == "Value <Sleep> is not valid for setting <Operation Mode>"
        )
        assert upstream.calls == []

    @pytest.mark.asyncio
    async def test_clear(self, model, upstream):
        """Test clearing a setting."""
        await model.get_setting("Operation Mode")
        assert await model.clear_setting("Operation Mode") is None
        assert "Operation Mode" not in model.settings
        assert upstream.calls[-1] == ("clear", "Operation Mode")

    @pytest.mark.asyncio
    async def test_without_upstream(self):
        """Test the model as a plain store."""
        model = AlarmModel()
        assert await model.get_setting("Exit Delay") is None
        assert await model.set_setting("Exit Delay", 30) is None
        assert await model.get_setting("Exit Delay", cached=True) == 30
        assert await model.clear_setting("Exit Delay") is None
        assert await model.get_setting("Exit Delay") is None


class TestAlarmModelDevices:
    """Tests for AlarmModel device operations."""

    @pytest.fixture
    def upstream(self):
        """Create a fake upstream."""
        return FakeSource()

    @pytest.fixture
    def model(self, upstream):
        """Create a model over the fake upstream."""
        return AlarmModel(upstream=upstream)

    @pytest.mark.asyncio
    async def test_device_count(self, model, upstream):
        """Test fetching and caching a count."""
        assert await model.get_device_count("Burglar Sensor") == 2
        assert await model.get_device_count("Burglar Sensor", cached=True) == 2
        assert upstream.calls == [("count", "Burglar Sensor")]

    @pytest.mark.asyncio
    async def test_device_count_invalid(self, model, upstream):
        """Test an unknown device class."""
        assert await model.get_device_count("Toaster") is None
        assert upstream.calls == []

    @pytest.mark.asyncio
    async def test_device_count_without_upstream(self):
        """Test that counts default to zero."""
        assert await AlarmModel().get_device_count("Fire Sensor") == 0

    @pytest.mark.asyncio
    async def test_device_status(self, model, upstream):
        """Test that index 0 refreshes the count and later indexes reuse it."""
        first = await model.get_device_status("Burglar Sensor", 0)
        second = await model.get_device_status("Burglar Sensor", 1)

        assert first.index == 0
        assert second.specific_type == "PIR"
        assert upstream.calls == [
            ("count", "Burglar Sensor"),
            ("status", "Burglar Sensor", 0),
            ("status", "Burglar Sensor", 1),
        ]

    @pytest.mark.asyncio
    async def test_device_status_cached(self, model, upstream):
        """Test a cached record."""
        await model.get_device_status("Burglar Sensor", 1)
        calls = len(upstream.calls)
        assert (await model.get_device_status("Burglar Sensor", 1, cached=True)).index == 1
        assert len(upstream.calls) == calls

    @pytest.mark.asyncio
    async def test_device_status_beyond_count(self, model, upstream, caplog):
        """Test an index past the last device."""
        with caplog.at_level(logging.ERROR):
            assert await model.get_device_status("Burglar Sensor", 2) is None
        assert ("status", "Burglar Sensor", 2) not in upstream.calls
        assert "beyond end" in caplog.text

    @pytest.mark.asyncio
    async def test_device_status_invalid(self, model):
        """Test invalid class and index."""
        assert await model.get_device_status("Toaster", 0) is None
        assert await model.get_device_status("Burglar Sensor", -1) is None

    @pytest.mark.asyncio
    async def test_store_device(self):
        """Test caching a record without upstream."""
        model = AlarmModel()
        model.store_device(DeviceStatus(device_type="Fire Sensor", index=1))

        assert await model.get_device_count("Fire Sensor", cached=True) == 2
        device = await model.get_device_status("Fire Sensor", 1, cached=True)
        assert device.index == 1

    @pytest.mark.asyncio
    async def test_load_devices(self, model, upstream):
        """Test loading every device class."""
        devices = await model.load_devices()

        assert [d.index for d in devices["Burglar Sensor"]] == [0, 1]
        assert devices["Fire Sensor"] == []
        assert set(devices) == {
            "Burglar Sensor",
            "Controller",
            "Fire Sensor",
            "Medical Button",
            "Special Sensor",
        }


class TestAlarmModelEvents:
    """Tests for event forwarding."""

    @pytest.mark.asyncio
    async def test_forwards_upstream_events(self):
        """Test that upstream messages reach model listeners."""
        upstream = FakeSource()
        model = AlarmModel(upstream=upstream)
        seen = []
        model.add_listener(seen.append)

        event = ContactIdEvent(payload="18113001001f")
        for listener in upstream.listeners:
            await listener(event)

        assert seen == [event]
