"""Tests for connection configuration."""

import pytest
from pydantic import ValidationError

from ls30.config import ConnectionConfig
from ls30.exceptions import ConfigurationError
from ls30.models import ServerAddress


class TestConnectionConfig:
    """Tests for ConnectionConfig model."""

    def test_defaults(self):
        """Test default values."""
        config = ConnectionConfig(server=ServerAddress(host="alarm", port=1681))
        assert config.timeout == 5.0
        assert config.connect_timeout == 10.0
        assert not config.reconnect
        assert config.reconnect_delay == 5.0
        assert config.discard_on_timeout

    def test_server_string(self):
        """Test that the server accepts host:port text."""
        config = ConnectionConfig(server="alarm.local:1681")
        assert config.server.host == "alarm.local"
        assert config.server.port == 1681

    def test_invalid_values(self):
        """Test field validation."""
        with pytest.raises(ValidationError):
            ConnectionConfig(server="alarm.local")
        with pytest.raises(ValidationError):
            ConnectionConfig(server="alarm:1681", timeout=0)
        with pytest.raises(ValidationError):
            ConnectionConfig(server="alarm:1681", reconnect_delay=-1)


class TestFromEnv:
    """Tests for ConnectionConfig.from_env."""

    def test_server_only(self):
        """Test the minimal environment."""
        config = ConnectionConfig.from_env({"LS30_SERVER": "10.0.0.5:1681"})
        assert str(config.server) == "10.0.0.5:1681"
        assert config.timeout == 5.0
        assert not config.reconnect

    def test_all_variables(self):
        """Test every supported variable."""
        config = ConnectionConfig.from_env({
            "LS30_SERVER": "alarm:23",
            "LS30_TIMEOUT": "2.5",
            "LS30_RECONNECT": "yes",
        })
        assert config.timeout == 2.5
        assert config.reconnect

    @pytest.mark.parametrize("word", ["0", "off", "false", "No", ""])
    def test_reconnect_off(self, word):
        """Test words that disable reconnect."""
        config = ConnectionConfig.from_env({"LS30_SERVER": "alarm:23", "LS30_RECONNECT": word})
        assert not config.reconnect

    def test_missing_server(self):
        """Test that the server is required."""
        with pytest.raises(ConfigurationError, match="LS30_SERVER must be set"):
            ConnectionConfig.from_env({})
        with pytest.raises(ConfigurationError):
            ConnectionConfig.from_env({"LS30_SERVER": "   "})

    def test_invalid_server(self):
        """Test a server without a port."""
        with pytest.raises(ConfigurationError, match="Invalid LS30 configuration"):
            ConnectionConfig.from_env({"LS30_SERVER": "alarm"})

    def test_invalid_timeout(self):
        """Test a non-numeric timeout."""
        with pytest.raises(ConfigurationError):
            ConnectionConfig.from_env({"LS30_SERVER": "alarm:23", "LS30_TIMEOUT": "soon"})

    def test_invalid_reconnect(self):
        """Test an unrecognised reconnect word."""
        with pytest.raises(ConfigurationError, match="LS30_RECONNECT"):
            ConnectionConfig.from_env({"LS30_SERVER": "alarm:23", "LS30_RECONNECT": "maybe"})

    def test_reads_os_environ(self, monkeypatch):
        """Test the default environment source."""
        monkeypatch.setenv("LS30_SERVER", "alarm:1681")
        monkeypatch.delenv("LS30_TIMEOUT", raising=False)
        monkeypatch.delenv("LS30_RECONNECT", raising=False)
        assert ConnectionConfig.from_env().server.port == 1681
