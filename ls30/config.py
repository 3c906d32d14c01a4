"""
Connection configuration.

A ConnectionConfig holds everything needed to reach the device. It can be
built directly or from the environment:

    LS30_SERVER      host:port of the device (required)
    LS30_TIMEOUT     response timeout in seconds (default 5)
    LS30_RECONNECT   reconnect after failure or disconnect (default off)

Example:
    >>> config = ConnectionConfig.from_env()
    >>> connection = Connection.from_config(config)
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import Final

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ls30.exceptions import ConfigurationError
from ls30.models.records import ServerAddress
from ls30.protocol.constants import ProtocolConstants

logger = logging.getLogger(__name__)

ENV_SERVER: Final[str] = "LS30_SERVER"
ENV_TIMEOUT: Final[str] = "LS30_TIMEOUT"
ENV_RECONNECT: Final[str] = "LS30_RECONNECT"

_TRUE_WORDS: Final[frozenset[str]] = frozenset({"1", "true", "yes", "on"})
_FALSE_WORDS: Final[frozenset[str]] = frozenset({"", "0", "false", "no", "off"})


class ConnectionConfig(BaseModel):
    """
    Settings for a connection to the device.

    Attributes:
        server: Device address.
        timeout: Seconds to wait for a command response.
        connect_timeout: Seconds to wait for the TCP connection.
        reconnect: Reconnect automatically after a failure or disconnect.
        reconnect_delay: Seconds to wait before each reconnect attempt.
        discard_on_timeout: Remove a timed-out command from the queue so it
            cannot claim a later response.
    """

    model_config = ConfigDict(frozen=True)

    server: ServerAddress
    timeout: float = Field(default=ProtocolConstants.DEFAULT_TIMEOUT, gt=0)
    connect_timeout: float = Field(default=ProtocolConstants.CONNECT_TIMEOUT, gt=0)
    reconnect: bool = False
    reconnect_delay: float = Field(default=ProtocolConstants.RECONNECT_DELAY, ge=0)
    discard_on_timeout: bool = True

    @field_validator("server", mode="before")
    @classmethod
    def parse_server(cls, v: object) -> object:
        """Accept "host:port" strings for the server address."""
        if isinstance(v, str):
            return ServerAddress.parse(v)
        return v

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ConnectionConfig:
        """
        Build a configuration from environment variables.

        Args:
            environ: Mapping to read instead of os.environ.

        Returns:
            Validated configuration.

        Raises:
            ConfigurationError: If LS30_SERVER is unset or a value is invalid.
        """
        env = os.environ if environ is None else environ

        server = env.get(ENV_SERVER, "").strip()
        if not server:
            raise ConfigurationError(
                f"Environment {ENV_SERVER} must be set to host:port of LS30 server"
            )

        values: dict[str, object] = {"server": server}

        timeout = env.get(ENV_TIMEOUT, "").strip()
        if timeout:
            values["timeout"] = timeout

        reconnect = env.get(ENV_RECONNECT, "").strip().lower()
        if reconnect in _TRUE_WORDS:
            values["reconnect"] = True
        elif reconnect not in _FALSE_WORDS:
            raise ConfigurationError(f"Invalid {ENV_RECONNECT} value: {reconnect!r}")

        try:
            config = cls.model_validate(values)
        except (ValidationError, ValueError) as e:
            raise ConfigurationError(f"Invalid LS30 configuration: {e}") from e

        logger.debug("Loaded configuration for %s", config.server)
        return config
