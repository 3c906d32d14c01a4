"""
Exception hierarchy for ls30.

All exceptions inherit from LS30Error, providing a clean hierarchy
for error handling. The design follows these principles:

1. Protocol errors (unknown commands, malformed frames) are distinct from
   connection errors
2. Lookup errors carry the table, title or key that failed
3. Parse errors include context about what was being parsed
4. Most encode/decode mismatches are logged rather than raised; only the
   conditions below ever reach the caller
"""

from __future__ import annotations


class LS30Error(Exception):
    """
    Base exception for all ls30 errors.

    All library-specific exceptions inherit from this class, allowing
    callers to catch all ls30 errors with a single except clause.
    """

    pass


class ProtocolError(LS30Error):
    """
    Protocol-level error.

    Raised when the wire protocol is violated, such as:
    - A command title or key that is not registered
    - A line that matches no known frame pattern
    - A field that cannot be decoded in strict mode
    """

    pass


class UnknownTableError(LS30Error, KeyError):
    """
    A type table name is not registered.

    This is the one lookup failure that always aborts the calling operation,
    since it indicates a broken command table rather than bad device input.
    """

    def __init__(self, table: str) -> None:
        super().__init__(table)
        self.table = table

    def __str__(self) -> str:
        return f"No such type table: {self.table!r}"


class UnknownCommandError(ProtocolError):
    """
    Command title or wire key is not registered.

    Attributes:
        title: The unknown title, if the lookup was by title.
        key: The unknown wire key, if the lookup was by key.
    """

    def __init__(
        self,
        message: str = "Unknown command",
        *,
        title: str | None = None,
        key: str | None = None,
    ) -> None:
        super().__init__(message)
        self.title = title
        self.key = key

    def __str__(self) -> str:
        base = super().__str__()
        if self.title is not None:
            return f"{base} (title={self.title!r})"
        if self.key is not None:
            return f"{base} (key={self.key!r})"
        return base


class NotASettingError(LS30Error):
    """
    Command exists but has no set layout.

    Raised by the setting operations when the title names a status query
    or a push record rather than a readable/writable setting.
    """

    def __init__(self, title: str) -> None:
        super().__init__(f"Is not a setting: <{title}>")
        self.title = title


class InvalidValueError(LS30Error, ValueError):
    """
    A value has no wire code in its type table, or cannot be encoded.

    Attributes:
        table: Type table or codec name the value was checked against.
        value: The rejected value.
    """

    def __init__(self, value: object, *, table: str | None = None) -> None:
        self.table = table
        self.value = value
        if table:
            message = f"Value <{value}> is not valid for {table}"
        else:
            message = f"Value <{value}> is not valid"
        super().__init__(message)


class MalformedFrameError(ProtocolError):
    """
    A line matched no frame pattern, even after recovery.

    The router logs and drops such lines; this exception is only raised by
    callers that ask for strict classification.
    """

    def __init__(self, line: str) -> None:
        super().__init__(f"Unrecognised line: {line!r}")
        self.line = line


class ParseError(ProtocolError):
    """
    Record parsing error.

    Raised when strict decoding is enabled and a response field is shorter
    than its declared length.
    """

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        offset: int | None = None,
        raw_data: str | None = None,
    ) -> None:
        super().__init__(message)
        self.field = field
        self.offset = offset
        self.raw_data = raw_data

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.field:
            parts.append(f"field={self.field}")
        if self.offset is not None:
            parts.append(f"offset={self.offset}")
        if self.raw_data:
            # Truncate raw data for display
            display_data = self.raw_data[:40] + "..." if len(self.raw_data) > 40 else self.raw_data
            parts.append(f"data={display_data}")
        return " ".join(parts) if len(parts) > 1 else parts[0]


class TimeoutError(LS30Error):  # noqa: A001 - intentionally shadows builtin
    """
    Communication timeout.

    Raised by transports when a line is not received within the expected
    time. The command layer reports response timeouts as an absent value.
    """

    def __init__(
        self,
        message: str = "Communication timeout",
        *,
        timeout_seconds: float | None = None,
    ) -> None:
        super().__init__(message)
        self.timeout_seconds = timeout_seconds

    def __str__(self) -> str:
        base = super().__str__()
        if self.timeout_seconds is not None:
            return f"{base} (after {self.timeout_seconds:.1f}s)"
        return base


class ConnectionError(LS30Error):  # noqa: A001 - intentionally shadows builtin
    """
    Device connection error.

    Raised when:
    - A command is sent while not connected
    - The connection is unexpectedly lost
    """

    pass


class TransportError(LS30Error):
    """
    Transport-level error.

    Raised for low-level transport issues:
    - Socket errors
    - I/O errors
    - Peer closed the stream
    """

    pass


class ConfigurationError(LS30Error):
    """
    Invalid or missing configuration.

    Raised when the server address cannot be determined or a configured
    value fails validation.
    """

    pass
