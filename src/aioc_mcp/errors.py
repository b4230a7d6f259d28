"""Exception types raised by the AIOC protocol, session, and input parsers.

Every error carries an :class:`ErrorKind` so callers (the CLI, the MCP
tools) can branch on the failure without string matching.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of failure kinds."""

    TRANSPORT = "transport"
    DEVICE_MISMATCH = "device_mismatch"
    SHORT_READ = "short_read"
    SHORT_WRITE = "short_write"
    UNKNOWN_FLAG = "unknown_flag"
    INVALID_FORMAT = "invalid_format"
    SESSION_CLOSED = "session_closed"


class AIOCError(Exception):
    """Base class for all AIOC errors."""

    kind: ErrorKind = ErrorKind.TRANSPORT


class TransportError(AIOCError):
    """The HID transport failed to open, read, or write."""

    kind = ErrorKind.TRANSPORT


class DeviceMismatch(AIOCError):
    """The MAGIC register did not identify an AIOC."""

    kind = ErrorKind.DEVICE_MISMATCH

    def __init__(self, magic: bytes) -> None:
        self.magic = magic
        super().__init__(f"Unexpected magic: {magic!r}")


class ShortRead(AIOCError):
    """A register response was shorter than the protocol requires."""

    kind = ErrorKind.SHORT_READ

    def __init__(self, got: int, expected: int) -> None:
        self.got = got
        self.expected = expected
        super().__init__(f"Short read: got {got} bytes, expected {expected}")


class ShortWrite(AIOCError):
    """The transport accepted fewer bytes than the frame length."""

    kind = ErrorKind.SHORT_WRITE

    def __init__(self, written: int, expected: int) -> None:
        self.written = written
        self.expected = expected
        super().__init__(
            f"Incomplete write: wrote {written} bytes, expected {expected}"
        )


class UnknownFlag(AIOCError):
    """A flag name is not part of the vocabulary being parsed."""

    kind = ErrorKind.UNKNOWN_FLAG

    def __init__(self, token: str, vocabulary: str = "flag") -> None:
        self.token = token
        self.vocabulary = vocabulary
        super().__init__(f"Unknown {vocabulary}: {token}")


class InvalidFormat(AIOCError):
    """Malformed numeric, VID/PID, or enumeration input."""

    kind = ErrorKind.INVALID_FORMAT


class SessionClosed(AIOCError):
    """A register operation was attempted on a closed session."""

    kind = ErrorKind.SESSION_CLOSED

    def __init__(self) -> None:
        super().__init__("Device session is not open")
