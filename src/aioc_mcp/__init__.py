"""Configuration tools for the AIOC USB audio/PTT interface."""

from .device import AIOCDevice, RegisterValue, SessionState
from .errors import (
    AIOCError,
    DeviceMismatch,
    ErrorKind,
    InvalidFormat,
    SessionClosed,
    ShortRead,
    ShortWrite,
    TransportError,
    UnknownFlag,
)

__version__ = "0.1.0"
