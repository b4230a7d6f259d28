"""Frame builder and parser for AIOC HID reports.

Register frame layout (feature report, 8 bytes)::

    +-----------+---------+---------+------------------+---------+
    | Report ID | Command | Address |  Value (LE32)    | Padding |
    | 1 byte    | 1 byte  | 1 byte  |  4 bytes         | 1 byte  |
    +-----------+---------+---------+------------------+---------+

Register response (feature report, 7 bytes)::

    +-----------+---------+---------+------------------+
    | Report ID | Command | Address |  Value (LE32)    |
    +-----------+---------+---------+------------------+

Raw PTT frame (output report, 5 bytes)::

    [0x00, 0x00, io_data, io_mask, 0x00]

- Report ID is always 0
- Only bytes 3..6 of a response carry meaning for the caller
"""

from __future__ import annotations

from enum import IntEnum

from ..errors import ShortRead
from .commands import Command

REPORT_ID = 0x00
REGISTER_FRAME_SIZE = 8
RESPONSE_SIZE = 7
RAW_PTT_FRAME_SIZE = 5
VALUE_OFFSET = 3
MAX_VALUE = 0xFFFFFFFF
MAX_IO_CHANNEL = 8


class PTTChannel(IntEnum):
    """I/O channels wired to the cable's PTT outputs."""

    PTT1 = 3
    PTT2 = 4


def _register_frame(command: int, address: int, value: int) -> bytes:
    if not 0 <= address <= 0xFF:
        raise ValueError(f"Register address must be 0-255, got {address}")
    if not 0 <= value <= MAX_VALUE:
        raise ValueError(f"Register value must fit in 32 bits, got {value}")
    return (
        bytes([REPORT_ID, command, address])
        + value.to_bytes(4, "little")
        + b"\x00"
    )


def encode_read_request(address: int) -> bytes:
    """Build the feature report that selects a register for reading."""
    return _register_frame(Command.NONE, address, 0)


def encode_write_request(address: int, value: int) -> bytes:
    """Build the feature report that writes a 32-bit value to a register.

    Args:
        address: Register address 0-255.
        value: Unsigned 32-bit value.

    Returns:
        An 8-byte frame with the write-strobe command and little-endian value.
    """
    return _register_frame(Command.WRITE_STROBE, address, value)


def encode_command(command: int) -> bytes:
    """Build a bare command frame (defaults, reboot, recall, store)."""
    if not 0 <= command <= 0xFF:
        raise ValueError(f"Command must be 0-255, got {command}")
    return _register_frame(command, 0, 0)


def encode_raw_ptt(channel: int, on: bool) -> bytes:
    """Build the 5-byte output report that drives one PTT I/O line.

    Args:
        channel: I/O channel number, 1-based (channel 1 is bit 0).
        on: Assert (True) or release (False) the line.
    """
    if not 1 <= channel <= MAX_IO_CHANNEL:
        raise ValueError(
            f"PTT channel must be 1-{MAX_IO_CHANNEL}, got {channel}"
        )
    io_mask = 1 << (channel - 1)
    io_data = (1 if on else 0) << (channel - 1)
    return bytes([REPORT_ID, 0x00, io_data, io_mask, 0x00])


def decode_read_response(data: bytes) -> int:
    """Extract the register value from a feature report response.

    Raises:
        ShortRead: If fewer than 7 bytes were received.
    """
    if len(data) < RESPONSE_SIZE:
        raise ShortRead(len(data), RESPONSE_SIZE)
    return int.from_bytes(data[VALUE_OFFSET:RESPONSE_SIZE], "little")
