"""Foxhunt beacon control and message packing.

``FOXHUNT_CTRL`` layout::

    31            16 15      8 7       0
    +---------------+---------+---------+
    |    volume     |   wpm   | interval|
    +---------------+---------+---------+

The beacon message is 16 ASCII bytes, null padded, spread little-endian
across ``FOXHUNT_MSG0`` .. ``FOXHUNT_MSG3``.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import InvalidFormat

MAX_VOLUME = 0xFFFF
MAX_WPM = 0xFF
MAX_INTERVAL = 0xFF
MESSAGE_SIZE = 16
MESSAGE_WORDS = 4


@dataclass(frozen=True)
class FoxhuntControl:
    """Unpacked FOXHUNT_CTRL register."""

    volume: int = 0
    wpm: int = 0
    interval: int = 0

    def to_dict(self) -> dict:
        return {
            "volume": self.volume,
            "wpm": self.wpm,
            "interval": self.interval,
            "enabled": self.interval != 0,
        }


def check_control(volume: int, wpm: int, interval: int) -> None:
    """Validate foxhunt control fields.

    Raises:
        ValueError: If a field is out of range.
    """
    if not 0 <= volume <= MAX_VOLUME:
        raise ValueError(f"Foxhunt volume must be 0-{MAX_VOLUME}, got {volume}")
    if not 0 <= wpm <= MAX_WPM:
        raise ValueError(f"Foxhunt WPM must be 0-{MAX_WPM}, got {wpm}")
    if not 0 <= interval <= MAX_INTERVAL:
        raise ValueError(
            f"Foxhunt interval must be 0-{MAX_INTERVAL}, got {interval}"
        )


def pack_control(volume: int, wpm: int, interval: int) -> int:
    """Pack volume, words per minute, and interval into FOXHUNT_CTRL."""
    check_control(volume, wpm, interval)
    return (volume << 16) | (wpm << 8) | interval


def unpack_control(value: int) -> FoxhuntControl:
    return FoxhuntControl(
        volume=(value >> 16) & 0xFFFF,
        wpm=(value >> 8) & 0xFF,
        interval=value & 0xFF,
    )


def message_bytes(text: str) -> bytes:
    """Encode a message as the 16-byte register image.

    Raises:
        InvalidFormat: If the text is not ASCII.
    """
    try:
        raw = text.encode("ascii")
    except UnicodeEncodeError:
        raise InvalidFormat(f"Foxhunt message must be ASCII: {text!r}") from None
    return raw[:MESSAGE_SIZE].ljust(MESSAGE_SIZE, b"\x00")


def encode_message(text: str) -> tuple[int, int, int, int]:
    """Split a message into the four FOXHUNT_MSG register values."""
    raw = message_bytes(text)
    return tuple(
        int.from_bytes(raw[i : i + 4], "little")
        for i in range(0, MESSAGE_SIZE, 4)
    )


def decode_message(words) -> str:
    """Rebuild the message from the four FOXHUNT_MSG register values.

    The message ends at the first null byte; a message using all 16 bytes
    has none.
    """
    words = list(words)
    if len(words) != MESSAGE_WORDS:
        raise ValueError(f"Expected {MESSAGE_WORDS} register values, got {len(words)}")
    raw = b"".join((w & 0xFFFFFFFF).to_bytes(4, "little") for w in words)
    return raw.split(b"\x00")[0].decode("ascii", errors="replace")
