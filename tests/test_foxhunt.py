"""Tests for foxhunt control and message packing."""

import pytest

from aioc_mcp.errors import InvalidFormat
from aioc_mcp.protocol.foxhunt import (
    FoxhuntControl,
    decode_message,
    encode_message,
    pack_control,
    unpack_control,
)


def test_pack_control_layout():
    assert pack_control(0x1234, 0x56, 0x78) == 0x12345678


def test_unpack_control():
    assert unpack_control(0xFFFF140A) == FoxhuntControl(volume=65535, wpm=20, interval=10)


@pytest.mark.parametrize(
    "volume, wpm, interval",
    [(0, 0, 0), (65535, 255, 255), (32768, 15, 60), (1, 2, 3)],
)
def test_control_roundtrip(volume, wpm, interval):
    control = unpack_control(pack_control(volume, wpm, interval))
    assert (control.volume, control.wpm, control.interval) == (volume, wpm, interval)


@pytest.mark.parametrize(
    "volume, wpm, interval",
    [(65536, 0, 0), (0, 256, 0), (0, 0, 256), (-1, 0, 0)],
)
def test_pack_control_out_of_range(volume, wpm, interval):
    """Out-of-range fields are refused rather than masked."""
    with pytest.raises(ValueError):
        pack_control(volume, wpm, interval)


def test_control_to_dict():
    d = unpack_control(pack_control(100, 20, 0)).to_dict()
    assert d == {"volume": 100, "wpm": 20, "interval": 0, "enabled": False}


def test_encode_message_little_endian_groups():
    words = encode_message("ABCDEFGH")
    assert words == (0x44434241, 0x48474645, 0, 0)


def test_encode_message_truncates():
    words = encode_message("0123456789ABCDEFXYZ")
    assert decode_message(words) == "0123456789ABCDEF"


@pytest.mark.parametrize("text", ["", "N0CALL", "N0CALL FOX", "0123456789ABCDEF"])
def test_message_roundtrip(text):
    assert decode_message(encode_message(text)) == text


def test_decode_message_stops_at_null():
    words = [0x44434241, 0x00004645, 0x5A5A5A5A, 0x5A5A5A5A]
    assert decode_message(words) == "ABCDEF"


def test_decode_message_wrong_count():
    with pytest.raises(ValueError):
        decode_message([0, 0, 0])


def test_encode_message_non_ascii():
    with pytest.raises(InvalidFormat):
        encode_message("café")
