"""Tests for register and raw PTT frame building and response decoding."""

import pytest

from aioc_mcp.errors import ShortRead
from aioc_mcp.protocol.commands import Command
from aioc_mcp.protocol.framing import (
    REGISTER_FRAME_SIZE,
    RAW_PTT_FRAME_SIZE,
    PTTChannel,
    decode_read_response,
    encode_command,
    encode_raw_ptt,
    encode_read_request,
    encode_write_request,
)


def test_read_request_layout():
    """A read request carries the NONE command and the address."""
    frame = encode_read_request(0x72)
    assert frame == bytes([0x00, 0x00, 0x72, 0x00, 0x00, 0x00, 0x00, 0x00])


def test_write_request_audio_rx():
    """Writing 2 to AUDIO_RX: write strobe, address, little-endian value."""
    frame = encode_write_request(0x72, 0x00000002)
    assert frame == bytes([0x00, 0x01, 0x72, 0x02, 0x00, 0x00, 0x00, 0x00])


def test_write_request_little_endian():
    """Value bytes are little-endian at offsets 3-6."""
    frame = encode_write_request(0xA0, 0x12345678)
    assert frame[3:7] == bytes([0x78, 0x56, 0x34, 0x12])
    assert frame[7] == 0x00


@pytest.mark.parametrize("address", [0x00, 0x24, 0xA5, 0xFF])
def test_register_frames_are_eight_bytes(address):
    """Every register frame is exactly 8 bytes."""
    assert len(encode_read_request(address)) == REGISTER_FRAME_SIZE
    assert len(encode_write_request(address, 0xFFFFFFFF)) == REGISTER_FRAME_SIZE


def test_write_request_rejects_out_of_range_value():
    """Values that do not fit 32 bits are refused, not masked."""
    with pytest.raises(ValueError):
        encode_write_request(0x72, 0x1_0000_0000)
    with pytest.raises(ValueError):
        encode_write_request(0x72, -1)


def test_request_rejects_bad_address():
    with pytest.raises(ValueError):
        encode_read_request(0x100)


def test_command_frame():
    """Bare commands put the opcode in byte 1 and zero everything else."""
    assert encode_command(Command.STORE) == bytes([0, 0x80, 0, 0, 0, 0, 0, 0])
    assert encode_command(Command.REBOOT) == bytes([0, 0x20, 0, 0, 0, 0, 0, 0])
    assert encode_command(Command.DEFAULTS)[1] == 0x10
    assert encode_command(Command.RECALL)[1] == 0x40


def test_raw_ptt_channel_1_on():
    assert encode_raw_ptt(1, True) == bytes([0, 0, 0x01, 0x01, 0])


def test_raw_ptt_channel_2_off():
    assert encode_raw_ptt(2, False) == bytes([0, 0, 0x00, 0x02, 0])


def test_raw_ptt_cable_channels():
    """PTT1 and PTT2 of the cable sit on I/O channels 3 and 4."""
    assert encode_raw_ptt(PTTChannel.PTT1, True) == bytes([0, 0, 0x04, 0x04, 0])
    assert encode_raw_ptt(PTTChannel.PTT2, False) == bytes([0, 0, 0x00, 0x08, 0])
    assert len(encode_raw_ptt(PTTChannel.PTT2, True)) == RAW_PTT_FRAME_SIZE


def test_raw_ptt_rejects_bad_channel():
    with pytest.raises(ValueError):
        encode_raw_ptt(0, True)
    with pytest.raises(ValueError):
        encode_raw_ptt(9, True)


@pytest.mark.parametrize("value", [0, 1, 0x7FFFFFFF, 0x80000000, 0xFFFFFFFF])
def test_decode_response_value(value):
    """Bytes 3-6 decode as unsigned little-endian, no sign extension."""
    response = bytes([0, 0, 0x72]) + value.to_bytes(4, "little")
    assert decode_read_response(response) == value


def test_decode_response_ignores_header_bytes():
    response = bytes([0xAA, 0xBB, 0xCC, 0x01, 0x00, 0x00, 0x00])
    assert decode_read_response(response) == 1


def test_decode_short_response():
    """Fewer than 7 bytes is a short read."""
    with pytest.raises(ShortRead) as exc:
        decode_read_response(bytes(6))
    assert exc.value.got == 6
    assert exc.value.expected == 7
