"""Tests for the device session: handshake, register access, PTT."""

import pytest

from conftest import FakeConnection
from aioc_mcp.device import AIOCDevice, SessionState
from aioc_mcp.errors import (
    DeviceMismatch,
    SessionClosed,
    ShortRead,
    ShortWrite,
    TransportError,
)
from aioc_mcp.protocol.commands import Command
from aioc_mcp.protocol.framing import PTTChannel
from aioc_mcp.protocol.registers import Register


def test_open_verifies_magic(connection):
    """Opening reads the MAGIC register before anything else."""
    dev = AIOCDevice.open(connection=connection)
    assert dev.state is SessionState.OPEN
    assert connection.feature_reports[0] == bytes([0, 0, 0, 0, 0, 0, 0, 0])
    assert dev.read_magic() == b"AIOC"


def test_open_wrong_magic_releases_handle():
    connection = FakeConnection({Register.MAGIC: int.from_bytes(b"XXXX", "little")})
    with pytest.raises(DeviceMismatch) as exc:
        AIOCDevice.open(connection=connection)
    assert exc.value.magic == b"XXXX"
    assert not connection.connected
    assert connection.close_calls == 1


def test_bare_instance_is_closed_until_handshake():
    """A session built around an already-open handle still needs open()."""
    connection = FakeConnection({Register.MAGIC: int.from_bytes(b"XXXX", "little")})
    connection.open()
    dev = AIOCDevice(connection)
    assert dev.state is SessionState.CLOSED
    with pytest.raises(SessionClosed):
        dev.read(Register.MAGIC)
    with pytest.raises(SessionClosed):
        dev.write(Register.AUDIO_RX, 1)
    assert connection.feature_reports == []


def test_open_short_magic_read_releases_handle(connection):
    connection.short_response = True
    with pytest.raises(ShortRead):
        AIOCDevice.open(connection=connection)
    assert not connection.connected


def test_open_transport_failure(connection):
    connection.fail_open = True
    with pytest.raises(TransportError):
        AIOCDevice.open(connection=connection)


def test_read_register(connection, device):
    connection.registers[Register.AUDIO_TX] = 0x100
    assert device.read(Register.AUDIO_TX) == 0x100
    assert connection.feature_reports[-1][2] == Register.AUDIO_TX


def test_write_then_read(connection, device):
    device.write(Register.AUDIO_RX, 2)
    assert connection.feature_reports[-1] == bytes([0, 0x01, 0x72, 2, 0, 0, 0, 0])
    assert device.read(Register.AUDIO_RX) == 2


def test_send_command(connection, device):
    device.send_command(Command.STORE)
    assert connection.commands == [Command.STORE]
    assert connection.feature_reports[-1] == bytes([0, 0x80, 0, 0, 0, 0, 0, 0])


def test_set_ptt_state_output_report(connection, device):
    """PTT is driven with an output report, not a feature report."""
    reports_before = len(connection.feature_reports)
    device.set_ptt_state(1, True)
    device.set_ptt_state(PTTChannel.PTT2, False)
    assert connection.output_reports == [
        bytes([0, 0, 0x01, 0x01, 0]),
        bytes([0, 0, 0x00, 0x08, 0]),
    ]
    assert len(connection.feature_reports) == reports_before


def test_set_ptt_state_short_write(connection, device):
    connection.written_override = 3
    with pytest.raises(ShortWrite) as exc:
        device.set_ptt_state(PTTChannel.PTT1, True)
    assert exc.value.written == 3
    assert exc.value.expected == 5


def test_closed_session_refuses_operations(connection, device):
    device.close()
    assert device.state is SessionState.CLOSED
    assert not connection.connected
    with pytest.raises(SessionClosed):
        device.read(Register.MAGIC)
    with pytest.raises(SessionClosed):
        device.write(Register.AUDIO_RX, 0)
    with pytest.raises(SessionClosed):
        device.send_command(Command.REBOOT)
    with pytest.raises(SessionClosed):
        device.set_ptt_state(1, True)


def test_close_twice(connection, device):
    device.close()
    device.close()
    assert connection.close_calls == 1


def test_context_manager(connection):
    with AIOCDevice.open(connection=connection) as dev:
        assert dev.is_open
    assert not dev.is_open
    assert not connection.connected


def test_identity_strings(device):
    assert device.manufacturer == "AIOC"
    assert device.product == "All-In-One-Cable"
    assert device.serial_number == "1234"


def test_dump_registers(connection, device):
    connection.registers[Register.FOXHUNT_CTRL] = 0xDEADBEEF
    dump = device.dump_registers()
    assert len(dump) == 24
    assert dump[0].name == "MAGIC"
    foxhunt = next(r for r in dump if r.name == "FOXHUNT_CTRL")
    assert foxhunt.value == 0xDEADBEEF
    assert foxhunt.to_dict() == {
        "name": "FOXHUNT_CTRL",
        "address": "0xA0",
        "value": "deadbeef",
    }
