"""Shared fixtures: an in-memory AIOC that answers register frames."""

from __future__ import annotations

import pytest

from aioc_mcp.device import AIOCDevice
from aioc_mcp.errors import TransportError
from aioc_mcp.protocol.commands import Command
from aioc_mcp.protocol.registers import Register
from aioc_mcp.transport.hid_connection import DeviceInfo

AIOC_MAGIC = int.from_bytes(b"AIOC", "little")


class FakeConnection:
    """Stands in for HIDConnection with a register file behind it."""

    def __init__(self, registers: dict[int, int] | None = None) -> None:
        self.registers = {int(reg): 0 for reg in Register}
        self.registers[Register.MAGIC] = AIOC_MAGIC
        if registers:
            self.registers.update(registers)
        self.connected = False
        self.device_info = DeviceInfo(
            manufacturer="AIOC", product="All-In-One-Cable", serial_number="1234"
        )
        self.feature_reports: list[bytes] = []
        self.output_reports: list[bytes] = []
        self.commands: list[int] = []
        self.short_response = False
        self.written_override: int | None = None
        self.fail_open = False
        self.close_calls = 0
        self._selected = 0

    def open(self) -> DeviceInfo:
        if self.fail_open:
            raise TransportError("Could not open AIOC device")
        self.connected = True
        return self.device_info

    def close(self) -> None:
        self.close_calls += 1
        self.connected = False

    def send_feature_report(self, data: bytes) -> int:
        self.feature_reports.append(bytes(data))
        command, address = data[1], data[2]
        value = int.from_bytes(data[3:7], "little")
        if command == Command.WRITE_STROBE:
            self.registers[address] = value
        elif command == Command.NONE:
            self._selected = address
        else:
            self.commands.append(command)
        return len(data)

    def get_feature_report(self, report_id: int, length: int) -> bytes:
        value = self.registers.get(self._selected, 0)
        response = bytes([report_id, 0, self._selected]) + value.to_bytes(4, "little")
        if self.short_response:
            return response[:5]
        return response[:length]

    def write(self, data: bytes) -> int:
        self.output_reports.append(bytes(data))
        if self.written_override is not None:
            return self.written_override
        return len(data)

    def writes(self) -> list[tuple[int, int]]:
        """(address, value) of every write-strobe frame, in order."""
        return [
            (frame[2], int.from_bytes(frame[3:7], "little"))
            for frame in self.feature_reports
            if frame[1] == Command.WRITE_STROBE
        ]


@pytest.fixture
def connection() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def device(connection) -> AIOCDevice:
    return AIOCDevice.open(connection=connection)
