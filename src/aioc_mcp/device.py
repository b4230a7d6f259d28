"""Register-level session with one AIOC.

A session is only usable after the MAGIC handshake succeeds. All calls are
blocking round trips over a single HID handle; nothing is retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from .errors import DeviceMismatch, SessionClosed, ShortWrite
from .protocol.framing import (
    REPORT_ID,
    RESPONSE_SIZE,
    decode_read_response,
    encode_command,
    encode_raw_ptt,
    encode_read_request,
    encode_write_request,
)
from .protocol.registers import MAGIC_VALUE, REGISTER_MAP, Register
from .transport.hid_connection import PRODUCT_ID, VENDOR_ID, HIDConnection

logger = logging.getLogger(__name__)


class SessionState(Enum):
    CLOSED = "closed"
    OPEN = "open"


@dataclass(frozen=True)
class RegisterValue:
    """One register as read during a dump."""

    name: str
    address: int
    value: int

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "address": f"0x{self.address:02X}",
            "value": f"{self.value:08x}",
        }


class AIOCDevice:
    """An open, verified AIOC.

    Only :meth:`open` produces a usable session; a bare instance stays
    closed until the MAGIC handshake has passed.

    Usage::

        with AIOCDevice.open() as dev:
            value = dev.read(Register.AUDIO_RX)
    """

    def __init__(self, connection: HIDConnection) -> None:
        self._connection = connection
        self._state = SessionState.CLOSED

    @classmethod
    def open(
        cls,
        vendor_id: int = VENDOR_ID,
        product_id: int = PRODUCT_ID,
        connection: HIDConnection | None = None,
    ) -> AIOCDevice:
        """Open the first matching device and verify its MAGIC register.

        Args:
            vendor_id: USB vendor ID to match.
            product_id: USB product ID to match.
            connection: Transport to use instead of a fresh HIDConnection.

        Raises:
            TransportError: If the device cannot be opened or read.
            DeviceMismatch: If the MAGIC register does not read ``"AIOC"``.
        """
        if connection is None:
            connection = HIDConnection(vendor_id, product_id)
        connection.open()

        device = cls(connection)
        try:
            magic = device._read(Register.MAGIC).to_bytes(4, "little")
            if magic != MAGIC_VALUE:
                raise DeviceMismatch(magic)
        except BaseException:
            connection.close()
            raise
        device._state = SessionState.OPEN

        logger.info(
            "Opened AIOC 0x%04x:0x%04x", vendor_id, product_id
        )
        return device

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is SessionState.OPEN

    @property
    def manufacturer(self) -> str:
        return self._connection.device_info.manufacturer

    @property
    def product(self) -> str:
        return self._connection.device_info.product

    @property
    def serial_number(self) -> str:
        return self._connection.device_info.serial_number

    @property
    def device_info(self):
        return self._connection.device_info

    def close(self) -> None:
        """Release the HID handle. Closing twice is a no-op."""
        if self._state is SessionState.CLOSED:
            logger.debug("Session already closed")
            return
        try:
            self._connection.close()
        finally:
            self._state = SessionState.CLOSED

    def __enter__(self) -> AIOCDevice:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _require_open(self) -> None:
        if self._state is not SessionState.OPEN:
            raise SessionClosed()

    def read(self, address: int) -> int:
        """Read a 32-bit register.

        Raises:
            TransportError: If the exchange fails.
            ShortRead: If the response is truncated.
        """
        self._require_open()
        return self._read(address)

    def _read(self, address: int) -> int:
        self._connection.send_feature_report(encode_read_request(address))
        response = self._connection.get_feature_report(REPORT_ID, RESPONSE_SIZE)
        value = decode_read_response(response)
        logger.debug("read 0x%02x -> %08x", address, value)
        return value

    def write(self, address: int, value: int) -> None:
        """Write a 32-bit register.

        The device does not acknowledge writes; read the register back to
        confirm the value was applied.
        """
        self._require_open()
        logger.debug("write 0x%02x <- %08x", address, value)
        self._connection.send_feature_report(encode_write_request(address, value))

    def send_command(self, command: int) -> None:
        """Send a bare command (defaults, reboot, recall, store)."""
        self._require_open()
        logger.debug("command 0x%02x", command)
        self._connection.send_feature_report(encode_command(command))

    def set_ptt_state(self, channel: int, on: bool) -> None:
        """Assert or release a PTT I/O line with a raw output report.

        Raises:
            ShortWrite: If the transport wrote fewer bytes than the frame.
        """
        self._require_open()
        frame = encode_raw_ptt(channel, on)
        written = self._connection.write(frame)
        if written != len(frame):
            raise ShortWrite(written, len(frame))
        logger.debug("PTT channel %d %s", channel, "on" if on else "off")

    def read_magic(self) -> bytes:
        """The MAGIC register as its four raw bytes."""
        return self.read(Register.MAGIC).to_bytes(4, "little")

    def dump_registers(self) -> list[RegisterValue]:
        """Read every known register in map order."""
        return [
            RegisterValue(name=name, address=int(reg), value=self.read(reg))
            for name, reg in REGISTER_MAP
        ]
