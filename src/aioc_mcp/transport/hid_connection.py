"""USB HID connection to the AIOC.

Supports both ``hidapi`` (preferred) and ``pyusb`` backends.
Register transactions travel as HID feature reports; the raw PTT lines
are driven with output reports. With pyusb both are issued as HID class
control transfers (SET_REPORT / GET_REPORT) on interface 0.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..errors import TransportError

logger = logging.getLogger(__name__)

VENDOR_ID = 0x1209
PRODUCT_ID = 0x7388
HID_INTERFACE = 0
CTRL_TIMEOUT_MS = 1000

# HID class requests
HID_SET_REPORT = 0x09
HID_GET_REPORT = 0x01
REPORT_TYPE_OUTPUT = 0x02
REPORT_TYPE_FEATURE = 0x03
REQUEST_TYPE_OUT = 0x21  # host-to-device | class | interface
REQUEST_TYPE_IN = 0xA1  # device-to-host | class | interface


@dataclass
class DeviceInfo:
    """Basic device identification from USB descriptors."""

    vendor_id: int = VENDOR_ID
    product_id: int = PRODUCT_ID
    manufacturer: str = ""
    product: str = ""
    serial_number: str = ""

    def to_dict(self) -> dict:
        return {
            "manufacturer": self.manufacturer,
            "product": self.product,
            "serial_number": self.serial_number,
            "vendor_id": f"0x{self.vendor_id:04X}",
            "product_id": f"0x{self.product_id:04X}",
        }


class HIDConnection:
    """Manages the USB HID handle of one AIOC.

    Usage::

        conn = HIDConnection()
        conn.open()
        conn.send_feature_report(frame)
        response = conn.get_feature_report(0, 7)
        conn.close()
    """

    def __init__(
        self,
        vendor_id: int = VENDOR_ID,
        product_id: int = PRODUCT_ID,
    ) -> None:
        self._vendor_id = vendor_id
        self._product_id = product_id
        self._device = None
        self._backend: str = ""
        self._connected = False
        self._device_info = DeviceInfo(vendor_id=vendor_id, product_id=product_id)

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def backend(self) -> str:
        return self._backend

    @property
    def device_info(self) -> DeviceInfo:
        return self._device_info

    def open(self) -> DeviceInfo:
        """Open the first matching device, trying hidapi first, then pyusb.

        Returns:
            DeviceInfo with USB descriptor strings.

        Raises:
            TransportError: If the device cannot be found or opened.
        """
        try:
            return self._open_hidapi()
        except Exception as e:
            logger.debug("hidapi backend failed: %s, trying pyusb", e)

        try:
            return self._open_pyusb()
        except Exception as e:
            raise TransportError(
                f"Could not open AIOC device "
                f"(VID: 0x{self._vendor_id:04x}, PID: 0x{self._product_id:04x}). "
                f"Ensure the device is connected and you have permissions. "
                f"Last error: {e}"
            ) from e

    def _open_hidapi(self) -> DeviceInfo:
        """Open using the hidapi library."""
        import hid

        device = hid.device()
        device.open(self._vendor_id, self._product_id)
        try:
            device.set_nonblocking(False)
            info = DeviceInfo(
                vendor_id=self._vendor_id,
                product_id=self._product_id,
                manufacturer=device.get_manufacturer_string() or "",
                product=device.get_product_string() or "",
                serial_number=device.get_serial_number_string() or "",
            )
        except Exception:
            device.close()
            raise

        self._device = device
        self._backend = "hidapi"
        self._connected = True
        self._device_info = info

        logger.info(
            "Connected via hidapi: %s %s",
            self._device_info.manufacturer,
            self._device_info.product,
        )
        return self._device_info

    def _open_pyusb(self) -> DeviceInfo:
        """Open using pyusb + libusb."""
        import usb.core
        import usb.util

        dev = usb.core.find(idVendor=self._vendor_id, idProduct=self._product_id)
        if dev is None:
            raise TransportError("Device not found via pyusb")

        # Detach kernel driver if needed
        if dev.is_kernel_driver_active(HID_INTERFACE):
            dev.detach_kernel_driver(HID_INTERFACE)

        usb.util.claim_interface(dev, HID_INTERFACE)

        self._device = dev
        self._backend = "pyusb"
        self._connected = True
        self._device_info = DeviceInfo(
            vendor_id=self._vendor_id,
            product_id=self._product_id,
            manufacturer=usb.util.get_string(dev, dev.iManufacturer) or "",
            product=usb.util.get_string(dev, dev.iProduct) or "",
            serial_number=usb.util.get_string(dev, dev.iSerialNumber) or "",
        )

        logger.info(
            "Connected via pyusb: %s %s",
            self._device_info.manufacturer,
            self._device_info.product,
        )
        return self._device_info

    def close(self) -> None:
        """Close the USB connection."""
        if not self._connected:
            return

        try:
            if self._backend == "hidapi":
                self._device.close()
            elif self._backend == "pyusb":
                import usb.util
                usb.util.release_interface(self._device, HID_INTERFACE)
                usb.util.dispose_resources(self._device)
        except Exception as e:
            logger.warning("Error closing device: %s", e)
        finally:
            self._device = None
            self._connected = False
            logger.info("Disconnected")

    def _require_connected(self) -> None:
        if not self._connected:
            raise TransportError("Not connected to device")

    def send_feature_report(self, data: bytes) -> int:
        """Send a feature report; ``data[0]`` is the report ID.

        Returns:
            Number of bytes written, report ID included.

        Raises:
            TransportError: If not connected or the transfer fails.
        """
        self._require_connected()
        logger.debug("feature out: %s", data.hex(" "))
        try:
            if self._backend == "hidapi":
                written = self._device.send_feature_report(data)
            else:
                written = self._set_report(REPORT_TYPE_FEATURE, data)
        except Exception as e:
            raise TransportError(f"Failed to send feature report: {e}") from e
        if written < 0:
            raise TransportError("Failed to send feature report")
        return written

    def get_feature_report(self, report_id: int, length: int) -> bytes:
        """Fetch a feature report of up to ``length`` bytes, report ID first.

        Raises:
            TransportError: If not connected or the transfer fails.
        """
        self._require_connected()
        try:
            if self._backend == "hidapi":
                data = bytes(self._device.get_feature_report(report_id, length))
            else:
                data = bytes([report_id]) + bytes(
                    self._device.ctrl_transfer(
                        REQUEST_TYPE_IN,
                        HID_GET_REPORT,
                        (REPORT_TYPE_FEATURE << 8) | report_id,
                        HID_INTERFACE,
                        length - 1,
                        timeout=CTRL_TIMEOUT_MS,
                    )
                )
        except Exception as e:
            raise TransportError(f"Failed to get feature report: {e}") from e
        logger.debug("feature in: %s", data.hex(" "))
        return data

    def write(self, data: bytes) -> int:
        """Write an output report; ``data[0]`` is the report ID.

        Returns:
            Number of bytes written, report ID included.

        Raises:
            TransportError: If not connected or the write fails.
        """
        self._require_connected()
        logger.debug("output: %s", data.hex(" "))
        try:
            if self._backend == "hidapi":
                written = self._device.write(data)
            else:
                written = self._set_report(REPORT_TYPE_OUTPUT, data)
        except Exception as e:
            raise TransportError(f"Failed to write output report: {e}") from e
        if written < 0:
            raise TransportError("Failed to write output report")
        return written

    def _set_report(self, report_type: int, data: bytes) -> int:
        """Issue SET_REPORT via pyusb; report ID 0 is not sent on the wire."""
        report_id = data[0]
        payload = data[1:] if report_id == 0 else data
        sent = self._device.ctrl_transfer(
            REQUEST_TYPE_OUT,
            HID_SET_REPORT,
            (report_type << 8) | report_id,
            HID_INTERFACE,
            payload,
            timeout=CTRL_TIMEOUT_MS,
        )
        return sent + (len(data) - len(payload))
