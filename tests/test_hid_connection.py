"""Tests for the HID transport with the USB libraries mocked out."""

from __future__ import annotations

import sys
from unittest.mock import MagicMock, patch

import pytest

from aioc_mcp.errors import TransportError
from aioc_mcp.transport.hid_connection import (
    HID_GET_REPORT,
    HID_SET_REPORT,
    HIDConnection,
)


def _mock_hid_module():
    device = MagicMock()
    device.get_manufacturer_string.return_value = "AIOC"
    device.get_product_string.return_value = "All-In-One-Cable"
    device.get_serial_number_string.return_value = "5678"
    device.send_feature_report.side_effect = lambda data: len(data)
    device.write.side_effect = lambda data: len(data)
    device.get_feature_report.return_value = [0, 0, 0, 0x41, 0x49, 0x4F, 0x43]
    module = MagicMock()
    module.device.return_value = device
    return module, device


def test_hidapi_open_and_exchange():
    module, device = _mock_hid_module()
    with patch.dict(sys.modules, {"hid": module}):
        conn = HIDConnection()
        info = conn.open()
        assert conn.backend == "hidapi"
        assert info.serial_number == "5678"
        device.open.assert_called_once_with(0x1209, 0x7388)

        frame = bytes(8)
        assert conn.send_feature_report(frame) == 8
        device.send_feature_report.assert_called_once_with(frame)
        assert conn.get_feature_report(0, 7) == b"\x00\x00\x00AIOC"
        device.get_feature_report.assert_called_once_with(0, 7)
        assert conn.write(bytes(5)) == 5

        conn.close()
        device.close.assert_called_once()
        assert not conn.connected


def test_hidapi_descriptor_failure_closes_handle():
    """A handle that fails while reading descriptors is closed before pyusb is tried."""
    module, device = _mock_hid_module()
    device.get_serial_number_string.side_effect = OSError("descriptor read failed")
    usb_core = MagicMock()
    usb_core.find.return_value = None
    usb_pkg = MagicMock()
    usb_pkg.core = usb_core
    with patch.dict(
        sys.modules,
        {"hid": module, "usb": usb_pkg, "usb.core": usb_core, "usb.util": usb_pkg.util},
    ):
        conn = HIDConnection()
        with pytest.raises(TransportError):
            conn.open()
    device.close.assert_called_once()
    assert not conn.connected


def test_hidapi_error_is_transport_error():
    module, device = _mock_hid_module()
    device.send_feature_report.side_effect = OSError("read error")
    with patch.dict(sys.modules, {"hid": module}):
        conn = HIDConnection()
        conn.open()
        with pytest.raises(TransportError):
            conn.send_feature_report(bytes(8))


def test_negative_byte_count_is_transport_error():
    module, device = _mock_hid_module()
    device.write.side_effect = lambda data: -1
    with patch.dict(sys.modules, {"hid": module}):
        conn = HIDConnection()
        conn.open()
        with pytest.raises(TransportError):
            conn.write(bytes(5))


def test_not_connected():
    conn = HIDConnection()
    with pytest.raises(TransportError):
        conn.send_feature_report(bytes(8))
    with pytest.raises(TransportError):
        conn.get_feature_report(0, 7)
    with pytest.raises(TransportError):
        conn.write(bytes(5))
    conn.close()


def test_open_fails_on_both_backends():
    hid_module = MagicMock()
    hid_module.device.return_value.open.side_effect = OSError("open failed")
    usb_core = MagicMock()
    usb_core.find.return_value = None
    usb_pkg = MagicMock()
    usb_pkg.core = usb_core
    with patch.dict(
        sys.modules,
        {"hid": hid_module, "usb": usb_pkg, "usb.core": usb_core, "usb.util": usb_pkg.util},
    ):
        with pytest.raises(TransportError) as exc:
            HIDConnection(0x1234, 0x5678).open()
    assert "0x1234" in str(exc.value)


def test_pyusb_feature_reports():
    """With pyusb, feature reports become HID class control transfers."""
    hid_module = MagicMock()
    hid_module.device.return_value.open.side_effect = OSError("no hidraw")
    dev = MagicMock()
    dev.is_kernel_driver_active.return_value = False
    dev.ctrl_transfer.side_effect = [7, bytes([0, 0, 0x41, 0x49, 0x4F, 0x43])]
    usb_pkg = MagicMock()
    usb_pkg.core.find.return_value = dev
    usb_pkg.util.get_string.return_value = "AIOC"
    with patch.dict(
        sys.modules,
        {"hid": hid_module, "usb": usb_pkg, "usb.core": usb_pkg.core, "usb.util": usb_pkg.util},
    ):
        conn = HIDConnection()
        conn.open()
        assert conn.backend == "pyusb"

        frame = bytes([0, 1, 0x72, 2, 0, 0, 0, 0])
        assert conn.send_feature_report(frame) == 8
        request = dev.ctrl_transfer.call_args_list[0]
        assert request.args[:4] == (0x21, HID_SET_REPORT, 0x0300, 0)
        assert request.args[4] == frame[1:]

        assert conn.get_feature_report(0, 7) == b"\x00\x00\x00AIOC"
        response = dev.ctrl_transfer.call_args_list[1]
        assert response.args == (0xA1, HID_GET_REPORT, 0x0300, 0, 6)
