"""HID transport to the device."""

from .hid_connection import DeviceInfo, HIDConnection
