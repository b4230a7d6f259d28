"""MCP server entry point for the AIOC.

Exposes register access and the typed settings (PTT sources, button
sources, audio, foxhunt) as tools and resources via the Model Context
Protocol using the official Python MCP SDK with stdio transport.
"""

from __future__ import annotations

import functools
import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .device import AIOCDevice
from .errors import AIOCError, ErrorKind, InvalidFormat, SessionClosed
from .protocol.bitfields import (
    BUTTON_IN2,
    BUTTON_NONE,
    BUTTON_VCOS,
    CM108_BUTTON_SOURCE,
    PTT_SOURCE,
    RX_GAIN,
    TX_BOOST,
)
from .protocol.commands import USER_COMMANDS
from .protocol.foxhunt import (
    check_control,
    decode_message,
    encode_message,
    pack_control,
    unpack_control,
)
from .protocol.framing import PTTChannel
from .protocol.registers import (
    FOXHUNT_MESSAGE_REGISTERS,
    REGISTER_MAP,
    Register,
    register_name,
    resolve_register,
)
from .transport.hid_connection import PRODUCT_ID, VENDOR_ID

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "aioc",
    instructions="MCP server for the AIOC USB audio/PTT interface",
)

# Global session state
_device: AIOCDevice | None = None

PTT_CHANNELS = {1: PTTChannel.PTT1, 2: PTTChannel.PTT2}

COS_MODES = {
    "hardware": (BUTTON_NONE, BUTTON_IN2),
    "virtual": (BUTTON_IN2, BUTTON_VCOS),
}


def _get_device() -> AIOCDevice:
    """Get the open session, raising if not connected."""
    if _device is None or not _device.is_open:
        raise SessionClosed()
    return _device


def _reports_errors(fn):
    """Turn AIOC and validation errors into an error result."""

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except AIOCError as e:
            logger.warning("%s failed: %s", fn.__name__, e)
            return {"error": str(e), "kind": e.kind.value}
        except ValueError as e:
            return {"error": str(e), "kind": ErrorKind.INVALID_FORMAT.value}

    return wrapper


def _confirm(dev: AIOCDevice, register: int, value: int) -> int:
    """Write a register and return what the device reads back."""
    dev.write(register, value)
    return dev.read(register)


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
@_reports_errors
def connect(vendor_id: int = VENDOR_ID, product_id: int = PRODUCT_ID) -> dict[str, Any]:
    """Open the AIOC and verify it by its MAGIC register.

    Args:
        vendor_id: USB vendor ID (default 0x1209).
        product_id: USB product ID (default 0x7388).
    """
    global _device
    if _device is not None and _device.is_open:
        return {
            "connected": True,
            "message": "Already connected",
            "product": _device.product,
        }

    _device = AIOCDevice.open(vendor_id, product_id)
    result: dict[str, Any] = {"connected": True}
    result.update(_device.device_info.to_dict())
    return result


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Close the HID connection to the AIOC."""
    global _device
    if _device is None:
        return {"disconnected": True}
    _device.close()
    _device = None
    return {"disconnected": True}


@mcp.tool()
@_reports_errors
def get_device_info() -> dict[str, Any]:
    """Device descriptor strings and the MAGIC identifier."""
    dev = _get_device()
    result = dev.device_info.to_dict()
    result["magic"] = dev.read_magic().decode("ascii", errors="replace")
    return result


# ─── REGISTER TOOLS ──────────────────────────────────────────────────

@mcp.tool()
@_reports_errors
def read_register(register: str) -> dict[str, Any]:
    """Read one 32-bit register.

    Args:
        register: Register name (e.g. "AUDIO_RX") or address ("0x72").
    """
    address = resolve_register(register)
    value = _get_device().read(address)
    return {
        "register": register_name(address),
        "address": f"0x{address:02X}",
        "value": f"{value:08x}",
    }


@mcp.tool()
@_reports_errors
def write_register(register: str, value: int) -> dict[str, Any]:
    """Write one 32-bit register and read it back.

    Args:
        register: Register name or address.
        value: Unsigned 32-bit value.
    """
    address = resolve_register(register)
    confirmed = _confirm(_get_device(), address, value)
    return {
        "register": register_name(address),
        "written": f"{value:08x}",
        "value": f"{confirmed:08x}",
        "applied": confirmed == value,
    }


@mcp.tool()
@_reports_errors
def dump_registers() -> dict[str, Any]:
    """Read every known register."""
    registers = [reg.to_dict() for reg in _get_device().dump_registers()]
    return {"registers": registers, "count": len(registers)}


@mcp.tool()
@_reports_errors
def send_command(command: str) -> dict[str, Any]:
    """Send a device command.

    Args:
        command: One of "defaults", "reboot", "recall", "store".
    """
    if command not in USER_COMMANDS:
        raise InvalidFormat(f"Unknown command '{command}'. Valid: {list(USER_COMMANDS)}")
    _get_device().send_command(USER_COMMANDS[command])
    return {"command": command, "sent": True}


# ─── PTT TOOLS ───────────────────────────────────────────────────────

def _ptt_sources(dev: AIOCDevice) -> dict[str, str]:
    return {
        "ptt1": PTT_SOURCE.format(dev.read(Register.AIOC_IOMUX0)),
        "ptt2": PTT_SOURCE.format(dev.read(Register.AIOC_IOMUX1)),
    }


@mcp.tool()
@_reports_errors
def get_ptt_sources() -> dict[str, Any]:
    """Read the signals that key PTT1 and PTT2."""
    return _ptt_sources(_get_device())


@mcp.tool()
@_reports_errors
def set_ptt_sources(ptt1: str | None = None, ptt2: str | None = None) -> dict[str, Any]:
    """Select the signals that key PTT1 and/or PTT2.

    Args:
        ptt1: Sources joined by "|", e.g. "CM108GPIO1|SERIALDTR".
        ptt2: Sources joined by "|", e.g. "CM108GPIO2|VPTT".
    """
    # Parse both before touching the device
    mask1 = PTT_SOURCE.parse(ptt1) if ptt1 is not None else None
    mask2 = PTT_SOURCE.parse(ptt2) if ptt2 is not None else None

    dev = _get_device()
    if mask1 is not None:
        dev.write(Register.AIOC_IOMUX0, mask1)
    if mask2 is not None:
        dev.write(Register.AIOC_IOMUX1, mask2)
    return _ptt_sources(dev)


@mcp.tool()
@_reports_errors
def set_ptt_state(ptt: int, on: bool) -> dict[str, Any]:
    """Key or release a PTT line directly.

    Args:
        ptt: 1 or 2.
        on: True to transmit.
    """
    if ptt not in PTT_CHANNELS:
        raise InvalidFormat("PTT must be 1 or 2")
    _get_device().set_ptt_state(PTT_CHANNELS[ptt], on)
    return {"ptt": ptt, "on": on}


# ─── BUTTON / COS TOOLS ──────────────────────────────────────────────

def _button_sources(dev: AIOCDevice) -> dict[str, str]:
    return {
        "vol_up": CM108_BUTTON_SOURCE.format(dev.read(Register.CM108_IOMUX0)),
        "vol_dn": CM108_BUTTON_SOURCE.format(dev.read(Register.CM108_IOMUX1)),
        "plb_mute": CM108_BUTTON_SOURCE.format(dev.read(Register.CM108_IOMUX2)),
        "rec_mute": CM108_BUTTON_SOURCE.format(dev.read(Register.CM108_IOMUX3)),
    }


@mcp.tool()
@_reports_errors
def get_button_sources() -> dict[str, Any]:
    """Read the signals routed to the four CM108 buttons."""
    return _button_sources(_get_device())


@mcp.tool()
@_reports_errors
def set_button_sources(
    vol_up: str | None = None,
    vol_dn: str | None = None,
) -> dict[str, Any]:
    """Route signals to the CM108 Volume Up / Volume Down buttons.

    Args:
        vol_up: Sources joined by "|" (NONE, IN1, IN2, VCOS).
        vol_dn: Sources joined by "|" (NONE, IN1, IN2, VCOS).
    """
    up = CM108_BUTTON_SOURCE.parse(vol_up) if vol_up is not None else None
    dn = CM108_BUTTON_SOURCE.parse(vol_dn) if vol_dn is not None else None

    dev = _get_device()
    if up is not None:
        dev.write(Register.CM108_IOMUX0, up)
    if dn is not None:
        dev.write(Register.CM108_IOMUX1, dn)
    return _button_sources(dev)


@mcp.tool()
@_reports_errors
def set_cos_mode(mode: str) -> dict[str, Any]:
    """Choose hardware or virtual carrier-operated squelch.

    Args:
        mode: "hardware" (needs an AIOC that supports it) or "virtual".
    """
    if mode not in COS_MODES:
        raise InvalidFormat(f"Unknown COS mode '{mode}'. Valid: {list(COS_MODES)}")
    iomux0, iomux1 = COS_MODES[mode]
    dev = _get_device()
    dev.write(Register.CM108_IOMUX0, iomux0)
    dev.write(Register.CM108_IOMUX1, iomux1)
    result = _button_sources(dev)
    result["mode"] = mode
    return result


# ─── AUDIO TOOLS ─────────────────────────────────────────────────────

def _audio_settings(dev: AIOCDevice) -> dict[str, Any]:
    rx = dev.read(Register.AUDIO_RX)
    tx = dev.read(Register.AUDIO_TX)
    return {
        "rx_gain": RX_GAIN.format(rx),
        "tx_boost": TX_BOOST.format(tx),
        "raw_audio_rx": f"{rx:08x}",
        "raw_audio_tx": f"{tx:08x}",
    }


@mcp.tool()
@_reports_errors
def get_audio_settings() -> dict[str, Any]:
    """Read RX gain and TX boost."""
    return _audio_settings(_get_device())


@mcp.tool()
@_reports_errors
def set_audio_settings(
    rx_gain: str | None = None,
    tx_boost: str | None = None,
) -> dict[str, Any]:
    """Set RX gain and/or TX boost.

    Args:
        rx_gain: "1x", "2x", "4x", "8x" or "16x".
        tx_boost: "off" or "on".
    """
    rx = RX_GAIN.parse(rx_gain) if rx_gain is not None else None
    tx = TX_BOOST.parse(tx_boost) if tx_boost is not None else None

    dev = _get_device()
    if rx is not None:
        dev.write(Register.AUDIO_RX, rx)
    if tx is not None:
        dev.write(Register.AUDIO_TX, tx)
    return _audio_settings(dev)


# ─── FOXHUNT TOOLS ───────────────────────────────────────────────────

def _foxhunt(dev: AIOCDevice) -> dict[str, Any]:
    raw = dev.read(Register.FOXHUNT_CTRL)
    words = [dev.read(reg) for reg in FOXHUNT_MESSAGE_REGISTERS]
    result = unpack_control(raw).to_dict()
    result["raw_register"] = f"{raw:08x}"
    result["message"] = decode_message(words)
    return result


@mcp.tool()
@_reports_errors
def get_foxhunt() -> dict[str, Any]:
    """Read the foxhunt beacon volume, speed, interval and message."""
    return _foxhunt(_get_device())


@mcp.tool()
@_reports_errors
def set_foxhunt(
    volume: int | None = None,
    wpm: int | None = None,
    interval: int | None = None,
    message: str | None = None,
) -> dict[str, Any]:
    """Configure the foxhunt beacon. Unspecified fields keep their value.

    Args:
        volume: Beacon volume (0-65535).
        wpm: Morse speed in words per minute (0-255).
        interval: Seconds between beacons (0-255, 0 disables foxhunt mode).
        message: Beacon text, up to 16 ASCII characters.
    """
    check_control(volume or 0, wpm or 0, interval or 0)
    words = encode_message(message) if message is not None else None

    dev = _get_device()
    if volume is not None or wpm is not None or interval is not None:
        current = unpack_control(dev.read(Register.FOXHUNT_CTRL))
        dev.write(
            Register.FOXHUNT_CTRL,
            pack_control(
                current.volume if volume is None else volume,
                current.wpm if wpm is None else wpm,
                current.interval if interval is None else interval,
            ),
        )
    if words is not None:
        for register, value in zip(FOXHUNT_MESSAGE_REGISTERS, words):
            dev.write(register, value)
    return _foxhunt(dev)


# ─── MCP RESOURCES ───────────────────────────────────────────────────

@mcp.resource("aioc://device/info")
def resource_device_info() -> str:
    """Device descriptor strings and connection state."""
    if _device is None or not _device.is_open:
        return json.dumps({"connected": False})

    info = _device.device_info.to_dict()
    info["connected"] = True
    return json.dumps(info)


@mcp.resource("aioc://device/status")
def resource_device_status() -> str:
    """Connection state."""
    connected = _device is not None and _device.is_open
    return json.dumps({"connected": connected})


@mcp.resource("aioc://catalog/registers")
def resource_register_catalog() -> str:
    """All known registers with addresses."""
    registers = [
        {"name": name, "address": f"0x{int(reg):02X}"} for name, reg in REGISTER_MAP
    ]
    return json.dumps({"registers": registers, "count": len(registers)})


@mcp.resource("aioc://catalog/ptt-sources")
def resource_ptt_sources() -> str:
    """Signals that can key PTT."""
    return json.dumps({"ptt_sources": PTT_SOURCE.describe()})


@mcp.resource("aioc://catalog/button-sources")
def resource_button_sources() -> str:
    """Signals that can drive the CM108 buttons."""
    return json.dumps({"button_sources": CM108_BUTTON_SOURCE.describe()})


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
