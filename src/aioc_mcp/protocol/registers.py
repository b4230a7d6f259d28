"""Register addresses of the AIOC configuration space.

Every register is 32 bits wide and addressed by a single byte.
"""

from __future__ import annotations

from enum import IntEnum


class Register(IntEnum):
    """Register addresses."""

    MAGIC = 0x00
    USBID = 0x08
    AIOC_IOMUX0 = 0x24
    AIOC_IOMUX1 = 0x25
    CM108_IOMUX0 = 0x44
    CM108_IOMUX1 = 0x45
    CM108_IOMUX2 = 0x46
    CM108_IOMUX3 = 0x47
    SERIAL_CTRL = 0x60
    SERIAL_IOMUX0 = 0x64
    SERIAL_IOMUX1 = 0x65
    SERIAL_IOMUX2 = 0x66
    SERIAL_IOMUX3 = 0x67
    AUDIO_RX = 0x72
    AUDIO_TX = 0x78
    VPTT_LVLCTRL = 0x82
    VPTT_TIMCTRL = 0x84
    VCOS_LVLCTRL = 0x92
    VCOS_TIMCTRL = 0x94
    FOXHUNT_CTRL = 0xA0
    FOXHUNT_MSG0 = 0xA2
    FOXHUNT_MSG1 = 0xA3
    FOXHUNT_MSG2 = 0xA4
    FOXHUNT_MSG3 = 0xA5


# Dump order; names as shown to the user
REGISTER_MAP: tuple[tuple[str, Register], ...] = tuple(
    (reg.name, reg) for reg in Register
)

FOXHUNT_MESSAGE_REGISTERS = (
    Register.FOXHUNT_MSG0,
    Register.FOXHUNT_MSG1,
    Register.FOXHUNT_MSG2,
    Register.FOXHUNT_MSG3,
)

MAGIC_VALUE = b"AIOC"


def register_name(address: int) -> str:
    """Return the display name of a register, or a hex label if unmapped."""
    try:
        return Register(address).name
    except ValueError:
        return f"0x{address:02X}"


def resolve_register(key: str | int) -> int:
    """Resolve a register given by name (``"AUDIO_RX"``) or address.

    Raises:
        ValueError: If the name is unknown or the address is not a byte.
    """
    if isinstance(key, int):
        address = key
    else:
        text = key.strip()
        if text.upper() in Register.__members__:
            return int(Register[text.upper()])
        try:
            address = int(text, 0)
        except ValueError:
            raise ValueError(f"Unknown register '{key}'") from None
    if not 0 <= address <= 0xFF:
        raise ValueError(f"Register address must be 0-255, got {address}")
    return address
