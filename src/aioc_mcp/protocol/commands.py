"""Command opcodes carried in byte 1 of every register frame."""

from __future__ import annotations

from enum import IntEnum


class Command(IntEnum):
    """Command opcodes."""

    NONE = 0x00
    WRITE_STROBE = 0x01
    DEFAULTS = 0x10
    REBOOT = 0x20
    RECALL = 0x40
    STORE = 0x80


# Bare commands a user may issue directly
USER_COMMANDS: dict[str, Command] = {
    "defaults": Command.DEFAULTS,
    "reboot": Command.REBOOT,
    "recall": Command.RECALL,
    "store": Command.STORE,
}
