"""Execute a parsed :class:`Config` against an open device.

Steps run in a fixed order and every register write is followed by a read
back of the register, whose value is what gets reported. The first error
aborts the run; writes already applied stay applied.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

from .device import AIOCDevice
from .models.config import Config
from .protocol.bitfields import (
    BUTTON_IN2,
    BUTTON_NONE,
    BUTTON_VCOS,
    CM108_BUTTON_SOURCE,
    PTT_SOURCE,
    PTT_VPTT,
    RX_GAIN,
    TX_BOOST,
)
from .protocol.commands import Command
from .protocol.foxhunt import (
    decode_message,
    encode_message,
    message_bytes,
    pack_control,
    unpack_control,
)
from .protocol.framing import PTTChannel
from .protocol.registers import FOXHUNT_MESSAGE_REGISTERS, Register

logger = logging.getLogger(__name__)

BUTTON_LABELS = (
    (Register.CM108_IOMUX0, "CM108 Button 1 (VolUP)"),
    (Register.CM108_IOMUX1, "CM108 Button 2 (VolDN)"),
    (Register.CM108_IOMUX2, "CM108 Button 3 (PlbMute)"),
    (Register.CM108_IOMUX3, "CM108 Button 4 (RecMute)"),
)


def _ascii(raw: bytes) -> str:
    return raw.decode("ascii", errors="replace")


class Runner:
    """Carries the device and output stream through the steps of one run."""

    def __init__(self, device: AIOCDevice, out: TextIO) -> None:
        self.device = device
        self.out = out

    def say(self, message: str) -> None:
        print(message, file=self.out)

    def report_ptt(self) -> None:
        ptt1 = self.device.read(Register.AIOC_IOMUX0)
        ptt2 = self.device.read(Register.AIOC_IOMUX1)
        self.say(f"Now PTT1 Source: {PTT_SOURCE.format(ptt1)}")
        self.say(f"Now PTT2 Source: {PTT_SOURCE.format(ptt2)}")

    def report_buttons(self, up_label: str, dn_label: str) -> None:
        up = self.device.read(Register.CM108_IOMUX0)
        dn = self.device.read(Register.CM108_IOMUX1)
        self.say(f"Now {up_label}: {CM108_BUTTON_SOURCE.format(up)}")
        self.say(f"Now {dn_label}: {CM108_BUTTON_SOURCE.format(dn)}")

    def write_and_confirm(self, register: Register, value: int) -> int:
        self.device.write(register, value)
        confirmed = self.device.read(register)
        if confirmed != value:
            logger.warning(
                "%s read back %08x after writing %08x",
                register.name, confirmed, value,
            )
        return confirmed

    def dump(self) -> None:
        dev = self.device
        self.say(f"Manufacturer: {dev.manufacturer}")
        self.say(f"Product: {dev.product}")
        self.say(f"Serial No: {dev.serial_number}")
        self.say(f"Magic: {_ascii(dev.read_magic())}")

        ptt1 = dev.read(Register.AIOC_IOMUX0)
        ptt2 = dev.read(Register.AIOC_IOMUX1)
        self.say(f"Current PTT1 Source: {PTT_SOURCE.format(ptt1)}")
        self.say(f"Current PTT2 Source: {PTT_SOURCE.format(ptt2)}")
        for register, label in BUTTON_LABELS:
            value = dev.read(register)
            self.say(f"Current {label} Source: {CM108_BUTTON_SOURCE.format(value)}")

        for reg in dev.dump_registers():
            self.say(f"Reg. {reg.name}: {reg.value:08x}")

    def swap_ptt(self) -> None:
        ptt1 = self.device.read(Register.AIOC_IOMUX0)
        ptt2 = self.device.read(Register.AIOC_IOMUX1)
        self.say(f"Setting PTT1 Source to {PTT_SOURCE.format(ptt2)}")
        self.device.write(Register.AIOC_IOMUX0, ptt2)
        self.say(f"Setting PTT2 Source to {PTT_SOURCE.format(ptt1)}")
        self.device.write(Register.AIOC_IOMUX1, ptt1)
        self.report_ptt()

    def set_ptt_sources(self, ptt1: int | None, ptt2: int | None) -> None:
        if ptt1 is not None:
            self.say(f"Setting PTT1 Source to {PTT_SOURCE.format(ptt1)}")
            self.device.write(Register.AIOC_IOMUX0, ptt1)
        if ptt2 is not None:
            self.say(f"Setting PTT2 Source to {PTT_SOURCE.format(ptt2)}")
            self.device.write(Register.AIOC_IOMUX1, ptt2)
        self.report_ptt()

    def set_usb_id(self, vid: int, pid: int) -> None:
        value = self.write_and_confirm(Register.USBID, (pid << 16) | vid)
        self.say(f"Now USBID: {value:08x}")

    def set_button_sources(self, vol_up: int | None, vol_dn: int | None) -> None:
        if vol_up is not None:
            self.say(
                f"Setting VolUP button source to {CM108_BUTTON_SOURCE.format(vol_up)}"
            )
            self.device.write(Register.CM108_IOMUX0, vol_up)
        if vol_dn is not None:
            self.say(
                f"Setting VolDN button source to {CM108_BUTTON_SOURCE.format(vol_dn)}"
            )
            self.device.write(Register.CM108_IOMUX1, vol_dn)
        self.report_buttons("VolUP button source", "VolDN button source")

    def set_raw_register(self, register: Register, value: int) -> None:
        self.say(f"Setting {register.name} to 0x{value:x}")
        confirmed = self.write_and_confirm(register, value)
        self.say(f"Now {register.name}: {confirmed:08x}")

    def enable_cos(self, iomux0: int, iomux1: int) -> None:
        self.device.write(Register.CM108_IOMUX0, iomux0)
        self.device.write(Register.CM108_IOMUX1, iomux1)
        self.report_buttons("CM108_IOMUX0", "CM108_IOMUX1")

    def foxhunt_settings(self) -> None:
        raw = self.device.read(Register.FOXHUNT_CTRL)
        control = unpack_control(raw)
        self.say("Current foxhunt settings:")
        self.say(f"  Volume: {control.volume}")
        self.say(f"  WPM: {control.wpm}")
        self.say(f"  Interval: {control.interval} seconds")
        self.say(f"  Raw register: {raw:08x}")

    def foxhunt_message(self) -> None:
        words = []
        self.say("Current foxhunt message registers:")
        for i, register in enumerate(FOXHUNT_MESSAGE_REGISTERS):
            value = self.device.read(register)
            words.append(value)
            self.say(f"  MSG{i}: {value:08x} ('{_ascii(value.to_bytes(4, 'little'))}')")
        self.say(f"Current foxhunt message: '{decode_message(words)}'")

    def update_foxhunt_control(
        self,
        volume: int | None,
        wpm: int | None,
        interval: int | None,
    ) -> None:
        current = unpack_control(self.device.read(Register.FOXHUNT_CTRL))
        volume = current.volume if volume is None else volume
        wpm = current.wpm if wpm is None else wpm
        interval = current.interval if interval is None else interval

        self.say(
            f"Setting FOXHUNT_CTRL: volume={volume}, wpm={wpm}, interval={interval}"
        )
        value = self.write_and_confirm(
            Register.FOXHUNT_CTRL, pack_control(volume, wpm, interval)
        )
        self.say(f"Now FOXHUNT_CTRL: {value:08x}")

    def set_foxhunt_message(self, text: str) -> None:
        raw = message_bytes(text)
        self.say(f"Setting foxhunt message: '{text}'")
        for i, (register, value) in enumerate(
            zip(FOXHUNT_MESSAGE_REGISTERS, encode_message(text))
        ):
            self.device.write(register, value)
            self.say(f"  MSG{i}: {value:08x} ('{_ascii(raw[i * 4 : i * 4 + 4])}')")

    def audio_settings(self) -> None:
        rx = self.device.read(Register.AUDIO_RX)
        tx = self.device.read(Register.AUDIO_TX)
        self.say("Current audio settings:")
        self.say(f"  RX Gain: {RX_GAIN.format(rx)}")
        self.say(f"  TX Boost: {TX_BOOST.format(tx)}")
        self.say(f"  Raw AUDIO_RX: {rx:08x}")
        self.say(f"  Raw AUDIO_TX: {tx:08x}")

    def set_rx_gain(self, value: int) -> None:
        self.say(f"Setting Audio RX gain to {RX_GAIN.format(value)}")
        confirmed = self.write_and_confirm(Register.AUDIO_RX, value)
        self.say(f"Now AUDIO_RX: {confirmed:08x}")

    def set_tx_boost(self, value: int) -> None:
        self.say(f"Setting Audio TX boost to {TX_BOOST.format(value)}")
        confirmed = self.write_and_confirm(Register.AUDIO_TX, value)
        self.say(f"Now AUDIO_TX: {confirmed:08x}")


def execute(config: Config, device: AIOCDevice, out: TextIO | None = None) -> None:
    """Run every step requested by ``config`` in order.

    Raises:
        AIOCError: On the first failing step; later steps are skipped.
    """
    run = Runner(device, out if out is not None else sys.stdout)

    if config.defaults:
        run.say("Loading Defaults...")
        device.send_command(Command.DEFAULTS)

    if config.dump:
        run.dump()

    if config.swap_ptt:
        run.swap_ptt()

    if config.auto_ptt1:
        run.set_ptt_sources(PTT_VPTT, None)

    if config.ptt1 is not None or config.ptt2 is not None:
        run.set_ptt_sources(config.ptt1, config.ptt2)

    if config.set_usb is not None:
        run.set_usb_id(*config.set_usb)

    if config.vol_up is not None or config.vol_dn is not None:
        run.set_button_sources(config.vol_up, config.vol_dn)

    for register, value in (
        (Register.VPTT_LVLCTRL, config.vptt_lvlctrl),
        (Register.VPTT_TIMCTRL, config.vptt_timctrl),
        (Register.VCOS_LVLCTRL, config.vcos_lvlctrl),
        (Register.VCOS_TIMCTRL, config.vcos_timctrl),
    ):
        if value is not None:
            run.set_raw_register(register, value)

    if config.enable_hwcos:
        run.say("Enabling hardware COS (if your aioc supports it)...")
        run.enable_cos(BUTTON_NONE, BUTTON_IN2)

    if config.enable_vcos:
        run.say("Enabling virtual COS...")
        run.enable_cos(BUTTON_IN2, BUTTON_VCOS)

    if config.foxhunt_get_settings:
        run.foxhunt_settings()

    if config.foxhunt_get_message:
        run.foxhunt_message()

    if config.updates_foxhunt_control:
        run.update_foxhunt_control(
            config.foxhunt_volume, config.foxhunt_wpm, config.foxhunt_interval
        )

    if config.foxhunt_message:
        run.set_foxhunt_message(config.foxhunt_message)

    if config.audio_get_settings:
        run.audio_settings()

    if config.audio_rx_gain is not None:
        run.set_rx_gain(config.audio_rx_gain)

    if config.audio_tx_boost is not None:
        run.set_tx_boost(config.audio_tx_boost)

    if config.store:
        run.say("Storing...")
        device.send_command(Command.STORE)

    if config.set_ptt1_state is not None:
        device.set_ptt_state(PTTChannel.PTT1, config.set_ptt1_state)

    if config.set_ptt2_state is not None:
        device.set_ptt_state(PTTChannel.PTT2, config.set_ptt2_state)

    if config.reboot:
        run.say("Rebooting device...")
        device.send_command(Command.REBOOT)

    logger.info("All requested steps completed")
