"""Run configuration: the immutable record of what one invocation should do.

All user input is parsed and validated here, before any device I/O, so a
typo in a flag name never leaves the device half-configured.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import InvalidFormat
from ..protocol.bitfields import CM108_BUTTON_SOURCE, PTT_SOURCE, RX_GAIN, TX_BOOST
from ..protocol.foxhunt import MAX_INTERVAL, MAX_VOLUME, MAX_WPM, message_bytes
from ..transport.hid_connection import PRODUCT_ID, VENDOR_ID

MAX_REGISTER_VALUE = 0xFFFFFFFF
MAX_USB_ID = 0xFFFF


def parse_number(text: str) -> int:
    """Parse a hex (``0x``), octal (``0o`` or a leading ``0``), binary
    (``0b``) or decimal integer.

    Raises:
        InvalidFormat: If the text is not an integer literal.
    """
    text = text.strip()
    try:
        if text[:2].lower() == "0x":
            return int(text[2:], 16)
        if len(text) > 1 and text[0] == "0" and text[1].isdigit():
            return int(text[1:], 8)
        return int(text, 0)
    except ValueError:
        raise InvalidFormat(f"Invalid number: {text!r}") from None


def parse_ranged(text: str, maximum: int, what: str) -> int:
    """Parse a number and require ``0 <= value <= maximum``."""
    value = parse_number(text)
    if not 0 <= value <= maximum:
        raise InvalidFormat(f"{what} must be 0-{maximum}, got {value}")
    return value


def parse_vid_pid(text: str) -> tuple[int, int]:
    """Parse ``"VID,PID"`` (each hex or decimal) into a pair.

    Raises:
        InvalidFormat: If the text is not two comma separated 16-bit numbers.
    """
    parts = text.split(",")
    if len(parts) != 2:
        raise InvalidFormat(f"Invalid VID,PID: {text!r}. Use: VID,PID")
    vid = parse_ranged(parts[0], MAX_USB_ID, "VID")
    pid = parse_ranged(parts[1], MAX_USB_ID, "PID")
    return vid, pid


def parse_on_off(text: str) -> bool:
    value = text.strip().lower()
    if value == "on":
        return True
    if value == "off":
        return False
    raise InvalidFormat(f"Invalid PTT state: {text!r} (use 'on' or 'off')")


@dataclass(frozen=True)
class Config:
    """Everything one run should do, fully parsed.

    ``None`` means "leave unchanged"; masks and enumeration values are
    already converted to register values.
    """

    open_vid: int = VENDOR_ID
    open_pid: int = PRODUCT_ID
    defaults: bool = False
    dump: bool = False
    swap_ptt: bool = False
    auto_ptt1: bool = False
    ptt1: int | None = None
    ptt2: int | None = None
    set_usb: tuple[int, int] | None = None
    vol_up: int | None = None
    vol_dn: int | None = None
    vptt_lvlctrl: int | None = None
    vptt_timctrl: int | None = None
    vcos_lvlctrl: int | None = None
    vcos_timctrl: int | None = None
    enable_hwcos: bool = False
    enable_vcos: bool = False
    foxhunt_get_settings: bool = False
    foxhunt_get_message: bool = False
    foxhunt_volume: int | None = None
    foxhunt_wpm: int | None = None
    foxhunt_interval: int | None = None
    foxhunt_message: str | None = None
    audio_get_settings: bool = False
    audio_rx_gain: int | None = None
    audio_tx_boost: int | None = None
    store: bool = False
    set_ptt1_state: bool | None = None
    set_ptt2_state: bool | None = None
    reboot: bool = False

    @property
    def updates_foxhunt_control(self) -> bool:
        return (
            self.foxhunt_volume is not None
            or self.foxhunt_wpm is not None
            or self.foxhunt_interval is not None
        )

    @classmethod
    def from_args(cls, args) -> Config:
        """Build a Config from an ``argparse.Namespace``.

        Raises:
            UnknownFlag: For an unknown PTT or button source name.
            InvalidFormat: For any malformed value.
        """
        open_vid, open_pid = VENDOR_ID, PRODUCT_ID
        if args.open_usb:
            open_vid, open_pid = parse_vid_pid(args.open_usb)

        def optional(text, parse):
            return parse(text) if text else None

        def register(text, what):
            return optional(
                text, lambda t: parse_ranged(t, MAX_REGISTER_VALUE, what)
            )

        message = args.foxhunt_message or None
        if message is not None:
            message_bytes(message)

        return cls(
            open_vid=open_vid,
            open_pid=open_pid,
            defaults=args.defaults,
            dump=args.dump,
            swap_ptt=args.swap_ptt,
            auto_ptt1=args.auto_ptt1,
            ptt1=optional(args.ptt1, PTT_SOURCE.parse),
            ptt2=optional(args.ptt2, PTT_SOURCE.parse),
            set_usb=optional(args.set_usb, parse_vid_pid),
            vol_up=optional(args.vol_up, CM108_BUTTON_SOURCE.parse),
            vol_dn=optional(args.vol_dn, CM108_BUTTON_SOURCE.parse),
            vptt_lvlctrl=register(args.vptt_lvlctrl, "VPTT_LVLCTRL"),
            vptt_timctrl=register(args.vptt_timctrl, "VPTT_TIMCTRL"),
            vcos_lvlctrl=register(args.vcos_lvlctrl, "VCOS_LVLCTRL"),
            vcos_timctrl=register(args.vcos_timctrl, "VCOS_TIMCTRL"),
            enable_hwcos=args.enable_hwcos,
            enable_vcos=args.enable_vcos,
            foxhunt_get_settings=args.foxhunt_get_settings,
            foxhunt_get_message=args.foxhunt_get_message,
            foxhunt_volume=optional(
                args.foxhunt_volume,
                lambda t: parse_ranged(t, MAX_VOLUME, "Foxhunt volume"),
            ),
            foxhunt_wpm=optional(
                args.foxhunt_wpm,
                lambda t: parse_ranged(t, MAX_WPM, "Foxhunt WPM"),
            ),
            foxhunt_interval=optional(
                args.foxhunt_interval,
                lambda t: parse_ranged(t, MAX_INTERVAL, "Foxhunt interval"),
            ),
            foxhunt_message=message,
            audio_get_settings=args.audio_get_settings,
            audio_rx_gain=optional(args.audio_rx_gain, RX_GAIN.parse),
            audio_tx_boost=optional(args.audio_tx_boost, TX_BOOST.parse),
            store=args.store,
            set_ptt1_state=optional(args.set_ptt1_state, parse_on_off),
            set_ptt2_state=optional(args.set_ptt2_state, parse_on_off),
            reboot=args.reboot,
        )
