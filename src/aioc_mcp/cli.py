"""Command-line entry point: ``aioc-config``."""

from __future__ import annotations

import argparse
import logging
import sys

from .device import AIOCDevice
from .errors import AIOCError
from .models.config import Config
from .protocol.bitfields import PTT_SOURCE
from .runner import execute

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aioc-config",
        description="Configure an AIOC USB audio/PTT interface",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="More logging (repeat for debug)")

    dev = parser.add_argument_group("Device")
    dev.add_argument("--open-usb", metavar="VID,PID",
                     help="USB VID and PID to use when opening (hex or decimal)")
    dev.add_argument("--defaults", action="store_true",
                     help="Load hardware defaults")
    dev.add_argument("--reboot", action="store_true",
                     help="Reboot the device")
    dev.add_argument("--store", action="store_true",
                     help="Store settings into flash")
    dev.add_argument("--dump", action="store_true",
                     help="Dump all known registers")
    dev.add_argument("--set-usb", metavar="VID,PID",
                     help="Set USB VID and PID (hex or decimal)")

    ptt = parser.add_argument_group("PTT")
    ptt.add_argument("--swap-ptt", action="store_true",
                     help="Swap PTT1/PTT2 sources")
    ptt.add_argument("--auto-ptt1", action="store_true",
                     help="Set AutoPTT on PTT1")
    ptt.add_argument("--ptt1", metavar="SOURCES",
                     help='Set PTT1 source (e.g. "CM108GPIO1|SERIALDTR")')
    ptt.add_argument("--ptt2", metavar="SOURCES",
                     help='Set PTT2 source (e.g. "CM108GPIO2|VPTT")')
    ptt.add_argument("--list-ptt-sources", action="store_true",
                     help="List all possible PTT sources")
    ptt.add_argument("--set-ptt1-state", metavar="on|off",
                     help="Set PTT1 state via raw HID write")
    ptt.add_argument("--set-ptt2-state", metavar="on|off",
                     help="Set PTT2 state via raw HID write")
    ptt.add_argument("--vptt-lvlctrl", metavar="VALUE",
                     help="Set VPTT_LVLCTRL register (hex or decimal)")
    ptt.add_argument("--vptt-timctrl", metavar="VALUE",
                     help="Set VPTT_TIMCTRL register (hex or decimal)")

    cos = parser.add_argument_group("Buttons / COS")
    cos.add_argument("--vol-up", metavar="SOURCES",
                     help="Set Volume Up button source")
    cos.add_argument("--vol-dn", metavar="SOURCES",
                     help="Set Volume Down button source")
    cos.add_argument("--enable-hwcos", action="store_true",
                     help="Enable hardware COS (needs an AIOC that supports it)")
    cos.add_argument("--enable-vcos", action="store_true",
                     help="Enable virtual COS (default behavior)")
    cos.add_argument("--vcos-lvlctrl", metavar="VALUE",
                     help="Set VCOS_LVLCTRL register (hex or decimal)")
    cos.add_argument("--vcos-timctrl", metavar="VALUE",
                     help="Set VCOS_TIMCTRL register (hex or decimal)")

    fox = parser.add_argument_group("Foxhunt")
    fox.add_argument("--foxhunt-volume", metavar="N",
                     help="Set foxhunt volume (0-65535)")
    fox.add_argument("--foxhunt-wpm", metavar="N",
                     help="Set foxhunt words per minute (0-255)")
    fox.add_argument("--foxhunt-interval", metavar="SECONDS",
                     help="Set foxhunt interval (0-255, 0 disables foxhunt mode)")
    fox.add_argument("--foxhunt-get-settings", action="store_true",
                     help="Read and display current foxhunt control settings")
    fox.add_argument("--foxhunt-message", metavar="TEXT",
                     help="Set foxhunt message (up to 16 characters)")
    fox.add_argument("--foxhunt-get-message", action="store_true",
                     help="Read and display current foxhunt message")

    audio = parser.add_argument_group("Audio")
    audio.add_argument("--audio-rx-gain", choices=("1x", "2x", "4x", "8x", "16x"),
                       help="Set audio RX gain")
    audio.add_argument("--audio-tx-boost", choices=("off", "on"),
                       help="Set audio TX boost")
    audio.add_argument("--audio-get-settings", action="store_true",
                       help="Read and display current audio settings")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        parser.print_help()
        return 1

    args = parser.parse_args(argv)
    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")

    if args.list_ptt_sources:
        for line in PTT_SOURCE.describe():
            print(line)
        return 0

    try:
        config = Config.from_args(args)
    except AIOCError as e:
        logger.error("%s", e)
        return 1

    try:
        device = AIOCDevice.open(config.open_vid, config.open_pid)
    except AIOCError as e:
        logger.error(
            "Could not open AIOC device (VID: 0x%04x, PID: 0x%04x): %s",
            config.open_vid, config.open_pid, e,
        )
        return 1

    with device:
        try:
            execute(config, device)
        except AIOCError as e:
            logger.error("%s", e)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
