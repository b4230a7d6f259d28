"""Run configuration and user input parsing."""

from .config import Config, parse_number, parse_on_off, parse_vid_pid
