"""Named-flag and value vocabularies for AIOC register contents.

Each vocabulary is declared once as an ordered ``(name, value)`` table and
that table drives both parsing and formatting, so a formatted mask always
parses back to the same value.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import InvalidFormat, UnknownFlag


@dataclass(frozen=True)
class FlagVocabulary:
    """A bitmask vocabulary: any combination of the named bits is valid."""

    label: str
    entries: tuple[tuple[str, int], ...]

    def __post_init__(self) -> None:
        seen = 0
        for name, bit in self.entries:
            if bit & seen:
                raise ValueError(f"Overlapping bit for '{name}' in {self.label}")
            seen |= bit

    @property
    def known_bits(self) -> int:
        mask = 0
        for _, bit in self.entries:
            mask |= bit
        return mask

    def names(self) -> list[str]:
        return [name for name, _ in self.entries]

    def parse(self, text: str) -> int:
        """Parse ``"A|B|C"`` into a bitmask.

        An empty string is the zero mask. Lookup is case-sensitive.

        Raises:
            UnknownFlag: If a token is not part of this vocabulary.
        """
        if text == "":
            return 0
        lookup = dict(self.entries)
        mask = 0
        for token in text.split("|"):
            token = token.strip()
            if token not in lookup:
                raise UnknownFlag(token, self.label)
            mask |= lookup[token]
        return mask

    def format(self, mask: int) -> str:
        """Render a bitmask as ``"A|B"`` in declaration order.

        Zero renders as ``"NONE"``. A mask with no named bits renders as an
        8-digit hex literal, and bits outside the vocabulary are appended
        as a trailing hex token so nothing read from the device is hidden.
        """
        if mask == 0:
            return "NONE"
        parts = [name for name, bit in self.entries if bit and mask & bit]
        if not parts:
            return f"0x{mask:08x}"
        leftover = mask & ~self.known_bits
        if leftover:
            parts.append(f"0x{leftover:08x}")
        return "|".join(parts)

    def describe(self) -> list[str]:
        """One ``"NAME (0x........)"`` line per named bit."""
        return [f"{name} (0x{bit:08x})" for name, bit in self.entries if bit]


@dataclass(frozen=True)
class ValueEnumeration:
    """A value vocabulary: exactly one of the listed values is valid."""

    label: str
    entries: tuple[tuple[str, int], ...]

    def names(self) -> list[str]:
        return [name for name, _ in self.entries]

    def parse(self, name: str) -> int:
        """Look up the register value for a name.

        Raises:
            InvalidFormat: If the name is not listed.
        """
        for entry_name, value in self.entries:
            if entry_name == name:
                return value
        raise InvalidFormat(
            f"Invalid {self.label}: {name!r} (valid: {', '.join(self.names())})"
        )

    def format(self, value: int) -> str:
        """Name of a raw value, or ``"unknown"``."""
        for name, entry_value in self.entries:
            if entry_value == value:
                return name
        return "unknown"


PTT_SOURCE = FlagVocabulary(
    "PTT source",
    (
        ("NONE", 0x00000000),
        ("CM108GPIO1", 0x00000001),
        ("CM108GPIO2", 0x00000002),
        ("CM108GPIO3", 0x00000004),
        ("CM108GPIO4", 0x00000008),
        ("SERIALDTR", 0x00000100),
        ("SERIALRTS", 0x00000200),
        ("SERIALDTRNRTS", 0x00000400),
        ("SERIALNDTRRTS", 0x00000800),
        ("VPTT", 0x00001000),
    ),
)

CM108_BUTTON_SOURCE = FlagVocabulary(
    "button source",
    (
        ("NONE", 0x00000000),
        ("IN1", 0x00010000),
        ("IN2", 0x00020000),
        ("VCOS", 0x01000000),
    ),
)

RX_GAIN = ValueEnumeration(
    "audio RX gain",
    (
        ("1x", 0x00000000),
        ("2x", 0x00000001),
        ("4x", 0x00000002),
        ("8x", 0x00000003),
        ("16x", 0x00000004),
    ),
)

TX_BOOST = ValueEnumeration(
    "audio TX boost",
    (
        ("off", 0x00000000),
        ("on", 0x00000100),
    ),
)

# Frequently used single flags
PTT_VPTT = PTT_SOURCE.parse("VPTT")
BUTTON_NONE = CM108_BUTTON_SOURCE.parse("NONE")
BUTTON_IN2 = CM108_BUTTON_SOURCE.parse("IN2")
BUTTON_VCOS = CM108_BUTTON_SOURCE.parse("VCOS")
