"""Prefix arithmetic for the 5-hex-digit SHA1 key space."""

from __future__ import annotations

import re

from .errors import InvalidRange

MAX_PREFIX = 0x10000
MAX_HEX_VALUE = 0xFFFF
DEFAULT_PREFIX_STEP = 0x0040
NIBBLES = range(0x10)

_HEX_PATTERN = re.compile(r"^(0x)?[0-9a-fA-F]{1,5}$")


def outer_prefix(value: int) -> str:
    """Return the 4-digit uppercase prefix of an outer unit."""

    return f"{value:04X}"


def inner_prefixes(value: int) -> list[str]:
    """Expand an outer unit into its 16 range-endpoint prefixes, ascending."""

    base = outer_prefix(value)
    return [f"{base}{nibble:X}" for nibble in NIBBLES]


def validate_range(first_prefix: int, last_prefix: int) -> None:
    if not 0 <= first_prefix < MAX_PREFIX:
        raise InvalidRange(f"first prefix {first_prefix:#x} outside [0x0000, 0xffff]")
    if not first_prefix < last_prefix <= MAX_PREFIX:
        raise InvalidRange(
            f"last prefix {last_prefix:#x} must be in ({first_prefix:#x}, 0x10000]"
        )


def validate_step(step: int) -> None:
    if not 0 < step <= MAX_HEX_VALUE:
        raise InvalidRange(f"prefix step {step:#x} outside [0x0001, 0xffff]")


def parse_hex_prefix(text: str, *, upper_bound: int = MAX_HEX_VALUE) -> int:
    """Parse a user supplied hex value, rejecting anything above ``upper_bound``."""

    candidate = text.strip()
    if not _HEX_PATTERN.match(candidate):
        raise InvalidRange(f"not a hexadecimal prefix: {text!r}")
    value = int(candidate, 16)
    if value > upper_bound:
        raise InvalidRange(f"value {value:#x} exceeds {upper_bound:#x}")
    return value


__all__ = [
    "DEFAULT_PREFIX_STEP",
    "MAX_HEX_VALUE",
    "MAX_PREFIX",
    "inner_prefixes",
    "outer_prefix",
    "parse_hex_prefix",
    "validate_range",
    "validate_step",
]
