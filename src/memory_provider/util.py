"""Conversion helpers for the hex-encoded values returned by debug adapters."""

from __future__ import annotations

import re

from memory_provider.common import MAX_UNSIGNED_LONG

HEX_DIGITS_PATTERN = re.compile("[0-9a-fA-F]*")
HEX_ADDRESS_PATTERN = re.compile("0x[0-9a-fA-F]+")
DECIMAL_SIZE_PATTERN = re.compile("[0-9]+")


def hex_to_bytes(hex_str: str) -> bytes:
    """
    Convert a hex-encoded string of bytes to the equivalent `bytes`.

    Each pair of digits is one byte, most significant nibble first.

    :param hex_str: Hex digits without prefix, e.g. "deadbeef".
    :return: The decoded bytes.
    :raises ValueError: If the string has odd length or non-hex characters.
    """
    if len(hex_str) % 2:
        raise ValueError(f"Hex string has odd length: {hex_str!r}")
    if not HEX_DIGITS_PATTERN.fullmatch(hex_str):
        raise ValueError(f"Invalid hex string: {hex_str!r}")
    return bytes.fromhex(hex_str)


def hex_to_unsigned_long(hex_str: str) -> int:
    """
    Parse a hex string, optionally prefixed with `0x`, as an unsigned 64-bit value.

    :param hex_str: The string to parse.
    :return: The parsed value.
    :raises ValueError: If the string is not hex or does not fit in 64 bits.
    """
    digits = hex_str[2:] if hex_str[:2].lower() == "0x" else hex_str
    if not digits or not HEX_DIGITS_PATTERN.fullmatch(digits):
        raise ValueError(f"Invalid hex number: {hex_str!r}")

    value = int(digits, 16)
    if value > MAX_UNSIGNED_LONG:
        raise ValueError(f"Hex number does not fit in 64 bits: {hex_str!r}")
    return value


def parse_address(text: str) -> int | None:
    """Return the address in `text` (strict `0x...` form) or None if it is not one."""
    if not HEX_ADDRESS_PATTERN.fullmatch(text):
        return None
    try:
        return hex_to_unsigned_long(text)
    except ValueError:
        return None


def parse_size(text: str) -> int | None:
    """Return the non-negative decimal size in `text` or None if it is not one."""
    if not DECIMAL_SIZE_PATTERN.fullmatch(text):
        return None
    return int(text)
