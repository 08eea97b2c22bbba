"""
Script number and hex helpers.

Numbers pushed by contract scripts use the script interpreter's format:
little-endian magnitude with the sign carried in the top bit of the last
byte, using as few bytes as possible.
"""

from __future__ import annotations

import string


class MalformedHexError(ValueError):
    pass


def encode_script_number(num: int) -> bytes:
    """Encode an integer as a minimal script number. Zero encodes to b""."""
    result = bytearray()
    negative = num < 0
    num = abs(num)

    while num:
        result.append(num & 0xFF)
        num >>= 8

    if not result:
        return b""

    if result[-1] & 0x80:
        # Magnitude already uses the top bit, add a byte for the sign
        result.append(0x80 if negative else 0x00)
    elif negative:
        result[-1] |= 0x80

    return bytes(result)


def decode_script_number(data: bytes) -> int:
    """Decode a script number produced by encode_script_number."""
    if not data:
        return 0

    magnitude = bytearray(data)
    negative = bool(magnitude[-1] & 0x80)
    magnitude[-1] &= 0x7F

    value = int.from_bytes(magnitude, "little")
    return -value if negative else value


def hex_to_bytes(hex_string: str) -> bytes:
    """
    Decode a hex string two characters at a time.

    Raises:
        MalformedHexError: On odd length or non-hex characters
    """
    if len(hex_string) % 2:
        raise MalformedHexError(f"Hex string has odd length: {len(hex_string)}")

    for i, char in enumerate(hex_string):
        if char not in string.hexdigits:
            raise MalformedHexError(f"Invalid hex character {char!r} at position {i}")

    return bytes(
        (int(hex_string[i], 16) << 4) | int(hex_string[i + 1], 16)
        for i in range(0, len(hex_string), 2)
    )
