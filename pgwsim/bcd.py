"""Packing of IMSI digit strings into BCD bytes and back."""

from __future__ import annotations

from collections.abc import Iterable

MIN_IMSI_LENGTH = 10
MAX_IMSI_LENGTH = 15

_FILLER = 0xF
_DIGITS = frozenset("0123456789")


def validate_imsi(imsi: str) -> bool:
    """Return True if *imsi* is 10 to 15 ASCII digits."""
    return MIN_IMSI_LENGTH <= len(imsi) <= MAX_IMSI_LENGTH and all(
        ch in _DIGITS for ch in imsi
    )


def imsi_to_bcd(imsi: str) -> bytes:
    """Pack an IMSI into BCD, low nibble first, padding odd lengths with 0xF."""
    if not validate_imsi(imsi):
        raise ValueError("Invalid IMSI format")
    digits = [int(ch) for ch in imsi]
    if len(digits) % 2:
        digits.append(_FILLER)
    return bytes(low | (high << 4) for low, high in zip(digits[::2], digits[1::2]))


def _decode_nibble(nibble: int) -> str | None:
    if nibble <= 9:
        return str(nibble)
    if nibble == _FILLER:
        return None
    raise ValueError("Invalid BCD nibble")


def bcd_to_imsi(bcd_data: bytes | bytearray | Iterable[int]) -> str:
    """Unpack BCD bytes into a digit string, stopping at the first 0xF nibble."""
    digits: list[str] = []
    for byte in bytes(bcd_data):
        for nibble in (byte & 0x0F, byte >> 4):
            digit = _decode_nibble(nibble)
            if digit is None:
                return "".join(digits)
            digits.append(digit)
    return "".join(digits)