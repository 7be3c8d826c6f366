"""RFC 4648 Base32 codec used to recover the provisioned shared secret."""
from __future__ import annotations

from phidoor.services.errors import InvalidCharacterError

__all__ = ["ALPHABET", "decode", "encode"]

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"
_PAD = "="
# case folding limited to ASCII; digits appear twice with the same value
_LOOKUP = {ch: idx % 32 for idx, ch in enumerate(ALPHABET + ALPHABET.lower())}


def decode(text: str) -> bytes:
    """Decode ``text`` into raw bytes.

    Input is case-insensitive and trailing ``=`` padding is ignored. Bits are
    consumed most-significant first; a trailing group of fewer than eight bits
    is dropped.
    """

    stripped = text.rstrip(_PAD)
    buffer = 0
    bits = 0
    out = bytearray()
    for position, ch in enumerate(stripped):
        value = _LOOKUP.get(ch)
        if value is None:
            raise InvalidCharacterError(ch, position)
        buffer = (buffer << 5) | value
        bits += 5
        if bits >= 8:
            bits -= 8
            out.append((buffer >> bits) & 0xFF)
            buffer &= (1 << bits) - 1
    return bytes(out)


def encode(data: bytes, *, padding: bool = True) -> str:
    chars: list[str] = []
    buffer = 0
    bits = 0
    for byte in data:
        buffer = (buffer << 8) | byte
        bits += 8
        while bits >= 5:
            bits -= 5
            chars.append(ALPHABET[(buffer >> bits) & 0x1F])
        buffer &= (1 << bits) - 1
    if bits:
        chars.append(ALPHABET[(buffer << (5 - bits)) & 0x1F])
    if padding and len(chars) % 8:
        chars.append(_PAD * (8 - len(chars) % 8))
    return "".join(chars)
