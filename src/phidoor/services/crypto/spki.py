"""SubjectPublicKeyInfo encoding for raw RSA public keys.

Key providers hand out the bare PKCS#1 ``RSAPublicKey`` structure; servers
expect a PEM ``PUBLIC KEY`` (SPKI) envelope. The DER pieces are assembled by
hand so the output does not depend on what the provider is able to export.
"""
from __future__ import annotations

import base64

__all__ = [
    "RSA_ALGORITHM_IDENTIFIER",
    "PEM_HEADER",
    "PEM_FOOTER",
    "der_encode_length",
    "der_decode_length",
    "der_encode_sequence",
    "der_encode_bit_string",
    "encode_spki",
    "encode_pem",
    "encode_public_key_pem",
]

# SEQUENCE { OID 1.2.840.113549.1.1.1 (rsaEncryption), NULL }
RSA_ALGORITHM_IDENTIFIER = bytes(
    [0x30, 0x0D, 0x06, 0x09, 0x2A, 0x86, 0x48, 0x86, 0xF7, 0x0D, 0x01, 0x01, 0x01, 0x05, 0x00]
)
PEM_HEADER = "-----BEGIN PUBLIC KEY-----"
PEM_FOOTER = "-----END PUBLIC KEY-----"
PEM_LINE_LENGTH = 64

_TAG_SEQUENCE = 0x30
_TAG_BIT_STRING = 0x03


def der_encode_length(length: int) -> bytes:
    if length < 0:
        raise ValueError("length must be non-negative")
    if length < 0x80:
        return bytes([length])
    body = length.to_bytes((length.bit_length() + 7) // 8, "big")
    return bytes([0x80 | len(body)]) + body


def der_decode_length(data: bytes, offset: int = 0) -> tuple[int, int]:
    """Read a length at ``offset``; return ``(length, offset_of_content)``."""

    first = data[offset]
    if first < 0x80:
        return first, offset + 1
    count = first & 0x7F
    if count == 0 or offset + 1 + count > len(data):
        raise ValueError("malformed DER length")
    return int.from_bytes(data[offset + 1 : offset + 1 + count], "big"), offset + 1 + count


def _tlv(tag: int, body: bytes) -> bytes:
    return bytes([tag]) + der_encode_length(len(body)) + body


def der_encode_sequence(*components: bytes) -> bytes:
    return _tlv(_TAG_SEQUENCE, b"".join(components))


def der_encode_bit_string(data: bytes, unused_bits: int = 0) -> bytes:
    return _tlv(_TAG_BIT_STRING, bytes([unused_bits]) + data)


def encode_spki(pkcs1_key: bytes) -> bytes:
    return der_encode_sequence(RSA_ALGORITHM_IDENTIFIER, der_encode_bit_string(pkcs1_key))


def encode_pem(der: bytes, *, header: str = PEM_HEADER, footer: str = PEM_FOOTER) -> str:
    body = base64.b64encode(der).decode("ascii")
    lines = [body[i : i + PEM_LINE_LENGTH] for i in range(0, len(body), PEM_LINE_LENGTH)]
    return "\n".join([header, *lines, footer])


def encode_public_key_pem(pkcs1_key: bytes) -> str:
    return encode_pem(encode_spki(pkcs1_key))
