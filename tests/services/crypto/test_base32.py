from __future__ import annotations

import os

import pytest

from phidoor.services.crypto import base32
from phidoor.services.errors import EncodingError, InvalidCharacterError

RFC4648_VECTORS = [
    (b"", ""),
    (b"f", "MY======"),
    (b"fo", "MZXQ===="),
    (b"foo", "MZXW6==="),
    (b"foob", "MZXW6YQ="),
    (b"fooba", "MZXW6YTB"),
    (b"foobar", "MZXW6YTBOI======"),
]


@pytest.mark.parametrize("raw, encoded", RFC4648_VECTORS)
def test_rfc4648_vectors(raw, encoded):
    assert base32.encode(raw) == encoded
    assert base32.decode(encoded) == raw


def test_decode_is_case_insensitive_and_ignores_missing_padding():
    assert base32.decode("mzxw6ytboi") == b"foobar"
    assert base32.decode("MzXw6YtB") == b"fooba"


def test_decode_rfc6238_secret():
    assert base32.decode("GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ") == b"12345678901234567890"


@pytest.mark.parametrize("length", [0, 1, 5, 16, 20])
def test_roundtrip_group_boundaries(length):
    data = os.urandom(length)
    assert base32.decode(base32.encode(data)) == data
    assert base32.decode(base32.encode(data, padding=False)) == data


def test_trailing_partial_byte_is_dropped():
    # "MZ" carries 10 bits: one full byte plus two leftover bits
    assert base32.decode("MZ") == b"f"
    assert base32.decode("M") == b""


@pytest.mark.parametrize(
    "text, bad, position",
    [
        ("MZXW1YTB", "1", 4),
        ("MZ XW", " ", 2),
        ("MZ=XW", "=", 2),
        ("ÄBC", "Ä", 0),
        # non-ASCII letters whose Unicode upper case is in the alphabet
        ("ıNBSWY3DP", "ı", 0),
        ("ſ", "ſ", 0),
    ],
)
def test_invalid_characters_are_rejected(text, bad, position):
    with pytest.raises(InvalidCharacterError) as excinfo:
        base32.decode(text)
    assert excinfo.value.character == bad
    assert excinfo.value.position == position
    assert isinstance(excinfo.value, EncodingError)
