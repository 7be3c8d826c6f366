"""Device identifier generation.

Identifiers are UUID version 7 strings: unique, opaque to the server and
orderable by creation time, which keeps registrations easy to correlate in
server logs.
"""
from __future__ import annotations

import secrets
import time
import uuid
from typing import NewType

__all__ = ["DeviceId", "generate_device_id", "uuid7"]

DeviceId = NewType("DeviceId", str)

_UUID7_MASK_48 = (1 << 48) - 1
_UUID7_VERSION_BITS = 0x7
_UUID7_VARIANT_BITS = 0b10


def uuid7(ts: float | None = None) -> uuid.UUID:
    """Return a UUID version 7 value.

    Args:
        ts: Optional timestamp (seconds). When omitted the current time is used.
    """

    if ts is None:
        ts = time.time()

    unix_ts_ms = int(ts * 1000)
    if unix_ts_ms < 0 or unix_ts_ms > _UUID7_MASK_48:
        raise ValueError("timestamp out of range for UUIDv7")

    value = (unix_ts_ms & _UUID7_MASK_48) << 80
    value |= _UUID7_VERSION_BITS << 76
    value |= secrets.randbits(12) << 64
    value |= _UUID7_VARIANT_BITS << 62
    value |= secrets.randbits(62)
    return uuid.UUID(int=value)


def generate_device_id() -> DeviceId:
    return DeviceId(str(uuid7()).upper())
