"""Time-based one-time codes (RFC 6238) over the HOTP core of RFC 4226."""
from __future__ import annotations

import hashlib
import hmac
import time
from dataclasses import dataclass
from typing import Callable

from phidoor.config import const

__all__ = ["SUPPORTED_ALGORITHMS", "hotp", "time_counter", "generate_totp", "TotpGenerator"]

SUPPORTED_ALGORITHMS = {
    "sha1": hashlib.sha1,
    "sha256": hashlib.sha256,
    "sha512": hashlib.sha512,
}


def _digestmod(algorithm: str):
    try:
        return SUPPORTED_ALGORITHMS[algorithm.lower()]
    except KeyError:
        raise ValueError(f"unsupported TOTP algorithm: {algorithm}") from None


def hotp(secret: bytes, counter: int, *, digits: int = const.TOTP_DIGITS, algorithm: str = const.TOTP_ALGORITHM) -> str:
    if digits <= 0:
        raise ValueError("digits must be positive")
    mac = hmac.new(secret, counter.to_bytes(8, "big"), _digestmod(algorithm)).digest()
    offset = mac[-1] & 0x0F
    number = int.from_bytes(mac[offset : offset + 4], "big") & 0x7FFFFFFF
    return str(number % (10**digits)).zfill(digits)


def time_counter(timestamp: float, period: int = const.TOTP_PERIOD) -> int:
    if period <= 0:
        raise ValueError("period must be positive")
    return int(timestamp // period)


def generate_totp(
    secret: bytes,
    timestamp: float | None = None,
    *,
    period: int = const.TOTP_PERIOD,
    digits: int = const.TOTP_DIGITS,
    algorithm: str = const.TOTP_ALGORITHM,
) -> str:
    """Return the code for ``timestamp`` (current wall clock when omitted).

    An empty ``secret`` is accepted; the resulting code is simply one the
    server will refuse.
    """

    if timestamp is None:
        timestamp = time.time()
    return hotp(secret, time_counter(timestamp, period), digits=digits, algorithm=algorithm)


@dataclass(frozen=True, slots=True)
class TotpGenerator:
    """TOTP parameters bundled with the clock they read."""

    algorithm: str = const.TOTP_ALGORITHM
    digits: int = const.TOTP_DIGITS
    period: int = const.TOTP_PERIOD
    clock: Callable[[], float] = time.time

    def __post_init__(self) -> None:
        _digestmod(self.algorithm)
        if self.digits <= 0 or self.period <= 0:
            raise ValueError("digits and period must be positive")

    def at(self, secret: bytes, timestamp: float) -> str:
        return generate_totp(secret, timestamp, period=self.period, digits=self.digits, algorithm=self.algorithm)

    def now(self, secret: bytes) -> str:
        return self.at(secret, self.clock())
