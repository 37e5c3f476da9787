"""Correlation id generation.

Default correlation ids are ``<hostname>_<ULID>``. The ULID part is 26
Crockford Base32 characters: a 48-bit millisecond timestamp in the high bits
followed by 80 bits of secure random entropy, so ids sort by creation time.
"""

from __future__ import annotations

import secrets
import time
from typing import Callable

from packages.chronicle.constants import DEFAULT_HOSTNAME

_ULID_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_ULID_LENGTH = 26

CorrelationIdGenerator = Callable[[], str]


def generate_ulid(*, timestamp_ms: int | None = None) -> str:
    """Return a new ULID in canonical 26-character string form."""
    ts_ms = int(time.time() * 1000) if timestamp_ms is None else int(timestamp_ms)
    if ts_ms < 0 or ts_ms >= (1 << 48):
        raise ValueError("timestamp_ms out of ULID 48-bit range")

    entropy = int.from_bytes(secrets.token_bytes(10), byteorder="big", signed=False)
    number = (ts_ms << 80) | entropy
    chars: list[str] = []
    for _ in range(_ULID_LENGTH):
        number, remainder = divmod(number, 32)
        chars.append(_ULID_ALPHABET[remainder])
    return "".join(reversed(chars))


def generate_correlation_id(*, hostname: str = DEFAULT_HOSTNAME) -> str:
    """Return a fresh ``<hostname>_<ULID>`` correlation id."""
    return f"{hostname}_{generate_ulid()}"
