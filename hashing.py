"""Short ids and response fingerprints from a 32-bit rolling string hash."""

import json
from typing import Any

BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def rolling_hash(text: str) -> int:
    """h = h * 31 + unit over UTF-16 code units, wrapped to a signed 32-bit int."""
    data = text.encode("utf-16-le")
    h = 0
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = ((h << 5) - h + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


def to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(BASE36_DIGITS[rem])
    return "".join(reversed(digits))


def short_id(source_id: str) -> str:
    """Deterministic 6-8 character id for direct video links."""
    value = to_base36(abs(rolling_hash(source_id)))
    return value.rjust(6, "0")[:8]


def fingerprint(data: Any) -> str:
    """Weak content hash of the JSON form of data, used as an ETag."""
    text = json.dumps(data, separators=(",", ":"), ensure_ascii=False)
    return to_base36(abs(rolling_hash(text)))
