"""Feature flags – deterministic string hashing for rollout and variants.

Bucketing must give the same answer for the same actor in every process,
so Python's salted ``hash()`` is not usable here. The hash is the classic
``h * 31 + c`` rolling hash over UTF-16 code units, wrapped to a signed
32-bit integer after every step, with the absolute value taken at the end.
"""
from __future__ import annotations

_INT32_MASK = 0xFFFFFFFF
_INT32_SIGN = 0x80000000


def _utf16_code_units(text: str) -> list[int]:
    raw = text.encode("utf-16-le", "surrogatepass")
    return [int.from_bytes(raw[i:i + 2], "little") for i in range(0, len(raw), 2)]


def hash_string(text: str) -> int:
    """Return a non-negative 32-bit hash of *text*, stable across runs."""
    h = 0
    for unit in _utf16_code_units(text):
        h = (h * 31 + unit) & _INT32_MASK
    if h & _INT32_SIGN:
        h -= 1 << 32
    return abs(h)


def rollout_bucket(flag_id: str, stickiness_value: str) -> tuple[int, int]:
    """Return ``(hash, bucket)`` with the bucket in 1..100."""
    h = hash_string(flag_id + stickiness_value)
    return h, h % 100 + 1


def variant_bucket(flag_id: str, stickiness_value: str) -> int:
    """Return the variant bucket in 0..99."""
    return hash_string(flag_id + stickiness_value) % 100


__all__ = ["hash_string", "rollout_bucket", "variant_bucket"]
