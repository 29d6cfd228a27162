"""Address-like identifier helpers."""
from __future__ import annotations

import re

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_address(value: object) -> bool:
    return isinstance(value, str) and bool(_ADDRESS_RE.match(value))


def normalize_address(value: str) -> str:
    """Return the lower-case form of a ``0x``-prefixed 20-byte identifier."""
    if not is_address(value):
        raise ValueError(f"Not an address: {value!r}")
    return value.lower()


def same_address(a: str | None, b: str | None) -> bool:
    if a is None or b is None:
        return False
    return a.lower() == b.lower()
