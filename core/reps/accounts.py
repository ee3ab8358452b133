"""
Address and amount helpers.

Addresses are `ban_` + 60 base32 characters: 52 encode the public key
(with 4 leading zero bits) and 8 encode a 5 byte blake2b checksum stored
little-endian.
"""

from __future__ import annotations

import hashlib
import re
from decimal import Context, Decimal
from typing import Any, Optional

ACCOUNT_PREFIX = "ban"
RAW_PER_UNIT = Decimal(10) ** 29

# raw balances carry up to 39 significant digits
DECIMAL_CONTEXT = Context(prec=100)

_ALPHABET = "13456789abcdefghijkmnopqrstuwxyz"
_ADDRESS_RE = re.compile(r"^ban_[13][13456789abcdefghijkmnopqrstuwxyz]{59}$")
_LEGACY_PREFIX_RE = re.compile(r"^(xrb|nano|ban)[_-]")


def _decode(chars: str) -> int:
    n = 0
    for c in chars:
        n = n * 32 + _ALPHABET.index(c)
    return n


def normalize_account(address: Optional[str], prefix: str = ACCOUNT_PREFIX) -> str:
    if not isinstance(address, str):
        return ""
    address = address.strip().lower()
    if not address:
        return ""
    return _LEGACY_PREFIX_RE.sub(f"{prefix}_", address, count=1)


def is_valid_account(address: Optional[str]) -> bool:
    if not address or not _ADDRESS_RE.match(address):
        return False
    body = address.split("_", 1)[1]
    public_key = _decode(body[:52]).to_bytes(32, "big")
    checksum = _decode(body[52:]).to_bytes(5, "big")
    return hashlib.blake2b(public_key, digest_size=5).digest()[::-1] == checksum


def short_name(address: str) -> str:
    return f"{address[:11]}...{address[-6:]}"


def to_decimal(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def raw_to_whole(raw: Any) -> Decimal:
    """Convert a raw amount to whole units without losing precision."""
    return DECIMAL_CONTEXT.divide(to_decimal(raw), RAW_PER_UNIT)
