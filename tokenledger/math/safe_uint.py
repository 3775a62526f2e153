# -*- coding: utf-8 -*-
"""
tokenledger.math.safe_uint
==========================

Checked unsigned 128-bit arithmetic for balances and allowances.

Two styles:
  1) **Checked** (`u128_add`, `u128_sub`): raise `InvariantViolation` on
     overflow/underflow. Inside the ledger these can only fire if supply
     conservation is already broken, so they are fatal rather than user errors.
  2) **try_*** (`try_add_u128`, `try_sub_u128`): return `None` instead of
     raising; useful for planning a transition before committing to it.

Storage encoding helpers live here as well: amounts are stored as 16-byte
big-endian values.
"""

from __future__ import annotations

from typing import Optional

from ..errors import InvalidInput, InvariantViolation
from . import U128_BYTES, U128_MAX, is_u128, require_u128


# ---------------------------------------------------------------------------
# Checked
# ---------------------------------------------------------------------------

def u128_add(x: int, y: int) -> int:
    """Checked add: raise on overflow."""
    require_u128(x, y)
    s = x + y
    if s > U128_MAX:
        raise InvariantViolation("u128 overflow", context={"x": str(x), "y": str(y)})
    return s


def u128_sub(x: int, y: int) -> int:
    """Checked sub: raise on underflow (y > x)."""
    require_u128(x, y)
    if y > x:
        raise InvariantViolation("u128 underflow", context={"x": str(x), "y": str(y)})
    return x - y


# ---------------------------------------------------------------------------
# "try_*" convenience (no raise; return Optional[int])
# ---------------------------------------------------------------------------

def try_add_u128(x: int, y: int) -> Optional[int]:
    """Return x+y or None on overflow/out-of-range input."""
    if not (is_u128(x) and is_u128(y)):
        return None
    s = x + y
    return s if s <= U128_MAX else None


def try_sub_u128(x: int, y: int) -> Optional[int]:
    """Return x-y or None on underflow/out-of-range input."""
    if not (is_u128(x) and is_u128(y)):
        return None
    return x - y if x >= y else None


# ---------------------------------------------------------------------------
# Storage encoding
# ---------------------------------------------------------------------------

def encode_u128(n: int) -> bytes:
    require_u128(n)
    return int(n).to_bytes(U128_BYTES, "big")


def decode_u128(b: Optional[bytes]) -> int:
    """Decode a stored amount. Missing or empty values read as zero."""
    if not b:
        return 0
    if len(b) > U128_BYTES:
        raise InvalidInput("stored amount wider than 16 bytes", data={"len": len(b)})
    return int.from_bytes(b, "big")


__all__ = [
    "u128_add",
    "u128_sub",
    "try_add_u128",
    "try_sub_u128",
    "encode_u128",
    "decode_u128",
]
