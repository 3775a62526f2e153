# -*- coding: utf-8 -*-
"""
tokenledger.math
================

Integer-only numeric envelope for ledger amounts.

Balances and allowances are unsigned 128-bit integers. Nothing in the ledger
uses floats; every amount that crosses the public surface is range-checked with
`require_u128` and every arithmetic step goes through `safe_uint`.
"""

from __future__ import annotations

from typing import Final

from ..errors import InvalidInput

U128_BITS: Final[int] = 128
U128_BYTES: Final[int] = U128_BITS // 8
U128_MAX: Final[int] = (1 << U128_BITS) - 1


def is_u128(x: object) -> bool:
    # bool is an int subclass; reject it explicitly.
    return isinstance(x, int) and not isinstance(x, bool) and 0 <= x <= U128_MAX


def require_u128(*xs: object, arg: str = "value") -> None:
    """Raise InvalidInput unless every argument is an int in [0, U128_MAX]."""
    for x in xs:
        if not is_u128(x):
            raise InvalidInput(
                "amount must be an integer in [0, 2**128 - 1]",
                arg=arg,
                data={"got": repr(x)[:64]},
            )


__all__ = ["U128_BITS", "U128_BYTES", "U128_MAX", "is_u128", "require_u128"]
