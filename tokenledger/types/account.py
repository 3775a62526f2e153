"""
tokenledger.types.account — account identifier coercion.

Accounts are opaque fixed-size byte strings. The core never interprets their
contents; it only needs them hashable and comparable. Hex strings (with or
without "0x") are accepted at the edges (CLI, snapshots, host calls) and
normalized to bytes here.
"""

from __future__ import annotations

from typing import Optional, Union

from ..errors import InvalidInput

AccountLike = Union[bytes, bytearray, memoryview, str]


def _strip_0x(s: str) -> str:
    return s[2:] if s.startswith(("0x", "0X")) else s


def to_account(
    value: AccountLike,
    *,
    width: Optional[int] = None,
    arg: str = "account",
) -> bytes:
    """
    Coerce `value` to account bytes.

    - str is parsed as hex; odd-length hex is rejected.
    - bytes-like values are copied to immutable bytes.
    - If `width` is given the result must be exactly that many bytes.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        out = bytes(value)
    elif isinstance(value, str):
        h = _strip_0x(value.strip())
        if len(h) % 2 != 0:
            raise InvalidInput("account hex must have even length", arg=arg)
        try:
            out = bytes.fromhex(h)
        except ValueError:
            raise InvalidInput("account is not valid hex", arg=arg) from None
    else:
        raise InvalidInput(
            "account must be bytes or hex string",
            arg=arg,
            data={"py_type": type(value).__name__},
        )
    if len(out) == 0:
        raise InvalidInput("account must be non-empty", arg=arg)
    if width is not None and len(out) != width:
        raise InvalidInput(
            f"account must be {width} bytes",
            arg=arg,
            data={"len": len(out)},
        )
    return out


def to_hex(b: Union[bytes, bytearray, memoryview]) -> str:
    """Encode bytes as 0x-prefixed lowercase hex."""
    return "0x" + bytes(b).hex()


__all__ = ["AccountLike", "to_account", "to_hex"]
