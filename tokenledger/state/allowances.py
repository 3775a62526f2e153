"""
tokenledger.state.allowances — sparse (owner, spender) → allowance mapping.

Storage layout:
    ALLOW_PREFIX || u8(len(owner)) || owner || spender  ->  u128 big-endian

The owner length byte keeps keys unambiguous without reserving a separator
byte, since account bytes are opaque and may contain any value.
"""

from __future__ import annotations

from typing import Final, Iterator, Tuple

from ..math import require_u128
from ..math.safe_uint import decode_u128, encode_u128
from .backend import StateBackend

ALLOW_PREFIX: Final[bytes] = b"tok:allow:"


def key_allow(owner: bytes, spender: bytes) -> bytes:
    owner = bytes(owner)
    if not 0 < len(owner) <= 255:
        raise ValueError("owner must be 1..255 bytes")
    return ALLOW_PREFIX + bytes([len(owner)]) + owner + bytes(spender)


def split_allow_key(key: bytes) -> Tuple[bytes, bytes]:
    body = key[len(ALLOW_PREFIX):]
    n = body[0]
    return body[1 : 1 + n], body[1 + n :]


class AllowanceStore:
    def __init__(self, backend: StateBackend) -> None:
        self._backend = backend

    def get(self, owner: bytes, spender: bytes) -> int:
        return decode_u128(self._backend.get(key_allow(owner, spender)))

    def set(self, owner: bytes, spender: bytes, allowance: int) -> None:
        require_u128(allowance, arg="allowance")
        k = key_allow(owner, spender)
        if allowance == 0:
            self._backend.delete(k)
        else:
            self._backend.set(k, encode_u128(allowance))

    def items(self) -> Iterator[Tuple[Tuple[bytes, bytes], int]]:
        """Non-zero allowances in key order."""
        for k, v in self._backend.items(ALLOW_PREFIX):
            amt = decode_u128(v)
            if amt:
                yield split_allow_key(k), amt


__all__ = ["ALLOW_PREFIX", "key_allow", "split_allow_key", "AllowanceStore"]
