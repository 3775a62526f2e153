"""
tokenledger.state.balances — sparse account → balance mapping.

Storage layout:
    BAL_PREFIX || account  ->  u128 big-endian (16 bytes)

An absent key reads as zero. Writing zero deletes the key, so the backend only
ever holds accounts with a non-zero balance.
"""

from __future__ import annotations

from typing import Final, Iterator, Tuple

from ..math import require_u128
from ..math.safe_uint import decode_u128, encode_u128
from .backend import StateBackend

BAL_PREFIX: Final[bytes] = b"tok:bal:"


def key_balance(account: bytes) -> bytes:
    return BAL_PREFIX + bytes(account)


class BalanceStore:
    def __init__(self, backend: StateBackend) -> None:
        self._backend = backend

    def get(self, account: bytes) -> int:
        return decode_u128(self._backend.get(key_balance(account)))

    def set(self, account: bytes, balance: int) -> None:
        # Invariant preservation (conservation) is the caller's job.
        require_u128(balance, arg="balance")
        k = key_balance(account)
        if balance == 0:
            self._backend.delete(k)
        else:
            self._backend.set(k, encode_u128(balance))

    def items(self) -> Iterator[Tuple[bytes, int]]:
        """Non-zero balances in account order."""
        n = len(BAL_PREFIX)
        for k, v in self._backend.items(BAL_PREFIX):
            bal = decode_u128(v)
            if bal:
                yield k[n:], bal

    def total(self) -> int:
        return sum(bal for _, bal in self.items())

    def __contains__(self, account: bytes) -> bool:
        return self.get(account) != 0


__all__ = ["BAL_PREFIX", "key_balance", "BalanceStore"]
