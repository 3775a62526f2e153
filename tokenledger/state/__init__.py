"""
tokenledger.state — storage for balances and allowances.

Modules:
  - backend     : StateBackend protocol + MemoryBackend
  - journal     : nested checkpoints (begin/commit/revert) over a backend
  - balances    : BalanceStore (account -> u128)
  - allowances  : AllowanceStore ((owner, spender) -> u128)
"""

from __future__ import annotations

from .allowances import ALLOW_PREFIX, AllowanceStore, key_allow
from .backend import MemoryBackend, StateBackend
from .balances import BAL_PREFIX, BalanceStore, key_balance
from .journal import Journal

__all__ = [
    "StateBackend",
    "MemoryBackend",
    "Journal",
    "BalanceStore",
    "AllowanceStore",
    "BAL_PREFIX",
    "ALLOW_PREFIX",
    "key_balance",
    "key_allow",
]
