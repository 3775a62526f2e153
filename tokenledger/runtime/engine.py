"""
tokenledger.runtime.engine — transfer / approve / transfer_from state transitions.

Every mutating entry point takes the caller explicitly; the engine never infers
identity from ambient state. Inputs are assumed already validated (accounts
normalized, amounts in u128 range) by `Ledger`.

Ordering rules
--------------
* Sufficiency checks run before any write. A failing call raises its typed
  error and leaves balances, allowances and the event stream untouched.
* `transfer_from` checks the allowance first and the owner's balance second,
  then mutates. Decrementing the allowance before checking the balance would
  leave a reduced allowance behind when the balance check fails, unless the
  caller's environment rolls the whole call back. `Host` also rolls back, but
  the engine does not rely on it.
* The sender is debited before the recipient's balance is read. With the
  opposite order a self-transfer writes `old + value` last and mints `value`
  out of thin air; debiting first makes `transfer(x, x, v)` a no-op on
  balances.

Zero-value transfers and delegated transfers are ordinary calls: they pass the
checks trivially and still emit a Transfer event.
"""

from __future__ import annotations

import logging

from ..errors import AllowanceTooLow, BalanceTooLow
from ..math.safe_uint import u128_add, u128_sub
from ..state.allowances import AllowanceStore
from ..state.balances import BalanceStore
from .emitter import EventEmitter

log = logging.getLogger(__name__)


class TransferEngine:
    def __init__(
        self,
        balances: BalanceStore,
        allowances: AllowanceStore,
        emitter: EventEmitter,
    ) -> None:
        self.balances = balances
        self.allowances = allowances
        self.emitter = emitter

    def transfer(self, caller: bytes, to: bytes, value: int) -> None:
        from_bal = self.balances.get(caller)
        if from_bal < value:
            raise BalanceTooLow(account=caller, balance=from_bal, value=value)
        self._move(caller, to, value, from_bal)
        self.emitter.emit_transfer(caller, to, value)

    def approve(self, caller: bytes, spender: bytes, value: int) -> None:
        # Overwrites; not additive.
        self.allowances.set(caller, spender, value)
        self.emitter.emit_approve(caller, spender, value)

    def transfer_from(self, caller: bytes, from_: bytes, to: bytes, value: int) -> None:
        allowance = self.allowances.get(from_, caller)
        if allowance < value:
            raise AllowanceTooLow(owner=from_, spender=caller, allowance=allowance, value=value)
        from_bal = self.balances.get(from_)
        if from_bal < value:
            raise BalanceTooLow(account=from_, balance=from_bal, value=value)

        self.allowances.set(from_, caller, u128_sub(allowance, value))
        self._move(from_, to, value, from_bal)
        self.emitter.emit_transfer(from_, to, value)

    def _move(self, from_: bytes, to: bytes, value: int, from_bal: int) -> None:
        self.balances.set(from_, u128_sub(from_bal, value))
        # Read after the debit so from_ == to nets out.
        to_bal = self.balances.get(to)
        self.balances.set(to, u128_add(to_bal, value))
        log.debug("moved %d from %s to %s", value, from_.hex(), to.hex())


__all__ = ["TransferEngine"]
