"""
tokenledger.runtime.ledger — the public token ledger.

`Ledger` owns the storage view (a `Journal` over a `StateBackend`), the balance
and allowance stores, the event emitter and the transfer engine. It validates
everything that crosses its surface (accounts, amounts) and then delegates:
queries go straight to a store, mutations go through `TransferEngine`.

Construction
------------
    ledger = Ledger.new(alice, 10_000)          # credits alice, emits Transfer(None → alice)
    ledger = Ledger(backend)                    # reattach to an already-deployed backend
    ledger = Ledger.from_snapshot(data)         # restore from `snapshot()` output, no events

Total supply is written once at construction under `K_TOTAL` and never changes.
Supply conservation (Σ balances == total supply) can be checked on demand with
`check_invariants()`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..config import LedgerConfig, load_config
from ..errors import InvalidInput, InvariantViolation
from ..math import require_u128
from ..math.safe_uint import decode_u128, encode_u128
from ..state.allowances import AllowanceStore
from ..state.backend import MemoryBackend, StateBackend
from ..state.balances import BalanceStore
from ..state.journal import Journal
from ..types.account import AccountLike, to_account, to_hex
from ..types.events import LedgerEvent
from .emitter import EventEmitter
from .engine import TransferEngine
from .sinks import EventSink

log = logging.getLogger(__name__)

K_TOTAL = b"tok:total"

SNAPSHOT_VERSION = 1


def _parse_amount(raw: Any, *, arg: str) -> int:
    # Snapshots carry amounts as decimal strings; ints are accepted too.
    if isinstance(raw, str):
        try:
            raw = int(raw, 10)
        except ValueError:
            raise InvalidInput("amount is not a decimal integer", arg=arg) from None
    require_u128(raw, arg=arg)
    return raw


class Ledger:
    def __init__(
        self,
        backend: Optional[StateBackend] = None,
        *,
        sink: Optional[EventSink] = None,
        config: Optional[LedgerConfig] = None,
        start_seq: int = 0,
    ) -> None:
        self.config = config or load_config()
        self.journal = Journal(backend if backend is not None else MemoryBackend())
        self.balances = BalanceStore(self.journal)
        self.allowances = AllowanceStore(self.journal)
        self.emitter = EventEmitter(sink, start_seq=start_seq)
        self.engine = TransferEngine(self.balances, self.allowances, self.emitter)

    # ------------------------------------------------------------------ #
    # Construction
    # ------------------------------------------------------------------ #

    @classmethod
    def new(
        cls,
        caller: AccountLike,
        total_supply: int,
        *,
        backend: Optional[StateBackend] = None,
        sink: Optional[EventSink] = None,
        config: Optional[LedgerConfig] = None,
    ) -> "Ledger":
        """Deploy: credit the whole supply to `caller` and emit the initial Transfer."""
        ledger = cls(backend, sink=sink, config=config)
        who = ledger._account(caller, "caller")
        require_u128(total_supply, arg="total_supply")
        if ledger.is_initialized():
            raise InvalidInput("ledger already initialized", arg="backend")

        ledger.journal.set(K_TOTAL, encode_u128(total_supply))
        ledger.balances.set(who, total_supply)
        ledger.emitter.emit_transfer(None, who, total_supply)
        log.info("Ledger deployed: supply=%d holder=%s", total_supply, to_hex(who))
        return ledger

    def is_initialized(self) -> bool:
        return self.journal.get(K_TOTAL) is not None

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def total_supply(self) -> int:
        return decode_u128(self.journal.get(K_TOTAL))

    def balance_of(self, account: AccountLike) -> int:
        return self.balances.get(self._account(account, "account"))

    def allowance(self, owner: AccountLike, spender: AccountLike) -> int:
        return self.allowances.get(self._account(owner, "owner"), self._account(spender, "spender"))

    def holders(self) -> List[Tuple[bytes, int]]:
        """Accounts with a non-zero balance, in account order."""
        return list(self.balances.items())

    def approvals(self) -> List[Tuple[Tuple[bytes, bytes], int]]:
        """Non-zero allowances keyed by (owner, spender)."""
        return list(self.allowances.items())

    @property
    def events(self) -> Tuple[LedgerEvent, ...]:
        return self.emitter.events

    # ------------------------------------------------------------------ #
    # Mutations (explicit caller)
    # ------------------------------------------------------------------ #

    def transfer(self, caller: AccountLike, to: AccountLike, value: int) -> None:
        c = self._account(caller, "caller")
        t = self._account(to, "to")
        require_u128(value)
        self.engine.transfer(c, t, value)

    def transfer_from(
        self, caller: AccountLike, from_: AccountLike, to: AccountLike, value: int
    ) -> None:
        c = self._account(caller, "caller")
        f = self._account(from_, "from")
        t = self._account(to, "to")
        require_u128(value)
        self.engine.transfer_from(c, f, t, value)

    def approve(self, caller: AccountLike, spender: AccountLike, value: int) -> None:
        c = self._account(caller, "caller")
        s = self._account(spender, "spender")
        require_u128(value)
        self.engine.approve(c, s, value)

    # ------------------------------------------------------------------ #
    # Invariants
    # ------------------------------------------------------------------ #

    def check_invariants(self) -> None:
        """Raise InvariantViolation unless Σ balances == total supply."""
        total = self.total_supply()
        held = self.balances.total()
        if held != total:
            raise InvariantViolation(
                "supply not conserved",
                context={"total_supply": str(total), "sum_balances": str(held)},
            )

    # ------------------------------------------------------------------ #
    # Snapshots
    # ------------------------------------------------------------------ #

    def snapshot(self) -> Dict[str, Any]:
        """JSON-friendly dump of the full ledger state."""
        return {
            "version": SNAPSHOT_VERSION,
            "total_supply": str(self.total_supply()),
            "balances": {to_hex(acct): str(bal) for acct, bal in self.balances.items()},
            "allowances": [
                {"owner": to_hex(o), "spender": to_hex(s), "value": str(v)}
                for (o, s), v in self.allowances.items()
            ],
            "event_seq": self.emitter.next_seq,
        }

    @classmethod
    def from_snapshot(
        cls,
        data: Mapping[str, Any],
        *,
        backend: Optional[StateBackend] = None,
        sink: Optional[EventSink] = None,
        config: Optional[LedgerConfig] = None,
    ) -> "Ledger":
        """
        Rebuild a ledger from `snapshot()` output. No events are emitted.
        Raises InvalidInput for malformed data and InvariantViolation when the
        balances do not add up to the recorded supply.
        """
        if not isinstance(data, Mapping):
            raise InvalidInput("snapshot must be a mapping", arg="snapshot")
        version = data.get("version", SNAPSHOT_VERSION)
        if version != SNAPSHOT_VERSION:
            raise InvalidInput("unsupported snapshot version", arg="version", data={"version": version})
        if "total_supply" not in data:
            raise InvalidInput("snapshot is missing total_supply", arg="total_supply")

        start_seq = data.get("event_seq", 0)
        if not isinstance(start_seq, int) or isinstance(start_seq, bool) or start_seq < 0:
            raise InvalidInput("event_seq must be a non-negative integer", arg="event_seq")

        ledger = cls(backend, sink=sink, config=config, start_seq=start_seq)
        if ledger.is_initialized():
            raise InvalidInput("ledger already initialized", arg="backend")

        marker = ledger.journal.begin()
        try:
            ledger._restore(data)
            ledger.check_invariants()
        except BaseException:
            ledger.journal.revert_to(marker)
            raise
        ledger.journal.commit_to(marker)
        log.debug("Ledger restored: %d holder(s)", len(ledger.holders()))
        return ledger

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _restore(self, data: Mapping[str, Any]) -> None:
        self.journal.set(K_TOTAL, encode_u128(_parse_amount(data["total_supply"], arg="total_supply")))
        for raw_acct, raw_bal in dict(data.get("balances") or {}).items():
            self.balances.set(self._account(raw_acct, "balances"), _parse_amount(raw_bal, arg="balances"))
        for entry in data.get("allowances") or ():
            try:
                owner, spender, value = entry["owner"], entry["spender"], entry["value"]
            except (KeyError, TypeError):
                raise InvalidInput("allowance entry needs owner, spender, value", arg="allowances") from None
            self.allowances.set(
                self._account(owner, "owner"),
                self._account(spender, "spender"),
                _parse_amount(value, arg="allowances"),
            )

    def _account(self, value: AccountLike, arg: str) -> bytes:
        width = self.config.account_bytes if self.config.strict_accounts else None
        return to_account(value, width=width, arg=arg)


__all__ = ["Ledger", "K_TOTAL", "SNAPSHOT_VERSION"]
