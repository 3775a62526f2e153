"""
tokenledger.runtime.host — the invoking environment around a Ledger.

The host supplies what the ledger core deliberately does not own:

* message dispatch by method name,
* per-call atomicity: every mutating call runs inside a journal checkpoint and
  an event buffer. Success commits state and delivers the buffered events.
  A `LedgerError` reverts both and comes back as a REVERT `CallResult`. Any
  other exception (including `InvariantViolation`) reverts both and propagates,
* optional supply-conservation checks after every call,
* logging and metrics.

    host = Host.deploy(alice, 10_000)
    res = host.call(alice, "transfer", bob, 1_000)
    assert res.is_success
    host.query("balance_of", bob)    # -> 1000
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from .. import metrics
from ..config import LedgerConfig
from ..errors import InvalidInput, LedgerError
from ..state.backend import StateBackend
from ..types.account import AccountLike
from ..types.result import CallResult
from .ledger import Ledger
from .sinks import EventSink

log = logging.getLogger(__name__)

# method name -> number of arguments after the caller
_MUTATING: Dict[str, int] = {"transfer": 2, "transfer_from": 3, "approve": 2}
# method name -> number of arguments
_QUERIES: Dict[str, int] = {"total_supply": 0, "balance_of": 1, "allowance": 2}


def _resolve(method: str, table: Dict[str, int], nargs: int) -> str:
    name = (method or "").strip().replace("-", "_")
    if name not in table:
        raise InvalidInput(f"unknown method: {method!r}", arg="method")
    if nargs != table[name]:
        raise InvalidInput(
            f"{name} takes {table[name]} argument(s), got {nargs}",
            arg="args",
        )
    return name


class Host:
    def __init__(self, ledger: Ledger) -> None:
        self.ledger = ledger

    @property
    def config(self) -> LedgerConfig:
        return self.ledger.config

    @property
    def sink(self) -> EventSink:
        return self.ledger.emitter.sink

    @classmethod
    def deploy(
        cls,
        caller: AccountLike,
        total_supply: int,
        *,
        backend: Optional[StateBackend] = None,
        sink: Optional[EventSink] = None,
        config: Optional[LedgerConfig] = None,
    ) -> "Host":
        with metrics.time_call("deploy"):
            try:
                ledger = Ledger.new(caller, total_supply, backend=backend, sink=sink, config=config)
            except Exception:
                metrics.observe_call(method="deploy", result="error")
                raise
        metrics.observe_call(method="deploy", result="success")
        return cls(ledger)

    def call(self, caller: AccountLike, method: str, *args: Any) -> CallResult:
        name = _resolve(method, _MUTATING, len(args))
        fn = getattr(self.ledger, name)
        journal = self.ledger.journal
        marker = journal.begin()

        with metrics.time_call(name):
            try:
                with self.ledger.emitter.buffered() as pending:
                    fn(caller, *args)
                    if self.config.check_invariants:
                        self.ledger.check_invariants()
            except LedgerError as e:
                journal.revert_to(marker)
                metrics.observe_call(method=name, result="revert")
                log.info("%s reverted: %s", name, e)
                return CallResult.revert(name, e)
            except BaseException:
                journal.revert_to(marker)
                metrics.observe_call(method=name, result="error")
                log.exception("%s failed; state rolled back", name)
                raise
            journal.commit_to(marker)

        metrics.observe_call(method=name, result="success")
        log.debug("%s ok (%d event(s))", name, len(pending))
        return CallResult.ok(name, events=tuple(pending))

    def query(self, method: str, *args: Any) -> int:
        name = _resolve(method, _QUERIES, len(args))
        return getattr(self.ledger, name)(*args)


__all__ = ["Host"]
