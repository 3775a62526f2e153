"""
tokenledger — a fungible-token ledger with checked u128 balances, allowances,
indexed Transfer/Approve events and an atomic host boundary.

Quick start
-----------
    from tokenledger import Host

    host = Host.deploy(alice, 10_000)
    host.call(alice, "transfer", bob, 1_000)
    host.query("balance_of", bob)   # -> 1000
"""

from __future__ import annotations

from .config import LedgerConfig, load_config
from .errors import (AllowanceTooLow, BalanceTooLow, InvalidInput,
                     InvariantViolation, LedgerError)
from .runtime import (EventEmitter, EventRecord, EventSink, Host,
                      InMemoryEventSink, JsonlEventSink, Ledger, NullEventSink,
                      TransferEngine)
from .types import (ApproveEvent, CallResult, CallStatus, TransferEvent,
                    to_account, to_hex)
from .version import __version__

__all__ = [
    "__version__",
    "LedgerConfig",
    "load_config",
    "LedgerError",
    "BalanceTooLow",
    "AllowanceTooLow",
    "InvalidInput",
    "InvariantViolation",
    "Ledger",
    "Host",
    "TransferEngine",
    "EventEmitter",
    "EventRecord",
    "EventSink",
    "InMemoryEventSink",
    "JsonlEventSink",
    "NullEventSink",
    "TransferEvent",
    "ApproveEvent",
    "CallResult",
    "CallStatus",
    "to_account",
    "to_hex",
]
