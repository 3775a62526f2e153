"""
tokenledger.runtime — the ledger and the machinery that drives it.

Modules:
  - sinks    : EventRecord, EventSink protocol, in-memory / JSONL / null sinks
  - emitter  : EventEmitter (immediate or buffered delivery)
  - engine   : TransferEngine (transfer / approve / transfer_from)
  - ledger   : Ledger (validation, queries, snapshots)
  - host     : Host (dispatch, per-call rollback, CallResult)
"""

from __future__ import annotations

from .emitter import EventEmitter
from .engine import TransferEngine
from .host import Host
from .ledger import Ledger
from .sinks import (EventRecord, EventSink, InMemoryEventSink, JsonlEventSink,
                    NullEventSink)

__all__ = [
    "EventRecord",
    "EventSink",
    "InMemoryEventSink",
    "JsonlEventSink",
    "NullEventSink",
    "EventEmitter",
    "TransferEngine",
    "Ledger",
    "Host",
]
