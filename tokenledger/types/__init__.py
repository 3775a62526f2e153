"""
tokenledger.types — small, dependency-free value types shared across layers.
"""

from __future__ import annotations

from .account import AccountLike, to_account, to_hex
from .events import (APPROVE, TRANSFER, ApproveEvent, LedgerEvent,
                     TransferEvent, event_from_dict, field_topic, name_topic)
from .result import CallResult
from .status import CallStatus

__all__ = [
    "AccountLike",
    "to_account",
    "to_hex",
    "TRANSFER",
    "APPROVE",
    "TransferEvent",
    "ApproveEvent",
    "LedgerEvent",
    "event_from_dict",
    "field_topic",
    "name_topic",
    "CallResult",
    "CallStatus",
]
