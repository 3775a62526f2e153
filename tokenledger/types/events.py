"""
tokenledger.types.events — Transfer / Approve event records.

Both events expose every field as an individually indexable topic, so external
log consumers can filter on any field without decoding payloads:

    topics = (sha3("Transfer"), topic(from), topic(to), topic(value))

Field topics use a one-byte tag so values of different kinds never collide:

    None      -> sha3(0x00)
    account   -> sha3(0x01 || account)
    amount    -> sha3(0x02 || u128_be(amount))

`Transfer.from_` is `None` only for the construction-time credit; it is never
replaced with a sentinel account.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple, Union

from ..math import U128_BYTES
from .account import to_account, to_hex

TRANSFER: str = "Transfer"
APPROVE: str = "Approve"

_TAG_NONE = b"\x00"
_TAG_ACCOUNT = b"\x01"
_TAG_AMOUNT = b"\x02"


def _h(data: bytes) -> bytes:
    return hashlib.sha3_256(data).digest()


def name_topic(name: str) -> bytes:
    return _h(name.encode("ascii"))


def field_topic(value: Union[None, bytes, int]) -> bytes:
    """Topic for a single event field value."""
    if value is None:
        return _h(_TAG_NONE)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return _h(_TAG_ACCOUNT + bytes(value))
    if isinstance(value, int) and not isinstance(value, bool):
        return _h(_TAG_AMOUNT + int(value).to_bytes(U128_BYTES, "big"))
    raise TypeError(f"unsupported event field type: {type(value).__name__}")


class _LedgerEvent:
    name: ClassVar[str]

    def fields(self) -> Dict[str, Any]:
        raise NotImplementedError

    def topics(self) -> Tuple[bytes, ...]:
        return (name_topic(self.name),) + tuple(field_topic(v) for v in self.fields().values())

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"event": self.name}
        for k, v in self.fields().items():
            if v is None:
                out[k] = None
            elif isinstance(v, (bytes, bytearray)):
                out[k] = to_hex(v)
            else:
                out[k] = int(v)
        return out

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "LedgerEvent":
        ev = event_from_dict(d)
        if not isinstance(ev, cls):
            raise ValueError(f"expected {cls.name} event, got {ev.name}")
        return ev


@dataclass(frozen=True)
class TransferEvent(_LedgerEvent):
    from_: Optional[bytes]
    to: bytes
    value: int

    name: ClassVar[str] = TRANSFER

    def fields(self) -> Dict[str, Any]:
        return {"from": self.from_, "to": self.to, "value": self.value}

    @property
    def is_mint(self) -> bool:
        return self.from_ is None


@dataclass(frozen=True)
class ApproveEvent(_LedgerEvent):
    from_: bytes
    to: bytes
    value: int

    name: ClassVar[str] = APPROVE

    def fields(self) -> Dict[str, Any]:
        return {"from": self.from_, "to": self.to, "value": self.value}


LedgerEvent = Union[TransferEvent, ApproveEvent]


def event_from_dict(d: Mapping[str, Any]) -> LedgerEvent:
    """Parse the output of `to_dict()` back into an event."""
    kind = d.get("event")
    raw_from = d.get("from")
    to = to_account(d["to"], arg="to")
    value = int(d["value"])
    if kind == TRANSFER:
        frm = None if raw_from is None else to_account(raw_from, arg="from")
        return TransferEvent(from_=frm, to=to, value=value)
    if kind == APPROVE:
        if raw_from is None:
            raise ValueError("Approve event requires 'from'")
        return ApproveEvent(from_=to_account(raw_from, arg="from"), to=to, value=value)
    raise ValueError(f"unknown event kind: {kind!r}")


__all__ = [
    "TRANSFER",
    "APPROVE",
    "TransferEvent",
    "ApproveEvent",
    "LedgerEvent",
    "name_topic",
    "field_topic",
    "event_from_dict",
]
