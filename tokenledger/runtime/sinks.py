"""
tokenledger.runtime.sinks — pluggable event sinks.

This module defines the interface external subscribers use to receive and
query ledger events, with three backends:

- InMemoryEventSink: fast, test/dev friendly; keeps all records in RAM.
- JsonlEventSink: append-only JSONL file; durable and simple to operate.
- NullEventSink: drops everything.

Ordering: (seq, log_index) strictly increases for appended records. `seq` is
the host call number, `log_index` the position of the event inside that call.

Filtering is topic-based. Every event field is its own topic, so any subset of
fields can be matched:

    sink.get_logs(name="Transfer", where={"to": bob})
    sink.get_logs(where={"from": None})            # construction-time credit
    sink.get_logs(where={"value": [100, 200]})     # OR of candidates
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import (Any, Iterable, List, Mapping, Optional, Protocol, Sequence,
                    Tuple, Union, runtime_checkable)

from ..types.account import to_hex
from ..types.events import (LedgerEvent, event_from_dict, field_topic,
                            name_topic)

log = logging.getLogger(__name__)

TopicSelector = Optional[Union[bytes, Sequence[bytes]]]
# Per-position topic filter. None = wildcard; bytes = exact; sequence = OR-of-options.

_FIELD_POS = {"from": 1, "to": 2, "value": 3}


@dataclass(frozen=True)
class EventRecord:
    """An event together with its position in the ledger's history."""

    seq: int
    log_index: int
    event: LedgerEvent

    @property
    def name(self) -> str:
        return self.event.name

    @property
    def topics(self) -> Tuple[bytes, ...]:
        return self.event.topics()

    def to_dict(self) -> dict:
        out = {"seq": self.seq, "log_index": self.log_index}
        out.update(self.event.to_dict())
        out["topics"] = [to_hex(t) for t in self.topics]
        return out


@runtime_checkable
class EventSink(Protocol):
    def append(self, event: LedgerEvent, *, seq: int, log_index: int) -> EventRecord:
        """Append a single event with its position. Returns the stored record."""

    def get_logs(
        self,
        *,
        name: Optional[str] = None,
        where: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> Iterable[EventRecord]:
        """Iterate matching records in ascending (seq, log_index) order."""

    def flush(self) -> None:
        """Force persistence, if applicable."""

    def close(self) -> None:
        """Release resources (files, buffers)."""


# =============================================================================
# Common filter logic
# =============================================================================


def build_selectors(
    name: Optional[str] = None, where: Optional[Mapping[str, Any]] = None
) -> List[TopicSelector]:
    """
    Translate a name + field filter into per-position topic selectors.

    A `where` value may be a single field value (None included) or a list/tuple
    of candidates.
    """
    selectors: List[TopicSelector] = [None, None, None, None]
    if name is not None:
        selectors[0] = name_topic(name)
    for key, want in (where or {}).items():
        pos = _FIELD_POS.get(key)
        if pos is None:
            raise ValueError(f"unknown event field: {key!r}")
        if isinstance(want, (list, tuple)):
            selectors[pos] = [field_topic(w) for w in want]
        else:
            selectors[pos] = field_topic(want)
    while selectors and selectors[-1] is None:
        selectors.pop()
    return selectors


def _topic_pos_matches(value: bytes, selector: TopicSelector) -> bool:
    if selector is None:
        return True
    if isinstance(selector, (bytes, bytearray)):
        return value == bytes(selector)
    return any(value == bytes(cand) for cand in selector)


def topics_match(event_topics: Sequence[bytes], selectors: Sequence[TopicSelector]) -> bool:
    if len(selectors) > len(event_topics):
        return False
    return all(_topic_pos_matches(event_topics[i], sel) for i, sel in enumerate(selectors))


def _limited(it: Iterable[EventRecord], limit: Optional[int]) -> Iterable[EventRecord]:
    if limit is None:
        yield from it
        return
    n = 0
    for rec in it:
        if n >= limit:
            break
        yield rec
        n += 1


# =============================================================================
# In-memory sink
# =============================================================================


class InMemoryEventSink:
    """Keeps every record in RAM. Suitable for tests and short-lived processes."""

    def __init__(self) -> None:
        self._records: List[EventRecord] = []

    def append(self, event: LedgerEvent, *, seq: int, log_index: int) -> EventRecord:
        rec = EventRecord(seq=seq, log_index=log_index, event=event)
        self._records.append(rec)
        return rec

    def get_logs(
        self,
        *,
        name: Optional[str] = None,
        where: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> Iterable[EventRecord]:
        selectors = build_selectors(name, where)
        it = (rec for rec in self._records if topics_match(rec.topics, selectors))
        return list(_limited(it, limit))

    @property
    def records(self) -> List[EventRecord]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def flush(self) -> None:
        return

    def close(self) -> None:
        self._records.clear()


# =============================================================================
# JSONL sink (durable)
# =============================================================================


class JsonlEventSink:
    """
    Append-only JSONL sink. Each line is one EventRecord:

        {"seq": 3, "log_index": 0, "event": "Transfer",
         "from": "0x…", "to": "0x…", "value": 1000, "topics": ["0x…", …]}
    """

    def __init__(self, path: Union[str, os.PathLike]) -> None:
        self._path = os.fspath(path)
        os.makedirs(os.path.dirname(self._path) or ".", exist_ok=True)
        self._fh = open(self._path, "a+", encoding="utf-8", buffering=1)

    @property
    def path(self) -> str:
        return self._path

    def _encode(self, rec: EventRecord) -> str:
        return json.dumps(rec.to_dict(), separators=(",", ":"))

    @staticmethod
    def _decode(line: str) -> EventRecord:
        obj = json.loads(line)
        return EventRecord(
            seq=int(obj["seq"]),
            log_index=int(obj["log_index"]),
            event=event_from_dict(obj),
        )

    def append(self, event: LedgerEvent, *, seq: int, log_index: int) -> EventRecord:
        rec = EventRecord(seq=seq, log_index=log_index, event=event)
        self._fh.write(self._encode(rec) + "\n")
        return rec

    def get_logs(
        self,
        *,
        name: Optional[str] = None,
        where: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> Iterable[EventRecord]:
        selectors = build_selectors(name, where)
        self._fh.flush()
        self._fh.seek(0)
        out: List[EventRecord] = []
        for line in self._fh:
            if not line.strip():
                continue
            try:
                rec = self._decode(line)
                hit = topics_match(rec.topics, selectors)
            except Exception as e:
                log.warning("Skipping malformed event line: %s (%r)", line[:120], e)
                continue
            if hit:
                out.append(rec)
                if limit is not None and len(out) >= limit:
                    break
        return out

    def last_seq(self) -> int:
        """Highest seq on disk, or -1 for an empty log."""
        recs = list(self.get_logs())
        return recs[-1].seq if recs else -1

    def flush(self) -> None:
        self._fh.flush()
        os.fsync(self._fh.fileno())

    def close(self) -> None:
        if not self._fh.closed:
            self._fh.flush()
            self._fh.close()


# =============================================================================
# Null sink
# =============================================================================


class NullEventSink:
    """A sink that drops everything."""

    def append(self, event: LedgerEvent, *, seq: int, log_index: int) -> EventRecord:
        return EventRecord(seq=seq, log_index=log_index, event=event)

    def get_logs(
        self,
        *,
        name: Optional[str] = None,
        where: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> Iterable[EventRecord]:
        return []

    def flush(self) -> None:
        return

    def close(self) -> None:
        return


__all__ = [
    "EventRecord",
    "TopicSelector",
    "EventSink",
    "InMemoryEventSink",
    "JsonlEventSink",
    "NullEventSink",
    "build_selectors",
    "topics_match",
]
