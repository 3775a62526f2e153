"""
tokenledger.runtime.emitter — build and deliver Transfer / Approve events.

The emitter sits between the transfer engine and an `EventSink`. Outside a
buffer every emit is delivered immediately as its own sequence number. Inside
`buffered()` events are held back until the block exits cleanly and are then
delivered together under one sequence number; if the block raises, the buffer
is dropped and nothing reaches the sink.

    with emitter.buffered() as pending:
        engine.transfer(alice, bob, 10)
    # pending now holds the delivered events of that block

Delivery is fire-and-forget from the engine's point of view: emits return
nothing and are never retried.
"""

from __future__ import annotations

import logging
from collections import deque
from contextlib import contextmanager
from typing import Deque, Iterator, List, Optional, Tuple

from .. import metrics
from ..types.events import ApproveEvent, LedgerEvent, TransferEvent
from .sinks import EventSink, InMemoryEventSink

log = logging.getLogger(__name__)

DEFAULT_HISTORY = 1024


class EventEmitter:
    def __init__(
        self,
        sink: Optional[EventSink] = None,
        *,
        start_seq: int = 0,
        history: int = DEFAULT_HISTORY,
    ) -> None:
        self._sink: EventSink = sink if sink is not None else InMemoryEventSink()
        self._seq = start_seq
        self._buffers: List[List[LedgerEvent]] = []
        # Recent deliveries only; the sink is the full record.
        self._history: Deque[LedgerEvent] = deque(maxlen=max(0, history))

    @property
    def sink(self) -> EventSink:
        return self._sink

    @property
    def next_seq(self) -> int:
        return self._seq

    @property
    def events(self) -> Tuple[LedgerEvent, ...]:
        """The most recent delivered events (up to `history`), oldest first."""
        return tuple(self._history)

    # ------------------------------------------------------------------ emit

    def emit_transfer(self, from_: Optional[bytes], to: bytes, value: int) -> None:
        self._emit(TransferEvent(from_=from_, to=to, value=value))

    def emit_approve(self, from_: bytes, to: bytes, value: int) -> None:
        self._emit(ApproveEvent(from_=from_, to=to, value=value))

    def _emit(self, event: LedgerEvent) -> None:
        if self._buffers:
            self._buffers[-1].append(event)
        else:
            self._deliver([event])

    # -------------------------------------------------------------- buffering

    @contextmanager
    def buffered(self) -> Iterator[List[LedgerEvent]]:
        """
        Hold events emitted inside the block. Nested buffers fold into their
        parent on success; only the outermost one delivers to the sink.
        """
        buf: List[LedgerEvent] = []
        self._buffers.append(buf)
        try:
            yield buf
        except BaseException:
            self._buffers.pop()
            if buf:
                log.debug("Discarding %d buffered event(s)", len(buf))
            raise
        self._buffers.pop()
        if self._buffers:
            self._buffers[-1].extend(buf)
        elif buf:
            self._deliver(buf)

    def _deliver(self, batch: List[LedgerEvent]) -> None:
        seq = self._seq
        self._seq += 1
        for idx, ev in enumerate(batch):
            self._sink.append(ev, seq=seq, log_index=idx)
            self._history.append(ev)
            metrics.observe_event(ev.name)
        log.debug("Delivered %d event(s) at seq=%d", len(batch), seq)


__all__ = ["EventEmitter"]
