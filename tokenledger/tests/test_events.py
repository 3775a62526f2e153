from __future__ import annotations

import hashlib

import pytest

from tokenledger.runtime.emitter import EventEmitter
from tokenledger.runtime.sinks import (InMemoryEventSink, JsonlEventSink,
                                       NullEventSink, build_selectors)
from tokenledger.types.events import (ApproveEvent, TransferEvent,
                                      event_from_dict, field_topic, name_topic)
from tokenledger.tests.conftest import addr

A = addr("a")
B = addr("b")
C = addr("c")


# ---------------------------- event types -------------------------------------


def test_every_field_is_a_topic():
    ev = TransferEvent(from_=A, to=B, value=5)
    topics = ev.topics()
    assert len(topics) == 4
    assert topics[0] == hashlib.sha3_256(b"Transfer").digest()
    assert topics[1] == field_topic(A)
    assert topics[2] == field_topic(B)
    assert topics[3] == field_topic(5)


def test_none_source_has_its_own_topic():
    mint = TransferEvent(from_=None, to=A, value=10)
    assert mint.is_mint
    assert mint.topics()[1] == field_topic(None)
    assert field_topic(None) != field_topic(b"\x00")
    assert field_topic(b"") != field_topic(0)


def test_transfer_and_approve_differ_by_name_topic():
    t = TransferEvent(from_=A, to=B, value=1)
    a = ApproveEvent(from_=A, to=B, value=1)
    assert t.topics()[1:] == a.topics()[1:]
    assert t.topics()[0] != a.topics()[0]
    assert name_topic("Approve") == a.topics()[0]


def test_to_dict_and_back():
    mint = TransferEvent(from_=None, to=A, value=10_000)
    d = mint.to_dict()
    assert d == {"event": "Transfer", "from": None, "to": "0x" + A.hex(), "value": 10_000}
    assert event_from_dict(d) == mint

    appr = ApproveEvent(from_=A, to=B, value=999)
    assert event_from_dict(appr.to_dict()) == appr


def test_event_from_dict_rejects_unknown_kind():
    with pytest.raises(ValueError):
        event_from_dict({"event": "Burn", "from": None, "to": "0x01", "value": 1})
    with pytest.raises(ValueError):
        event_from_dict({"event": "Approve", "from": None, "to": "0x01", "value": 1})


# ---------------------------- sinks -------------------------------------------


def _fill(sink) -> None:
    sink.append(TransferEvent(from_=None, to=A, value=100), seq=0, log_index=0)
    sink.append(TransferEvent(from_=A, to=B, value=10), seq=1, log_index=0)
    sink.append(ApproveEvent(from_=A, to=C, value=50), seq=2, log_index=0)
    sink.append(TransferEvent(from_=A, to=C, value=20), seq=3, log_index=0)


def test_in_memory_filters_on_any_field():
    sink = InMemoryEventSink()
    _fill(sink)
    assert len(sink) == 4
    assert [r.seq for r in sink.get_logs(name="Transfer")] == [0, 1, 3]
    assert [r.seq for r in sink.get_logs(where={"to": C})] == [2, 3]
    assert [r.seq for r in sink.get_logs(name="Transfer", where={"to": C})] == [3]
    assert [r.seq for r in sink.get_logs(where={"from": None})] == [0]
    assert [r.seq for r in sink.get_logs(where={"value": [10, 20]})] == [1, 3]
    assert [r.seq for r in sink.get_logs(where={"from": A}, limit=2)] == [1, 2]


def test_unknown_filter_field():
    with pytest.raises(ValueError):
        build_selectors(where={"owner": A})


def test_jsonl_sink_persists_and_filters(tmp_path):
    path = tmp_path / "logs" / "events.jsonl"
    sink = JsonlEventSink(path)
    _fill(sink)
    sink.flush()
    sink.close()

    reopened = JsonlEventSink(path)
    try:
        recs = list(reopened.get_logs())
        assert [r.seq for r in recs] == [0, 1, 2, 3]
        assert recs[0].event == TransferEvent(from_=None, to=A, value=100)
        assert [r.seq for r in reopened.get_logs(name="Approve")] == [2]
        assert [r.seq for r in reopened.get_logs(where={"from": None})] == [0]
        assert reopened.last_seq() == 3
    finally:
        reopened.close()


def test_jsonl_sink_skips_malformed_lines(tmp_path):
    path = tmp_path / "events.jsonl"
    sink = JsonlEventSink(path)
    sink.append(TransferEvent(from_=A, to=B, value=1), seq=0, log_index=0)
    good_to = "0x" + B.hex()
    for bad in (
        "{not json}",
        '{"seq":9,"log_index":0,"event":"Transfer","from":null,"to":"0xzz","value":1}',
        '{"seq":9,"log_index":0,"event":"Transfer","from":null,"to":"%s","value":null}' % good_to,
        '{"seq":9,"log_index":0,"event":"Transfer","from":null,"to":"%s","value":-1}' % good_to,
        '{"seq":9,"event":"Transfer","to":"%s","value":1}' % good_to,
    ):
        sink._fh.write(bad + "\n")
    sink.append(TransferEvent(from_=B, to=A, value=1), seq=1, log_index=0)
    assert [r.seq for r in sink.get_logs()] == [0, 1]
    assert [r.seq for r in sink.get_logs(where={"to": A})] == [1]
    sink.close()


def test_null_sink_drops_everything():
    sink = NullEventSink()
    rec = sink.append(TransferEvent(from_=A, to=B, value=1), seq=0, log_index=0)
    assert rec.seq == 0
    assert list(sink.get_logs()) == []


# ---------------------------- emitter -----------------------------------------


def test_unbuffered_emits_deliver_immediately():
    sink = InMemoryEventSink()
    em = EventEmitter(sink)
    em.emit_transfer(None, A, 5)
    em.emit_approve(A, B, 3)
    assert [(r.seq, r.log_index) for r in sink.records] == [(0, 0), (1, 0)]
    assert em.events == (TransferEvent(None, A, 5), ApproveEvent(A, B, 3))


def test_buffer_delivers_on_success_under_one_seq():
    sink = InMemoryEventSink()
    em = EventEmitter(sink, start_seq=7)
    with em.buffered() as pending:
        em.emit_approve(A, B, 3)
        em.emit_transfer(A, B, 1)
        assert len(sink) == 0
    assert len(pending) == 2
    assert [(r.seq, r.log_index) for r in sink.records] == [(7, 0), (7, 1)]
    assert em.next_seq == 8


def test_buffer_discards_on_exception():
    sink = InMemoryEventSink()
    em = EventEmitter(sink)
    with pytest.raises(RuntimeError):
        with em.buffered():
            em.emit_transfer(A, B, 1)
            raise RuntimeError("boom")
    assert len(sink) == 0
    assert em.events == ()
    assert em.next_seq == 0


def test_nested_buffers_fold_into_parent():
    sink = InMemoryEventSink()
    em = EventEmitter(sink)
    with em.buffered():
        em.emit_transfer(A, B, 1)
        with pytest.raises(KeyError):
            with em.buffered():
                em.emit_transfer(A, C, 2)
                raise KeyError("inner")
        with em.buffered():
            em.emit_transfer(B, C, 3)
    assert [r.event.value for r in sink.records] == [1, 3]
    assert {r.seq for r in sink.records} == {0}


def test_typed_from_dict():
    d = TransferEvent(from_=A, to=B, value=2).to_dict()
    assert TransferEvent.from_dict(d) == TransferEvent(A, B, 2)
    with pytest.raises(ValueError):
        ApproveEvent.from_dict(d)


def test_history_is_bounded_but_sink_keeps_everything():
    sink = InMemoryEventSink()
    em = EventEmitter(sink, history=3)
    for v in range(5):
        em.emit_transfer(A, B, v)
    assert [e.value for e in em.events] == [2, 3, 4]
    assert [r.event.value for r in sink.records] == [0, 1, 2, 3, 4]

    silent = EventEmitter(InMemoryEventSink(), history=0)
    silent.emit_transfer(A, B, 1)
    assert silent.events == ()
    assert len(silent.sink) == 1
