from __future__ import annotations

import pytest

from tokenledger.state import Journal, MemoryBackend


def test_pass_through_without_checkpoint():
    base = MemoryBackend()
    j = Journal(base)
    j.set(b"k", b"v")
    assert base.get(b"k") == b"v"
    j.delete(b"k")
    assert base.get(b"k") is None
    assert j.depth() == 0


def test_revert_discards_writes():
    base = MemoryBackend({b"a": b"1"})
    j = Journal(base)
    j.begin()
    j.set(b"a", b"2")
    j.set(b"b", b"3")
    j.delete(b"a")
    assert j.get(b"a") is None
    assert j.get(b"b") == b"3"
    assert base.get(b"b") is None
    j.revert()
    assert j.get(b"a") == b"1"
    assert j.get(b"b") is None


def test_commit_applies_deletes_to_base():
    base = MemoryBackend({b"a": b"1", b"b": b"2"})
    j = Journal(base)
    j.begin()
    j.delete(b"a")
    j.set(b"c", b"3")
    j.commit()
    assert dict(base.items()) == {b"b": b"2", b"c": b"3"}


def test_nested_checkpoints():
    base = MemoryBackend()
    j = Journal(base)
    outer = j.begin()
    j.set(b"x", b"1")
    inner = j.begin()
    assert (outer, inner) == (0, 1)
    j.set(b"x", b"2")
    j.set(b"y", b"9")
    j.revert_to(inner)
    assert j.get(b"x") == b"1"
    assert j.get(b"y") is None
    j.begin()
    j.set(b"y", b"8")
    j.commit()  # into outer
    assert base.get(b"y") is None
    j.commit_to(outer)
    assert j.depth() == 0
    assert dict(base.items()) == {b"x": b"1", b"y": b"8"}


def test_items_merges_overlays_in_key_order():
    base = MemoryBackend({b"p:1": b"a", b"p:3": b"c", b"q:1": b"z"})
    j = Journal(base)
    j.begin()
    j.set(b"p:2", b"b")
    j.delete(b"p:3")
    assert list(j.items(b"p:")) == [(b"p:1", b"a"), (b"p:2", b"b")]
    assert j.pending_keys() == 2


def test_commit_or_revert_without_checkpoint_raises():
    j = Journal(MemoryBackend())
    with pytest.raises(RuntimeError):
        j.commit()
    with pytest.raises(RuntimeError):
        j.revert()


def test_rejects_non_bytes_keys():
    j = Journal(MemoryBackend())
    with pytest.raises(TypeError):
        j.set("k", b"v")
