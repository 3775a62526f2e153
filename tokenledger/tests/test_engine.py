from __future__ import annotations

import pytest

from tokenledger.errors import AllowanceTooLow, BalanceTooLow, InvariantViolation
from tokenledger.math import U128_MAX
from tokenledger.runtime.emitter import EventEmitter
from tokenledger.runtime.engine import TransferEngine
from tokenledger.runtime.sinks import InMemoryEventSink
from tokenledger.state import AllowanceStore, BalanceStore, MemoryBackend
from tokenledger.types.events import ApproveEvent, TransferEvent
from tokenledger.tests.conftest import addr

A = addr("a")
B = addr("b")
C = addr("c")


@pytest.fixture
def engine() -> TransferEngine:
    be = MemoryBackend()
    eng = TransferEngine(BalanceStore(be), AllowanceStore(be), EventEmitter(InMemoryEventSink()))
    eng.balances.set(A, 1_000)
    return eng


def _state(eng: TransferEngine):
    return dict(eng.balances.items()), dict(eng.allowances.items()), eng.emitter.events


def test_transfer_moves_and_emits(engine):
    engine.transfer(A, B, 300)
    assert engine.balances.get(A) == 700
    assert engine.balances.get(B) == 300
    assert engine.emitter.events == (TransferEvent(A, B, 300),)


def test_transfer_whole_balance_clears_key(engine):
    engine.transfer(A, B, 1_000)
    assert A not in engine.balances
    assert dict(engine.balances.items()) == {B: 1_000}


def test_transfer_over_balance_leaves_no_trace(engine):
    before = _state(engine)
    with pytest.raises(BalanceTooLow) as ei:
        engine.transfer(A, B, 1_001)
    assert ei.value.data == {"account": "0x" + A.hex(), "balance": "1000", "value": "1001"}
    assert _state(engine) == before


def test_self_transfer_does_not_mint(engine):
    engine.transfer(A, A, 400)
    assert engine.balances.get(A) == 1_000
    assert engine.balances.total() == 1_000
    assert engine.emitter.events == (TransferEvent(A, A, 400),)


def test_self_transfer_over_balance_fails(engine):
    with pytest.raises(BalanceTooLow):
        engine.transfer(A, A, 1_001)


def test_zero_value_transfer_emits(engine):
    engine.transfer(B, C, 0)
    assert engine.balances.get(B) == 0
    assert engine.emitter.events == (TransferEvent(B, C, 0),)


def test_approve_overwrites(engine):
    engine.approve(A, B, 10)
    engine.approve(A, B, 3)
    assert engine.allowances.get(A, B) == 3
    assert engine.emitter.events == (ApproveEvent(A, B, 10), ApproveEvent(A, B, 3))


def test_approve_may_exceed_balance(engine):
    engine.approve(A, B, U128_MAX)
    assert engine.allowances.get(A, B) == U128_MAX


def test_transfer_from_spends_allowance(engine):
    engine.approve(A, B, 500)
    engine.transfer_from(B, A, C, 200)
    assert engine.allowances.get(A, B) == 300
    assert engine.balances.get(A) == 800
    assert engine.balances.get(C) == 200
    assert engine.emitter.events[-1] == TransferEvent(A, C, 200)


def test_transfer_from_over_allowance(engine):
    engine.approve(A, B, 99)
    before = _state(engine)
    with pytest.raises(AllowanceTooLow) as ei:
        engine.transfer_from(B, A, C, 100)
    assert ei.value.code == "ALLOWANCE_TOO_LOW"
    assert _state(engine) == before


def test_transfer_from_allowance_checked_before_balance(engine):
    # Both insufficient: the allowance error wins.
    with pytest.raises(AllowanceTooLow):
        engine.transfer_from(B, C, A, 5)


def test_transfer_from_over_balance_keeps_allowance(engine):
    engine.approve(A, B, 5_000)
    before = _state(engine)
    with pytest.raises(BalanceTooLow):
        engine.transfer_from(B, A, C, 2_000)
    assert engine.allowances.get(A, B) == 5_000
    assert _state(engine) == before


def test_transfer_from_to_owner_is_balance_neutral(engine):
    engine.approve(A, B, 100)
    engine.transfer_from(B, A, A, 100)
    assert engine.balances.get(A) == 1_000
    assert engine.allowances.get(A, B) == 0


def test_zero_value_transfer_from_without_allowance(engine):
    engine.transfer_from(B, A, C, 0)
    assert engine.balances.get(C) == 0
    assert engine.emitter.events == (TransferEvent(A, C, 0),)


def test_credit_overflow_is_fatal():
    be = MemoryBackend()
    eng = TransferEngine(BalanceStore(be), AllowanceStore(be), EventEmitter(InMemoryEventSink()))
    # Unreachable with conserved supply; forced here through the store.
    eng.balances.set(A, 1)
    eng.balances.set(B, U128_MAX)
    with pytest.raises(InvariantViolation):
        eng.transfer(A, B, 1)
