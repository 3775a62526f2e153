# -*- coding: utf-8 -*-
"""
tokenledger.tests.conftest
==========================

Shared fixtures:
- deterministic 32-byte accounts derived via SHA3 from a label,
- a fresh in-memory sink, ledger and host per test,
- a default config that ignores the caller's TOKENLEDGER_* environment.
"""
from __future__ import annotations

import hashlib
from typing import Dict

import pytest

from tokenledger.config import LedgerConfig, load_config
from tokenledger.runtime.host import Host
from tokenledger.runtime.ledger import Ledger
from tokenledger.runtime.sinks import InMemoryEventSink

SUPPLY = 10_000


def addr(label: str) -> bytes:
    """Stable 32-byte account for a human label."""
    return hashlib.sha3_256(b"tokenledger-test|" + label.encode("utf-8")).digest()


@pytest.fixture
def clean_config():
    load_config.cache_clear()
    yield
    load_config.cache_clear()


@pytest.fixture
def cfg() -> LedgerConfig:
    return LedgerConfig()


@pytest.fixture
def accounts() -> Dict[str, bytes]:
    return {name: addr(name) for name in ("alice", "bob", "carol", "dave")}


@pytest.fixture
def alice(accounts) -> bytes:
    return accounts["alice"]


@pytest.fixture
def bob(accounts) -> bytes:
    return accounts["bob"]


@pytest.fixture
def carol(accounts) -> bytes:
    return accounts["carol"]


@pytest.fixture
def dave(accounts) -> bytes:
    return accounts["dave"]


@pytest.fixture
def sink() -> InMemoryEventSink:
    return InMemoryEventSink()


@pytest.fixture
def ledger(alice, sink, cfg) -> Ledger:
    return Ledger.new(alice, SUPPLY, sink=sink, config=cfg)


@pytest.fixture
def host(alice, sink, cfg) -> Host:
    return Host.deploy(alice, SUPPLY, sink=sink, config=cfg)
