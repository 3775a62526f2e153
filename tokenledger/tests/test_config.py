from __future__ import annotations

from pathlib import Path

import pytest

from tokenledger.config import LedgerConfig, load_config

_VARS = (
    "TOKENLEDGER_ACCOUNT_BYTES",
    "TOKENLEDGER_STRICT_ACCOUNTS",
    "TOKENLEDGER_CHECK_INVARIANTS",
    "TOKENLEDGER_LOG_LEVEL",
    "TOKENLEDGER_EVENT_LOG",
)


@pytest.fixture
def env(monkeypatch, clean_config):
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(env):
    cfg = load_config()
    assert cfg == LedgerConfig()
    assert cfg.as_dict() == {
        "account_bytes": 32,
        "strict_accounts": True,
        "check_invariants": False,
        "log_level": "INFO",
        "event_log_path": None,
    }


def test_env_overrides(env, tmp_path):
    env.setenv("TOKENLEDGER_ACCOUNT_BYTES", "20")
    env.setenv("TOKENLEDGER_STRICT_ACCOUNTS", "off")
    env.setenv("TOKENLEDGER_CHECK_INVARIANTS", "YES")
    env.setenv("TOKENLEDGER_LOG_LEVEL", "debug")
    env.setenv("TOKENLEDGER_EVENT_LOG", str(tmp_path / "ev.jsonl"))
    cfg = load_config()
    assert cfg.account_bytes == 20
    assert cfg.strict_accounts is False
    assert cfg.check_invariants is True
    assert cfg.log_level == "DEBUG"
    assert cfg.event_log_path == Path(tmp_path / "ev.jsonl")


@pytest.mark.parametrize("raw, want", [("0", 1), ("1000", 64), ("0x10", 16), ("junk", 32)])
def test_account_bytes_is_clamped(env, raw, want):
    env.setenv("TOKENLEDGER_ACCOUNT_BYTES", raw)
    assert load_config().account_bytes == want


def test_garbage_values_fall_back(env):
    env.setenv("TOKENLEDGER_STRICT_ACCOUNTS", "maybe")
    env.setenv("TOKENLEDGER_LOG_LEVEL", "LOUD")
    cfg = load_config()
    assert cfg.strict_accounts is True
    assert cfg.log_level == "INFO"


def test_loader_is_cached(env):
    first = load_config()
    env.setenv("TOKENLEDGER_ACCOUNT_BYTES", "8")
    assert load_config() is first
    load_config.cache_clear()
    assert load_config().account_bytes == 8


def test_with_overrides_is_a_copy():
    base = LedgerConfig()
    other = base.with_overrides(check_invariants=True)
    assert base.check_invariants is False
    assert other.check_invariants is True
