"""
tokenledger.config — account width, invariant checking, logging and event-log knobs.

Configuration precedence:
  1) Environment variables (TOKENLEDGER_*)
  2) Hardcoded safe defaults below

Key env vars (case-insensitive where boolean):
  - TOKENLEDGER_ACCOUNT_BYTES     (int)   default: 32   (clamped to 1..64)
  - TOKENLEDGER_STRICT_ACCOUNTS   (bool)  default: true
  - TOKENLEDGER_CHECK_INVARIANTS  (bool)  default: false
  - TOKENLEDGER_LOG_LEVEL         (str)   default: INFO
  - TOKENLEDGER_EVENT_LOG         (path)  default: unset

Usage:
    from tokenledger.config import load_config
    cfg = load_config()
    if cfg.check_invariants: ...
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

_PREFIX = "TOKENLEDGER_"

_BOOL_TRUE = {"1", "true", "t", "yes", "y", "on"}
_BOOL_FALSE = {"0", "false", "f", "no", "n", "off"}

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


# ----------------------------- helpers ---------------------------------------


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(_PREFIX + name)
    if raw is None:
        return default
    val = raw.strip().lower()
    if val in _BOOL_TRUE:
        return True
    if val in _BOOL_FALSE:
        return False
    return default


def _env_int(name: str, default: int, *, min_v: int, max_v: int) -> int:
    raw = os.getenv(_PREFIX + name)
    if raw is None:
        return default
    try:
        v = int(raw, 0)
    except ValueError:
        return default
    if v < min_v:
        return min_v
    if v > max_v:
        return max_v
    return v


def _env_path(name: str) -> Optional[Path]:
    raw = os.getenv(_PREFIX + name)
    if not raw:
        return None
    return Path(raw).expanduser()


def _env_level(name: str, default: str) -> str:
    raw = (os.getenv(_PREFIX + name) or "").strip().upper()
    return raw if raw in _LOG_LEVELS else default


# ------------------------------- config --------------------------------------


@dataclass(frozen=True)
class LedgerConfig:
    # Account identifiers are fixed-size byte strings of this width.
    account_bytes: int = 32
    # Reject accounts whose width differs from `account_bytes`.
    strict_accounts: bool = True
    # Recompute sum(balances) == total_supply after every host call.
    check_invariants: bool = False
    log_level: str = "INFO"
    event_log_path: Optional[Path] = None

    def with_overrides(self, **kwargs: Any) -> "LedgerConfig":
        return replace(self, **kwargs)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "account_bytes": self.account_bytes,
            "strict_accounts": self.strict_accounts,
            "check_invariants": self.check_invariants,
            "log_level": self.log_level,
            "event_log_path": str(self.event_log_path) if self.event_log_path else None,
        }


@lru_cache(maxsize=1)
def load_config() -> LedgerConfig:
    """
    Build and cache a LedgerConfig from environment + safe defaults.
    Call `load_config.cache_clear()` after changing the environment.
    """
    return LedgerConfig(
        account_bytes=_env_int("ACCOUNT_BYTES", 32, min_v=1, max_v=64),
        strict_accounts=_env_bool("STRICT_ACCOUNTS", True),
        check_invariants=_env_bool("CHECK_INVARIANTS", False),
        log_level=_env_level("LOG_LEVEL", "INFO"),
        event_log_path=_env_path("EVENT_LOG"),
    )


__all__ = ["LedgerConfig", "load_config"]
