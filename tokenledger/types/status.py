"""
tokenledger.types.status — canonical call status enum.

CallStatus models the *logical* outcome of one host call:
  - SUCCESS : the operation completed and its effects were committed
  - REVERT  : the operation failed with a typed LedgerError; no effects remain

String forms:
  - str(CallStatus.SUCCESS) -> "success"
  - CallStatus.SUCCESS.code  -> "SUCCESS"
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class CallStatus(str, Enum):
    SUCCESS = "success"
    REVERT = "revert"

    @property
    def code(self) -> str:
        return self.value.upper()

    @property
    def is_success(self) -> bool:
        return self is CallStatus.SUCCESS

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value

    @classmethod
    def from_str(cls, s: str, *, default: Optional["CallStatus"] = None) -> "CallStatus":
        """
        Parse a status leniently ("ok", "success", "revert", "failed", ...).

        Raises:
            ValueError if parsing fails and no default is provided.
        """
        norm = (s or "").strip().lower()
        if norm in {"success", "ok", "s", "passed"}:
            return cls.SUCCESS
        if norm in {"revert", "rv", "failed", "fail", "err", "error"}:
            return cls.REVERT
        if default is not None:
            return default
        raise ValueError(f"unknown CallStatus: {s!r}")


__all__ = ["CallStatus"]
