"""
tokenledger.errors — typed failures raised by the ledger core.

Hierarchy
---------
LedgerError (base, recoverable)
 ├─ BalanceTooLow    : transfer exceeds the source account's balance
 ├─ AllowanceTooLow  : delegated transfer exceeds the spender's allowance
 └─ InvalidInput     : malformed account or out-of-range amount from the caller

InvariantViolation (fatal, *not* a LedgerError)

Notes
-----
* `BalanceTooLow` and `AllowanceTooLow` are semantic failures of a single call.
  They are raised before any state is touched and map to a REVERT result at the
  host boundary.
* `InvalidInput` corresponds to an ABI-level decoding failure: the environment
  handed the core something that is not an account or not a u128.
* `InvariantViolation` means arithmetic overflowed or supply conservation broke.
  It cannot happen while total supply is fixed and every transition is checked,
  so hosts must not treat it as a user error.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class LedgerError(Exception):
    """
    Base ledger error.

    Attributes:
        message: Human-readable explanation.
        code:    Stable machine code string (e.g. 'BALANCE_TOO_LOW').
        data:    Optional structured details (kept JSON-serializable).
    """

    message: str = "ledger error"
    code: str = "LEDGER_ERROR"
    data: Optional[Dict[str, Any]] = field(default=None)

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.data:
            return f"{self.code}: {self.message} ({self.data})"
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-safe dict for results/logs/CLI output."""
        out: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            out["data"] = self.data
        return out


def _hex(b: Optional[bytes]) -> Optional[str]:
    return None if b is None else "0x" + bytes(b).hex()


class BalanceTooLow(LedgerError):
    """
    Attempted transfer exceeds the source account's available balance.
    """

    def __init__(
        self,
        message: str = "balance too low",
        *,
        account: Optional[bytes] = None,
        balance: Optional[int] = None,
        value: Optional[int] = None,
    ):
        d: Dict[str, Any] = {}
        if account is not None:
            d["account"] = _hex(account)
        if balance is not None:
            d["balance"] = str(balance)
        if value is not None:
            d["value"] = str(value)
        super().__init__(message=message, code="BALANCE_TOO_LOW", data=d or None)


class AllowanceTooLow(LedgerError):
    """
    Attempted delegated transfer exceeds the caller's remaining allowance.
    """

    def __init__(
        self,
        message: str = "allowance too low",
        *,
        owner: Optional[bytes] = None,
        spender: Optional[bytes] = None,
        allowance: Optional[int] = None,
        value: Optional[int] = None,
    ):
        d: Dict[str, Any] = {}
        if owner is not None:
            d["owner"] = _hex(owner)
        if spender is not None:
            d["spender"] = _hex(spender)
        if allowance is not None:
            d["allowance"] = str(allowance)
        if value is not None:
            d["value"] = str(value)
        super().__init__(message=message, code="ALLOWANCE_TOO_LOW", data=d or None)


class InvalidInput(LedgerError):
    """
    Malformed argument supplied by the environment.

    Examples:
      - account is not bytes/hex, is empty, or has the wrong width
      - amount is not an int or is outside [0, 2**128 - 1]
      - unknown method name at the host boundary
    """

    def __init__(
        self,
        message: str = "invalid input",
        *,
        arg: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        d: Dict[str, Any] = {}
        if data:
            d.update(data)
        if arg is not None:
            d.setdefault("arg", arg)
        super().__init__(message=message, code="INVALID_INPUT", data=d or None)


class InvariantViolation(RuntimeError):
    """
    Fatal internal-invariant failure: checked arithmetic overflowed/underflowed
    or the sum of balances no longer equals total supply.
    """

    def __init__(self, message: str, *, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context: Dict[str, Any] = dict(context or {})


__all__ = [
    "LedgerError",
    "BalanceTooLow",
    "AllowanceTooLow",
    "InvalidInput",
    "InvariantViolation",
]
