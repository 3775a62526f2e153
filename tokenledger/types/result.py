"""
tokenledger.types.result — CallResult container returned by the host.

`CallResult` is the `Result<(), Error>` view of a ledger operation: either
SUCCESS with the events that call delivered, or REVERT carrying the typed
`LedgerError` that stopped it (and no events, since reverted calls leave no
trace).

Utilities
---------
* `.is_success` convenience boolean.
* `.unwrap()` returns the call's return value or re-raises the stored error.
* `.to_dict()` for JSON-friendly output (CLI, logs).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from ..errors import LedgerError
from .events import LedgerEvent
from .status import CallStatus


@dataclass(frozen=True)
class CallResult:
    status: CallStatus
    method: str
    error: Optional[LedgerError] = None
    events: Tuple[LedgerEvent, ...] = field(default_factory=tuple)
    value: Any = None

    def __post_init__(self) -> None:
        if self.status is CallStatus.SUCCESS and self.error is not None:
            raise ValueError("successful result cannot carry an error")
        if self.status is CallStatus.REVERT and self.error is None:
            raise ValueError("reverted result must carry an error")
        if self.status is CallStatus.REVERT and self.events:
            raise ValueError("reverted result cannot carry events")

    @classmethod
    def ok(cls, method: str, *, events: Tuple[LedgerEvent, ...] = (), value: Any = None) -> "CallResult":
        return cls(status=CallStatus.SUCCESS, method=method, events=tuple(events), value=value)

    @classmethod
    def revert(cls, method: str, error: LedgerError) -> "CallResult":
        return cls(status=CallStatus.REVERT, method=method, error=error)

    @property
    def is_success(self) -> bool:
        return self.status.is_success

    def unwrap(self) -> Any:
        if self.error is not None:
            raise self.error
        return self.value

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "method": self.method,
            "status": self.status.value,
            "events": [e.to_dict() for e in self.events],
        }
        if self.error is not None:
            out["error"] = self.error.to_dict()
        if self.value is not None:
            out["value"] = self.value
        return out


__all__ = ["CallResult"]
