"""
tokenledger.state.backend — key/value backend interface for ledger state.

Design goals
------------
- Deterministic: pure functions over (key, value) with no wall-clock or I/O.
- Simple default: in-process dict backend for local runs & tests.
- Pluggable: a tiny protocol so a host can swap in its own persistent store.

Keys and values are raw bytes. Iteration is always in ascending key order so
snapshots and sums are reproducible.
"""

from __future__ import annotations

from typing import Dict, Iterator, Optional, Protocol, Tuple, runtime_checkable


@runtime_checkable
class StateBackend(Protocol):
    """Minimal backend interface for ledger storage."""

    def get(self, key: bytes) -> Optional[bytes]: ...
    def set(self, key: bytes, value: bytes) -> None: ...
    def delete(self, key: bytes) -> None: ...
    def items(self, prefix: bytes = b"") -> Iterator[Tuple[bytes, bytes]]: ...


class MemoryBackend:
    """In-memory backend. Calls are serialized by the host; no locking here."""

    def __init__(self, initial: Optional[Dict[bytes, bytes]] = None) -> None:
        self._store: Dict[bytes, bytes] = dict(initial or {})

    def get(self, key: bytes) -> Optional[bytes]:
        return self._store.get(key)

    def set(self, key: bytes, value: bytes) -> None:
        self._store[bytes(key)] = bytes(value)

    def delete(self, key: bytes) -> None:
        self._store.pop(key, None)

    def items(self, prefix: bytes = b"") -> Iterator[Tuple[bytes, bytes]]:
        for k in sorted(self._store):
            if k.startswith(prefix):
                yield k, self._store[k]

    def __len__(self) -> int:
        return len(self._store)


__all__ = ["StateBackend", "MemoryBackend"]
