"""
tokenledger.state.journal — journaling writes, checkpoints, revert/commit.

A deterministic, in-memory write journal layered over a `StateBackend`. It
supports nested checkpoints via a stack of overlays. While a checkpoint is
open, writes go to the top overlay and reads consult overlays from top → base.
`commit()` merges the top overlay into the next layer (or the base when it is
the last one). `revert()` discards the top overlay.

With no checkpoint open the journal is a transparent pass-through, so ledger
code that never opens a checkpoint behaves exactly as if it wrote to the
backend directly.

Intended usage
--------------
    j = Journal(backend)
    marker = j.begin()
    j.set(b"k", b"v")
    ...
    j.commit()            # or j.revert()

The journal implements `StateBackend`, so the balance and allowance stores sit
on top of it without knowing whether a checkpoint is open.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from .backend import StateBackend


def _b(x: bytes | bytearray | memoryview, *, name: str) -> bytes:
    if not isinstance(x, (bytes, bytearray, memoryview)):
        raise TypeError(f"{name} must be bytes-like")
    return bytes(x)


@dataclass
class _Overlay:
    """A single journal layer. A `None` value marks a deletion."""

    writes: Dict[bytes, Optional[bytes]] = field(default_factory=dict)


class Journal:
    """
    A copy-on-write journal with nested checkpoints over a base backend.

    API highlights
    --------------
    - begin() / commit() / revert()
    - checkpoint() / commit_to(marker) / revert_to(marker)
    - get() / set() / delete() / items(prefix)
    """

    def __init__(self, base: StateBackend) -> None:
        self._base = base
        self._layers: List[_Overlay] = []

    @property
    def base(self) -> StateBackend:
        return self._base

    # --------------------------------------------------------------------- #
    # Checkpointing
    # --------------------------------------------------------------------- #

    def depth(self) -> int:
        """Number of open checkpoints (0 = pass-through)."""
        return len(self._layers)

    def begin(self) -> int:
        """Open a checkpoint. Returns the marker to pass to commit_to/revert_to."""
        self._layers.append(_Overlay())
        return len(self._layers) - 1

    def commit(self) -> None:
        """Merge the top overlay into its parent, or into the base if it is the last."""
        if not self._layers:
            raise RuntimeError("commit without an open checkpoint")
        top = self._layers.pop()
        if self._layers:
            self._layers[-1].writes.update(top.writes)
        else:
            self._apply_to_base(top)

    def revert(self) -> None:
        """Discard the top overlay."""
        if not self._layers:
            raise RuntimeError("revert without an open checkpoint")
        self._layers.pop()

    def checkpoint(self) -> int:
        """Alias for `begin()`."""
        return self.begin()

    def commit_to(self, marker: int) -> None:
        """Commit repeatedly until only `marker` checkpoints remain open."""
        if marker < 0:
            raise ValueError("marker must be >= 0")
        while len(self._layers) > marker:
            self.commit()

    def revert_to(self, marker: int) -> None:
        """Revert repeatedly until only `marker` checkpoints remain open."""
        if marker < 0:
            raise ValueError("marker must be >= 0")
        while len(self._layers) > marker:
            self.revert()

    # --------------------------------------------------------------------- #
    # StateBackend API
    # --------------------------------------------------------------------- #

    def get(self, key: bytes) -> Optional[bytes]:
        k = _b(key, name="key")
        for layer in reversed(self._layers):
            if k in layer.writes:
                return layer.writes[k]
        return self._base.get(k)

    def set(self, key: bytes, value: bytes) -> None:
        k = _b(key, name="key")
        v = _b(value, name="value")
        if self._layers:
            self._layers[-1].writes[k] = v
        else:
            self._base.set(k, v)

    def delete(self, key: bytes) -> None:
        k = _b(key, name="key")
        if self._layers:
            self._layers[-1].writes[k] = None
        else:
            self._base.delete(k)

    def items(self, prefix: bytes = b"") -> Iterator[Tuple[bytes, bytes]]:
        """
        Iterate visible (key, value) pairs under `prefix` in key order.
        Deletions in overlays are respected.
        """
        visible: Dict[bytes, bytes] = dict(self._base.items(prefix))
        for layer in self._layers:
            for k, v in layer.writes.items():
                if not k.startswith(prefix):
                    continue
                if v is None:
                    visible.pop(k, None)
                else:
                    visible[k] = v
        for k in sorted(visible):
            yield k, visible[k]

    # --------------------------------------------------------------------- #
    # Internal apply
    # --------------------------------------------------------------------- #

    def _apply_to_base(self, layer: _Overlay) -> None:
        for k, v in layer.writes.items():
            if v is None:
                self._base.delete(k)
            else:
                self._base.set(k, v)

    # --------------------------------------------------------------------- #
    # Introspection
    # --------------------------------------------------------------------- #

    def pending_keys(self) -> int:
        """Total number of staged writes across open checkpoints."""
        return sum(len(layer.writes) for layer in self._layers)


__all__ = ["Journal"]
