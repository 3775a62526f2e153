"""Command line tools for driving a file-backed tokenledger."""

from __future__ import annotations

__all__ = ["main"]
