# src/routine_companion/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The store depends on Protocols instead of concrete implementations.
This keeps persistence swappable (SQLite on disk, in-memory for tests).
"""

from typing import Callable, Protocol

StoreListener = Callable[[], None]
# Zero-argument change callback; listeners read fresh snapshots from the store.


class KeyValueStore(Protocol):
    """
    Durable byte storage addressed by string keys.

    Assumed synchronous, process-local and reliable enough that a failing
    call is an exceptional event (the store logs it and keeps going).
    """

    def get(self, key: str) -> bytes | None: ...
    def set(self, key: str, value: bytes) -> None: ...
