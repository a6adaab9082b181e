# src/routine_companion/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from ..store.app_store import AppStore


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: object

    # The one store instance; everything that reads or mutates records goes through it.
    store: AppStore
