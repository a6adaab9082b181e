# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from routine_companion.core.state import AppState
from routine_companion.store.app_store import AppStore

from .fakes import CountingKeyValueStore, FakeClock


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="routine-test",
        log_level="DEBUG",
        console_enabled=False,
        data_dir=tmp_path,
        store_db_path=tmp_path / "store.sqlite3",
        save_debounce_seconds=0.05,
        trash_retention_days=7,
        seed_default_routines=False,
    )


@pytest.fixture()
def kv() -> CountingKeyValueStore:
    return CountingKeyValueStore()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store(kv: CountingKeyValueStore, clock: FakeClock) -> AppStore:
    """
    Store without seed routines and without an event loop.

    Saves stay pending until flush(), which keeps synchronous tests free of timers.
    """
    return AppStore(kv, seed_default_routines=False, clock=clock)


@pytest.fixture()
def state(settings: SimpleNamespace, store: AppStore) -> AppState:
    return AppState(settings=settings, store=store)
