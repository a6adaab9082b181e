# src/routine_companion/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the concrete key/value store into the one AppStore,
- tears the store down with a forced flush.
"""

from __future__ import annotations

import asyncio
import logging

from ..config import get_settings
from ..core.ports import KeyValueStore
from ..core.state import AppState
from ..store.app_store import AppStore
from ..store.kv_store import SqliteKeyValueStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.store_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(
    *,
    settings=None,
    kv: KeyValueStore | None = None,
    loop: asyncio.AbstractEventLoop | None = None,
) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings and storage injectable makes the app easier to test and avoids hidden
    global config reads. If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    if kv is None:
        _ensure_local_dirs(settings)
        kv = SqliteKeyValueStore(settings.store_db_path)

    store = AppStore(
        kv,
        save_delay_seconds=settings.save_debounce_seconds,
        trash_retention_days=settings.trash_retention_days,
        seed_default_routines=settings.seed_default_routines,
        loop=loop,
    )
    return AppState(settings=settings, store=store)


def shutdown_state(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        state.store.close()
    except Exception:
        logger.exception("Failed to close store.")
