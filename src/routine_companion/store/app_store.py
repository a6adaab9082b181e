# store/app_store.py

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import replace
from datetime import datetime
from typing import TypeVar

from ..core.ports import KeyValueStore, StoreListener
from .promotion import normalize_title
from .save_scheduler import SaveScheduler
from .store_codec import (
    CodecError,
    decode_routines,
    decode_text,
    decode_todos,
    encode_routines,
    encode_text,
    encode_todos,
)
from .store_models import (
    CATEGORY_ORDER,
    RoutineCategory,
    RoutineRecord,
    TodoRecord,
    day_key,
    new_record_id,
)

logger = logging.getLogger(__name__)

ROUTINES_KEY = "routine_items_v1"
TODOS_KEY = "todo_items_v1"
BRAIN_DUMP_KEY = "brain_dump_text_v1"

_ALL_KEYS = (ROUTINES_KEY, TODOS_KEY, BRAIN_DUMP_KEY)
_SECONDS_PER_DAY = 86400.0

DEFAULT_TRASH_RETENTION_DAYS = 7
DEFAULT_SAVE_DELAY_SECONDS = 0.4

# First-run routines (also used when the routines blob is unreadable).
DEFAULT_ROUTINES: tuple[tuple[str, RoutineCategory], ...] = (
    ("Take vitamins (AM)", RoutineCategory.MORNING),
    ("Wash face (AM)", RoutineCategory.MORNING),
    ("Wash face (PM)", RoutineCategory.EVENING),
    ("Shower", RoutineCategory.ANYTIME),
    ("Bed by 10:00", RoutineCategory.EVENING),
)

T = TypeVar("T")


def move_offsets(items: Sequence[T], offsets: Iterable[int], destination: int) -> list[T]:
    """
    Remove the items at `offsets` and re-insert them, in their original
    relative order, before the element that was at `destination`.

    `destination` is expressed in the coordinates of the list before removal
    (0..len(items)), e.g. moving [0] to 2 in [a, b, c] gives [b, a, c].
    Out-of-range offsets are ignored.
    """
    n = len(items)
    picked = sorted({i for i in offsets if 0 <= i < n})
    if not picked:
        return list(items)

    dest = max(0, min(int(destination), n))
    picked_set = set(picked)
    moving = [items[i] for i in picked]
    remaining = [x for i, x in enumerate(items) if i not in picked_set]
    insert_at = dest - sum(1 for i in picked if i < dest)
    return remaining[:insert_at] + moving + remaining[insert_at:]


class AppStore:
    """
    In-memory owner of all routine and to-do records.

    - every mutation is synchronous and runs to completion
    - invalid input (blank title, unknown id) is a silent no-op
    - effective mutations notify listeners and schedule a debounced save
    - on construction: load each collection, fall back on failure, purge expired trash

    Not thread-safe: call it from the event loop thread only.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        *,
        save_delay_seconds: float = DEFAULT_SAVE_DELAY_SECONDS,
        trash_retention_days: int = DEFAULT_TRASH_RETENTION_DAYS,
        seed_default_routines: bool = True,
        clock: Callable[[], float] = time.time,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._kv = kv
        self._clock = clock
        self._retention_days = max(0, int(trash_retention_days))

        self._routines: list[RoutineRecord] = []
        self._todos: list[TodoRecord] = []
        self._brain_dump = ""

        self._listeners: list[StoreListener] = []
        self._dirty: set[str] = set()
        self._closed = False
        self._scheduler = SaveScheduler(self._write_dirty, delay_seconds=save_delay_seconds, loop=loop)

        self._load(seed_default_routines=seed_default_routines)
        purged = self.purge_expired_trash()

        logger.info(
            "AppStore ready routines=%d todos=%d trash=%d purged=%d",
            len(self._routines),
            len(self._todos),
            len(self.trash_todos),
            purged,
        )

    # ---- loading / saving ----

    def _read(self, key: str) -> bytes | None:
        try:
            return self._kv.get(key)
        except Exception:
            logger.exception("Failed to read key=%s", key)
            return None

    def _seed_routines(self) -> list[RoutineRecord]:
        return [RoutineRecord(id=new_record_id(), title=t, category=c) for t, c in DEFAULT_ROUTINES]

    def _load(self, *, seed_default_routines: bool) -> None:
        raw = self._read(ROUTINES_KEY)
        routines: list[RoutineRecord] | None = None
        if raw is not None:
            try:
                routines = decode_routines(raw)
            except CodecError:
                logger.exception("Failed to decode routines; falling back")
        if routines is None:
            routines = self._seed_routines() if seed_default_routines else []
            if routines:
                # Persist the seed set with the next save.
                self._dirty.add(ROUTINES_KEY)
                self._scheduler.schedule()
        self._routines = routines

        raw = self._read(TODOS_KEY)
        todos: list[TodoRecord] = []
        if raw is not None:
            try:
                todos = decode_todos(raw, now_ts=self._clock())
            except CodecError:
                logger.exception("Failed to decode to-dos; starting empty")
        self._todos = todos

        raw = self._read(BRAIN_DUMP_KEY)
        if raw is not None:
            try:
                self._brain_dump = decode_text(raw)
            except CodecError:
                logger.exception("Failed to decode brain dump text; starting empty")

    def _encode(self, key: str) -> bytes:
        if key == ROUTINES_KEY:
            return encode_routines(self._routines)
        if key == TODOS_KEY:
            return encode_todos(self._todos)
        return encode_text(self._brain_dump)

    def _write_dirty(self) -> None:
        """Scheduler flush: write every dirty collection as it is right now."""
        dirty, self._dirty = self._dirty, set()
        written: list[str] = []
        try:
            for key in _ALL_KEYS:
                if key not in dirty:
                    continue
                self._kv.set(key, self._encode(key))
                written.append(key)
        except Exception:
            self._dirty |= dirty.difference(written)
            raise
        if written:
            logger.debug("AppStore saved keys=%s", ",".join(written))

    def flush(self) -> bool:
        """Force a pending scheduled save to happen now."""
        return self._scheduler.flush_now()

    def save_now(self) -> None:
        """Write all collections immediately, pending or not."""
        self._dirty.update(_ALL_KEYS)
        self._scheduler.flush_now(force=True)

    @property
    def save_pending(self) -> bool:
        return self._scheduler.pending

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """
        Flush the pending save and stop scheduling new ones.

        A closed store still answers reads and applies mutations in memory,
        but those changes are only written by an explicit save_now().
        """
        if self._closed:
            return
        self._closed = True
        self.flush()
        self._listeners.clear()
        logger.info("AppStore closed")

    # ---- change notification ----

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self, *keys: str) -> None:
        self._dirty.update(keys)
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Store listener failed")
        if self._closed:
            logger.warning("AppStore is closed; change to %s kept in memory only", ",".join(keys))
            return
        self._scheduler.schedule()

    # ---- time ----

    def now(self) -> float:
        return float(self._clock())

    def today_key(self) -> int:
        return day_key(datetime.fromtimestamp(self._clock()).date())

    # ---- routines ----

    @property
    def routines(self) -> list[RoutineRecord]:
        return list(self._routines)

    def _routine_index(self, routine_id: str) -> int | None:
        for i, r in enumerate(self._routines):
            if r.id == routine_id:
                return i
        return None

    def get_routine(self, routine_id: str) -> RoutineRecord | None:
        idx = self._routine_index(routine_id)
        return None if idx is None else self._routines[idx]

    def routines_for(self, category: RoutineCategory) -> list[RoutineRecord]:
        return [r for r in self._routines if r.category is category]

    def pending_routines_for(self, category: RoutineCategory) -> list[RoutineRecord]:
        """Routines of `category` that are not done today."""
        today = self.today_key()
        return [r for r in self.routines_for(category) if not r.is_done_on(today)]

    def routine_title_exists(self, title: str) -> bool:
        needle = normalize_title(title)
        if not needle:
            return False
        return any(normalize_title(r.title) == needle for r in self._routines)

    def add_routine(
        self, title: str, category: RoutineCategory = RoutineCategory.ANYTIME
    ) -> RoutineRecord | None:
        trimmed = (title or "").strip()
        if not trimmed:
            return None
        rec = RoutineRecord(id=new_record_id(), title=trimmed, category=category)
        self._routines.append(rec)
        self._changed(ROUTINES_KEY)
        return rec

    def add_routine_if_not_exists(self, title: str, category: RoutineCategory) -> bool:
        if self.routine_title_exists(title):
            return False
        return self.add_routine(title, category) is not None

    def delete_routine(self, routine_id: str) -> None:
        idx = self._routine_index(routine_id)
        if idx is None:
            return
        del self._routines[idx]
        self._changed(ROUTINES_KEY)

    def toggle_routine_done_today(self, routine_id: str, is_done: bool) -> None:
        idx = self._routine_index(routine_id)
        if idx is None:
            return
        value = self.today_key() if is_done else None
        current = self._routines[idx]
        if current.last_completed_day == value:
            return
        self._routines[idx] = replace(current, last_completed_day=value)
        self._changed(ROUTINES_KEY)

    def update_routine(self, routine_id: str, new_title: str, new_category: RoutineCategory) -> None:
        trimmed = (new_title or "").strip()
        if not trimmed:
            return
        idx = self._routine_index(routine_id)
        if idx is None:
            return
        current = self._routines[idx]
        if current.title == trimmed and current.category is new_category:
            return
        self._routines[idx] = replace(current, title=trimmed, category=new_category)
        self._changed(ROUTINES_KEY)

    def move_routines(
        self, category: RoutineCategory, from_offsets: Iterable[int], to_destination: int
    ) -> None:
        bucket = self.routines_for(category)
        moved = move_offsets(bucket, from_offsets, to_destination)
        if [r.id for r in moved] == [r.id for r in bucket]:
            return

        rebuilt: list[RoutineRecord] = []
        for cat in CATEGORY_ORDER:
            if cat is category:
                rebuilt.extend(moved)
            else:
                rebuilt.extend(r for r in self._routines if r.category is cat)
        self._routines = rebuilt
        self._changed(ROUTINES_KEY)

    # ---- to-dos ----

    @property
    def todos(self) -> list[TodoRecord]:
        return list(self._todos)

    @property
    def active_todos(self) -> list[TodoRecord]:
        return [t for t in self._todos if t.is_active]

    @property
    def pending_todos(self) -> list[TodoRecord]:
        return [t for t in self._todos if t.is_active and not t.is_done]

    @property
    def archived_todos(self) -> list[TodoRecord]:
        return [t for t in self._todos if t.is_archived]

    @property
    def trash_todos(self) -> list[TodoRecord]:
        return [t for t in self._todos if t.is_trashed]

    def _todo_index(self, todo_id: str) -> int | None:
        for i, t in enumerate(self._todos):
            if t.id == todo_id:
                return i
        return None

    def get_todo(self, todo_id: str) -> TodoRecord | None:
        idx = self._todo_index(todo_id)
        return None if idx is None else self._todos[idx]

    def todo_title_exists(self, title: str) -> bool:
        """Case-insensitive match against every to-do: active, archived and trashed."""
        needle = normalize_title(title)
        if not needle:
            return False
        return any(normalize_title(t.title) == needle for t in self._todos)

    def _new_todo(self, title: str) -> TodoRecord:
        return TodoRecord(id=new_record_id(), title=title, is_done=False, created_at=self.now())

    def add_todo(self, title: str) -> TodoRecord | None:
        trimmed = (title or "").strip()
        if not trimmed:
            return None
        rec = self._new_todo(trimmed)
        self._todos.append(rec)
        self._changed(TODOS_KEY)
        return rec

    def add_todos(self, titles: Iterable[str]) -> list[TodoRecord]:
        """Append several to-dos as one change (blank titles are dropped)."""
        added = [self._new_todo(t.strip()) for t in titles if t and t.strip()]
        if not added:
            return []
        self._todos.extend(added)
        self._changed(TODOS_KEY)
        return added

    def update_todo_title(self, todo_id: str, new_title: str) -> None:
        trimmed = (new_title or "").strip()
        if not trimmed:
            return
        idx = self._todo_index(todo_id)
        if idx is None or self._todos[idx].title == trimmed:
            return
        self._todos[idx] = replace(self._todos[idx], title=trimmed)
        self._changed(TODOS_KEY)

    def toggle_todo_done(self, todo_id: str, is_done: bool) -> None:
        idx = self._todo_index(todo_id)
        if idx is None or self._todos[idx].is_done == bool(is_done):
            return
        self._todos[idx] = replace(self._todos[idx], is_done=bool(is_done))
        self._changed(TODOS_KEY)

    def move_active_todos(self, from_offsets: Iterable[int], to_destination: int) -> None:
        active = self.active_todos
        moved = move_offsets(active, from_offsets, to_destination)
        if [t.id for t in moved] == [t.id for t in active]:
            return
        self._todos = moved + self.archived_todos + self.trash_todos
        self._changed(TODOS_KEY)

    def soft_delete_todo(self, todo_id: str) -> None:
        idx = self._todo_index(todo_id)
        if idx is None or self._todos[idx].is_trashed:
            return
        self._todos[idx] = replace(self._todos[idx], deleted_at=self.now())
        self._changed(TODOS_KEY)

    def restore_from_trash(self, todo_id: str) -> None:
        """Clear deleted_at; the restored record goes to the end of the list."""
        idx = self._todo_index(todo_id)
        if idx is None or not self._todos[idx].is_trashed:
            return
        rec = replace(self._todos.pop(idx), deleted_at=None)
        self._todos.append(rec)
        self._changed(TODOS_KEY)

    def remove_todo_completely(self, todo_id: str) -> None:
        idx = self._todo_index(todo_id)
        if idx is None:
            return
        del self._todos[idx]
        self._changed(TODOS_KEY)

    def delete_from_trash_forever(self, todo_id: str) -> None:
        self.remove_todo_completely(todo_id)

    def delete_all_trash(self) -> int:
        kept = [t for t in self._todos if not t.is_trashed]
        removed = len(self._todos) - len(kept)
        if removed:
            self._todos = kept
            self._changed(TODOS_KEY)
        return removed

    def archive_completed_todos(self) -> int:
        now_ts = self.now()
        count = 0
        for i, t in enumerate(self._todos):
            if t.is_active and t.is_done:
                self._todos[i] = replace(t, archived_at=now_ts)
                count += 1
        if count:
            self._changed(TODOS_KEY)
        return count

    def purge_expired_trash(
        self, retention_days: int | None = None, now: float | None = None
    ) -> int:
        """Permanently drop trashed to-dos whose deleted_at is older than the retention window."""
        days = self._retention_days if retention_days is None else max(0, int(retention_days))
        now_ts = self.now() if now is None else float(now)
        cutoff = now_ts - days * _SECONDS_PER_DAY

        kept = [t for t in self._todos if t.deleted_at is None or t.deleted_at >= cutoff]
        removed = len(self._todos) - len(kept)
        if removed:
            self._todos = kept
            logger.info("Purged %d expired trash item(s) older than %d day(s)", removed, days)
            self._changed(TODOS_KEY)
        return removed

    # ---- brain dump ----

    @property
    def brain_dump_text(self) -> str:
        return self._brain_dump

    def set_brain_dump_text(self, text: str) -> None:
        text = text or ""
        if text == self._brain_dump:
            return
        self._brain_dump = text
        self._changed(BRAIN_DUMP_KEY)
