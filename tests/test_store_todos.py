# tests/test_store_todos.py

from __future__ import annotations

from dataclasses import replace

from routine_companion.store.app_store import ROUTINES_KEY, TODOS_KEY, AppStore
from routine_companion.store.store_codec import decode_todos, encode_todos
from routine_companion.store.store_models import TodoRecord, TodoState

from .fakes import CountingKeyValueStore, FakeClock


def _titles(records) -> list[str]:
    return [t.title for t in records]


def test_add_todo_trims_and_ignores_blank(store: AppStore, clock: FakeClock) -> None:
    rec = store.add_todo("  Buy milk ")
    assert rec is not None
    assert rec.title == "Buy milk"
    assert rec.is_done is False
    assert rec.created_at == clock.now
    assert rec.state is TodoState.ACTIVE

    assert store.add_todo("   ") is None
    assert store.add_todo("") is None
    assert _titles(store.todos) == ["Buy milk"]


def test_update_todo_title(store: AppStore) -> None:
    rec = store.add_todo("Old")
    assert rec is not None
    store.update_todo_title(rec.id, "  New ")
    assert store.get_todo(rec.id).title == "New"
    store.update_todo_title(rec.id, "  ")
    assert store.get_todo(rec.id).title == "New"


def test_toggle_todo_done_unknown_id_is_noop(store: AppStore) -> None:
    rec = store.add_todo("Task")
    assert rec is not None
    store.toggle_todo_done("missing", True)
    assert store.get_todo(rec.id).is_done is False
    store.toggle_todo_done(rec.id, True)
    assert store.get_todo(rec.id).is_done is True
    assert store.pending_todos == []


def test_soft_delete_then_restore_round_trip(store: AppStore, clock: FakeClock) -> None:
    a = store.add_todo("a")
    b = store.add_todo("b")
    c = store.add_todo("c")
    assert a and b and c
    store.toggle_todo_done(a.id, True)
    before = store.get_todo(a.id)

    clock.advance(seconds=30)
    store.soft_delete_todo(a.id)
    trashed = store.get_todo(a.id)
    assert trashed.deleted_at == clock.now
    assert _titles(store.active_todos) == ["b", "c"]
    assert _titles(store.trash_todos) == ["a"]

    # Deleting again does not move deleted_at.
    clock.advance(seconds=30)
    store.soft_delete_todo(a.id)
    assert store.get_todo(a.id).deleted_at == trashed.deleted_at

    store.restore_from_trash(a.id)
    restored = store.get_todo(a.id)
    assert restored == replace(before, deleted_at=None)
    assert restored == before
    # Restored records are appended.
    assert _titles(store.active_todos) == ["b", "c", "a"]
    assert store.trash_todos == []


def test_delete_forever_and_delete_all_trash(store: AppStore) -> None:
    ids = [store.add_todo(t).id for t in ("a", "b", "c", "d")]
    store.soft_delete_todo(ids[0])
    store.soft_delete_todo(ids[1])

    store.delete_from_trash_forever(ids[0])
    assert store.get_todo(ids[0]) is None

    assert store.delete_all_trash() == 1
    assert _titles(store.todos) == ["c", "d"]
    assert store.delete_all_trash() == 0

    store.remove_todo_completely(ids[2])
    assert _titles(store.todos) == ["d"]


def test_archive_completed_todos_is_idempotent(store: AppStore, clock: FakeClock) -> None:
    a = store.add_todo("a")
    b = store.add_todo("b")
    assert a and b
    store.toggle_todo_done(a.id, True)

    assert store.archive_completed_todos() == 1
    archived_at = store.get_todo(a.id).archived_at
    assert archived_at == clock.now
    assert _titles(store.active_todos) == ["b"]
    assert _titles(store.archived_todos) == ["a"]
    assert store.trash_todos == []

    clock.advance(seconds=60)
    assert store.archive_completed_todos() == 0
    assert store.get_todo(a.id).archived_at == archived_at


def test_trashed_wins_over_archived(store: AppStore) -> None:
    rec = store.add_todo("x")
    assert rec is not None
    store.toggle_todo_done(rec.id, True)
    store.archive_completed_todos()
    store.soft_delete_todo(rec.id)

    got = store.get_todo(rec.id)
    assert got.state is TodoState.TRASHED
    assert store.archived_todos == []
    assert _titles(store.trash_todos) == ["x"]


def test_move_active_todos_keeps_archived_and_trash_order(store: AppStore) -> None:
    ids = {t: store.add_todo(t).id for t in ("a", "b", "arch1", "c", "trash1", "arch2")}
    for t in ("arch1", "arch2"):
        store.toggle_todo_done(ids[t], True)
    store.archive_completed_todos()
    store.soft_delete_todo(ids["trash1"])

    store.move_active_todos([0], 3)

    assert _titles(store.active_todos) == ["b", "c", "a"]
    assert _titles(store.todos) == ["b", "c", "a", "arch1", "arch2", "trash1"]


def test_purge_expired_trash_respects_retention(clock: FakeClock) -> None:
    now = clock.now
    day = 86400.0
    todos = [
        TodoRecord(id="old", title="old", is_done=False, created_at=now - 20 * day, deleted_at=now - 8 * day),
        TodoRecord(id="new", title="new", is_done=False, created_at=now - 20 * day, deleted_at=now - 6 * day),
        TodoRecord(id="live", title="live", is_done=False, created_at=now - 20 * day),
    ]
    kv = CountingKeyValueStore({TODOS_KEY: encode_todos(todos)})

    # Startup purge already drops the 8-day-old record.
    store = AppStore(kv, seed_default_routines=False, clock=clock)
    assert _titles(store.todos) == ["new", "live"]

    assert store.purge_expired_trash(7, now) == 0
    assert store.purge_expired_trash(7, now) == 0
    assert _titles(store.todos) == ["new", "live"]

    # Two more days and the remaining trashed record expires too.
    assert store.purge_expired_trash(7, now + 2 * day) == 1
    assert _titles(store.todos) == ["live"]


def test_purge_explicit_call_matches_spec_example(store: AppStore, clock: FakeClock) -> None:
    a = store.add_todo("eight days")
    b = store.add_todo("six days")
    assert a and b
    store.soft_delete_todo(a.id)
    clock.advance(days=2)
    store.soft_delete_todo(b.id)
    clock.advance(days=6)

    assert store.purge_expired_trash(retention_days=7) == 1
    assert _titles(store.trash_todos) == ["six days"]
    assert store.purge_expired_trash(retention_days=7) == 0


def test_todo_title_exists_covers_every_state(store: AppStore) -> None:
    a = store.add_todo("Active one")
    b = store.add_todo("Archived one")
    c = store.add_todo("Trashed one")
    assert a and b and c
    store.toggle_todo_done(b.id, True)
    store.archive_completed_todos()
    store.soft_delete_todo(c.id)

    assert store.todo_title_exists("  active ONE ")
    assert store.todo_title_exists("archived one")
    assert store.todo_title_exists("TRASHED ONE")
    assert not store.todo_title_exists("something else")
    assert not store.todo_title_exists("   ")


def test_persisted_todos_survive_reload(store: AppStore, kv: CountingKeyValueStore, clock: FakeClock) -> None:
    a = store.add_todo("keep me")
    b = store.add_todo("trash me")
    assert a and b
    store.soft_delete_todo(b.id)
    store.close()

    reloaded = AppStore(kv, seed_default_routines=False, clock=clock)
    assert reloaded.todos == store.todos
    assert decode_todos(kv.get(TODOS_KEY)) == store.todos


def test_unreadable_todos_start_empty_while_routines_load(clock: FakeClock) -> None:
    kv = CountingKeyValueStore(
        {
            ROUTINES_KEY: b'[{"id": "r1", "title": "Shower", "category": "Anytime"}]',
            TODOS_KEY: b"{not json",
        }
    )
    store = AppStore(kv, clock=clock)
    assert store.todos == []
    assert [r.title for r in store.routines] == ["Shower"]
    assert store.save_pending is False
