# tests/test_store_routines.py

from __future__ import annotations

from routine_companion.store.app_store import DEFAULT_ROUTINES, ROUTINES_KEY, AppStore, move_offsets
from routine_companion.store.store_codec import decode_routines
from routine_companion.store.store_models import RoutineCategory

from .fakes import CountingKeyValueStore, FakeClock

M, A, E = RoutineCategory.MORNING, RoutineCategory.ANYTIME, RoutineCategory.EVENING


def _titles(records) -> list[str]:
    return [r.title for r in records]


def test_add_routine_trims_and_ignores_blank(store: AppStore) -> None:
    rec = store.add_routine("  Stretch  ", M)
    assert rec is not None
    assert rec.title == "Stretch"
    assert rec.last_completed_day is None

    for blank in ("", "   ", "\n\t "):
        assert store.add_routine(blank, E) is None
    assert _titles(store.routines) == ["Stretch"]


def test_add_routine_if_not_exists_is_case_insensitive_across_categories(store: AppStore) -> None:
    assert store.add_routine_if_not_exists("Shower", A) is True
    assert store.add_routine_if_not_exists("Shower", A) is False
    assert store.add_routine_if_not_exists("  sHoWeR ", E) is False
    assert _titles(store.routines) == ["Shower"]
    assert store.routines_for(E) == []


def test_toggle_done_today_uses_today_key(store: AppStore, clock: FakeClock) -> None:
    rec = store.add_routine("Floss", E)
    assert rec is not None
    assert store.today_key() == 20260115

    store.toggle_routine_done_today(rec.id, True)
    (got,) = store.routines_for(E)
    assert got.last_completed_day == store.today_key()
    assert store.pending_routines_for(E) == []

    store.toggle_routine_done_today(rec.id, False)
    (got,) = store.routines_for(E)
    assert got.last_completed_day is None


def test_done_flag_is_reinterpreted_on_a_new_day(store: AppStore, clock: FakeClock) -> None:
    rec = store.add_routine("Walk", A)
    assert rec is not None
    store.toggle_routine_done_today(rec.id, True)

    clock.advance(days=1)
    (got,) = store.routines_for(A)
    # Stored value is untouched, it just no longer matches today.
    assert got.last_completed_day == 20260115
    assert not got.is_done_on(store.today_key())
    assert _titles(store.pending_routines_for(A)) == ["Walk"]


def test_update_routine_keeps_position_and_rejects_blank(store: AppStore) -> None:
    a = store.add_routine("One", M)
    b = store.add_routine("Two", M)
    c = store.add_routine("Three", E)
    assert a and b and c

    store.update_routine(b.id, "  Two (edited) ", E)
    assert _titles(store.routines) == ["One", "Two (edited)", "Three"]
    assert store.get_routine(b.id).category is E

    store.update_routine(b.id, "   ", M)
    store.update_routine("missing", "X", M)
    assert _titles(store.routines) == ["One", "Two (edited)", "Three"]
    assert store.get_routine(b.id).category is E


def test_delete_routine_unknown_id_is_noop(store: AppStore) -> None:
    rec = store.add_routine("Read", E)
    assert rec is not None
    store.delete_routine("nope")
    assert len(store.routines) == 1
    store.delete_routine(rec.id)
    assert store.routines == []


def test_move_routines_only_touches_one_category(store: AppStore) -> None:
    for title, cat in [("m1", M), ("a1", A), ("m2", M), ("e1", E), ("m3", M), ("a2", A)]:
        store.add_routine(title, cat)

    before_a = _titles(store.routines_for(A))
    before_e = _titles(store.routines_for(E))

    store.move_routines(M, [0], 2)

    assert _titles(store.routines_for(M)) == ["m2", "m1", "m3"]
    assert _titles(store.routines_for(A)) == before_a
    assert _titles(store.routines_for(E)) == before_e
    # Rebuilt in fixed category order.
    assert _titles(store.routines) == ["m2", "m1", "m3", "a1", "a2", "e1"]


def test_move_does_not_touch_completion(store: AppStore) -> None:
    a = store.add_routine("a", M)
    store.add_routine("b", M)
    assert a is not None
    store.toggle_routine_done_today(a.id, True)

    store.move_routines(M, [0], 2)
    assert store.get_routine(a.id).last_completed_day == store.today_key()


def test_move_offsets_remove_then_insert() -> None:
    assert move_offsets(["a", "b", "c"], [0], 2) == ["b", "a", "c"]
    assert move_offsets(["a", "b", "c"], [0], 3) == ["b", "c", "a"]
    assert move_offsets(["a", "b", "c"], [2], 0) == ["c", "a", "b"]
    assert move_offsets(["a", "b", "c", "d"], [0, 2], 4) == ["b", "d", "a", "c"]
    assert move_offsets(["a", "b"], [5], 0) == ["a", "b"]


def test_first_run_seeds_default_routines(clock: FakeClock) -> None:
    kv = CountingKeyValueStore()
    store = AppStore(kv, clock=clock)
    assert len(store.routines) == len(DEFAULT_ROUTINES)
    assert _titles(store.routines_for(M)) == ["Take vitamins (AM)", "Wash face (AM)"]

    # Seed set is persisted on the next flush.
    assert store.flush() is True
    assert len(decode_routines(kv.get(ROUTINES_KEY))) == len(DEFAULT_ROUTINES)


def test_unreadable_routines_fall_back_to_seed(clock: FakeClock) -> None:
    kv = CountingKeyValueStore({ROUTINES_KEY: b"{not json"})
    store = AppStore(kv, clock=clock)
    assert _titles(store.routines_for(A)) == ["Shower"]


def test_empty_saved_routines_stay_empty(clock: FakeClock) -> None:
    kv = CountingKeyValueStore({ROUTINES_KEY: b"[]"})
    store = AppStore(kv, clock=clock)
    assert store.routines == []
