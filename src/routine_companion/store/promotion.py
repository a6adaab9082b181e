# store/promotion.py

from __future__ import annotations

"""
Promotion pipelines with duplicate suppression.

One rule for both pipelines: never create a record whose trimmed,
case-insensitive title already exists in the destination collection.

- brain dump text -> to-dos (existing titles checked across every to-do state)
- to-do -> routine (checked across every routine category; the to-do is moved, not copied)
"""

import logging
from typing import TYPE_CHECKING

from .store_models import BrainDumpReport, RoutineCategory

if TYPE_CHECKING:
    from .app_store import AppStore

logger = logging.getLogger(__name__)


def normalize_title(title: str | None) -> str:
    return (title or "").strip().casefold()


def split_lines(text: str | None) -> list[str]:
    """Split on line boundaries, trim each line, drop blank ones."""
    return [line.strip() for line in (text or "").splitlines() if line.strip()]


def dedupe_lines(lines: list[str]) -> tuple[list[str], int]:
    """
    Case-insensitive de-duplication, first occurrence wins (its casing is kept).

    Returns (unique_lines, duplicates_removed).
    """
    seen: set[str] = set()
    unique: list[str] = []
    for line in lines:
        key = normalize_title(line)
        if key in seen:
            continue
        seen.add(key)
        unique.append(line)
    return unique, len(lines) - len(unique)


def promote_brain_dump(store: AppStore, text: str) -> BrainDumpReport:
    unique, internal_dupes = dedupe_lines(split_lines(text))

    fresh: list[str] = []
    skipped = 0
    for line in unique:
        if store.todo_title_exists(line):
            skipped += 1
            continue
        fresh.append(line)

    added = store.add_todos(fresh)
    report = BrainDumpReport(
        added=len(added),
        internal_duplicates_removed=internal_dupes,
        already_existing_skipped=skipped,
        added_titles=[t.title for t in added],
    )
    logger.info(
        "Brain dump promoted added=%d internal_dupes=%d existing_skipped=%d",
        report.added,
        report.internal_duplicates_removed,
        report.already_existing_skipped,
    )
    return report


def send_brain_dump_to_todos(store: AppStore) -> BrainDumpReport:
    """Promote the stored brain dump text, then clear it if any line was processed."""
    report = promote_brain_dump(store, store.brain_dump_text)
    if report.processed:
        store.set_brain_dump_text("")
    return report


def promote_todo_to_routine(store: AppStore, todo_id: str, category: RoutineCategory) -> bool:
    """
    Move a to-do into the routines list.

    Returns False (to-do untouched) when the to-do is unknown or a routine
    with the same title already exists in any category.
    """
    todo = store.get_todo(todo_id)
    if todo is None:
        return False

    if not store.add_routine_if_not_exists(todo.title, category):
        logger.info("Routine already exists, not promoting to-do id=%s", todo_id)
        return False

    store.remove_todo_completely(todo_id)
    logger.info("Promoted to-do id=%s to routine category=%s", todo_id, category.value)
    return True
