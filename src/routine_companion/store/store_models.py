# store/store_models.py

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum


class RoutineCategory(StrEnum):
    """
    Routine bucket.

    Values double as the persisted form and the display label.
    """

    MORNING = "Morning"
    ANYTIME = "Anytime"
    EVENING = "Evening"

    @classmethod
    def from_raw(cls, raw: str | None) -> RoutineCategory:
        if not raw:
            return cls.ANYTIME
        try:
            return cls(raw)
        except ValueError:
            pass
        # Accept "morning" / "MORNING" from hand-written input.
        for cat in cls:
            if cat.value.lower() == str(raw).strip().lower():
                return cat
        return cls.ANYTIME


CATEGORY_ORDER: tuple[RoutineCategory, ...] = (
    RoutineCategory.MORNING,
    RoutineCategory.ANYTIME,
    RoutineCategory.EVENING,
)


class TodoState(StrEnum):
    ACTIVE = "active"
    ARCHIVED = "archived"
    TRASHED = "trashed"


def new_record_id() -> str:
    return uuid.uuid4().hex


def day_key(d: date) -> int:
    """YYYYMMDD as an integer, e.g. 2026-01-08 -> 20260108."""
    return d.year * 10000 + d.month * 100 + d.day


@dataclass(frozen=True, slots=True)
class RoutineRecord:
    id: str
    title: str
    category: RoutineCategory = RoutineCategory.ANYTIME
    # Day (YYYYMMDD) the routine was last ticked off; compared against today on read.
    last_completed_day: int | None = None

    def is_done_on(self, day: int) -> bool:
        return self.last_completed_day == day


@dataclass(frozen=True, slots=True)
class TodoRecord:
    id: str
    title: str
    is_done: bool
    created_at: float
    deleted_at: float | None = None
    archived_at: float | None = None

    @property
    def state(self) -> TodoState:
        if self.deleted_at is not None:
            return TodoState.TRASHED
        if self.archived_at is not None:
            return TodoState.ARCHIVED
        return TodoState.ACTIVE

    @property
    def is_trashed(self) -> bool:
        return self.state is TodoState.TRASHED

    @property
    def is_archived(self) -> bool:
        return self.state is TodoState.ARCHIVED

    @property
    def is_active(self) -> bool:
        return self.state is TodoState.ACTIVE


@dataclass(frozen=True, slots=True)
class BrainDumpReport:
    """Outcome of promoting brain dump lines into to-dos."""

    added: int = 0
    internal_duplicates_removed: int = 0
    already_existing_skipped: int = 0
    added_titles: list[str] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return self.added + self.internal_duplicates_removed + self.already_existing_skipped
