# store/store_codec.py

"""
JSON codec for the persisted collections.

Each collection is stored as one UTF-8 JSON array. Decoding is tolerant:
- optional fields that are missing or null decode to their unset value,
- unknown categories fall back to Anytime,
- records without an id or a usable title are skipped (logged), the rest survive.

Only a blob that is not a JSON array at all is reported as CodecError.
"""

from __future__ import annotations

import json
import logging
import math
import time
from collections.abc import Iterable
from typing import Any

from .store_models import RoutineCategory, RoutineRecord, TodoRecord

logger = logging.getLogger(__name__)


class CodecError(ValueError):
    """Raised when a persisted blob cannot be decoded at all."""


# ---- helpers ----

def _opt_int(raw: Any) -> int | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError, OverflowError):
        return None


def _opt_float(raw: Any) -> float | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError, OverflowError):
        return None
    # NaN / Infinity are accepted by json.loads but are not timestamps.
    return value if math.isfinite(value) else None


def _clean_title(raw: Any) -> str:
    if not isinstance(raw, str):
        return ""
    return raw.strip()


def _load_array(data: bytes | str, what: str) -> list[Any]:
    try:
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        value = json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CodecError(f"{what}: not valid JSON ({e})") from e

    if not isinstance(value, list):
        raise CodecError(f"{what}: expected a JSON array, got {type(value).__name__}")
    return value


def _dump_array(items: list[dict[str, Any]]) -> bytes:
    return json.dumps(items, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


# ---- routines ----

def routine_to_dict(r: RoutineRecord) -> dict[str, Any]:
    return {
        "id": r.id,
        "title": r.title,
        "category": r.category.value,
        "lastCompletedDay": r.last_completed_day,
    }


def routine_from_dict(raw: dict[str, Any]) -> RoutineRecord | None:
    rid = raw.get("id")
    title = _clean_title(raw.get("title"))
    if not rid or not title:
        return None
    return RoutineRecord(
        id=str(rid),
        title=title,
        category=RoutineCategory.from_raw(raw.get("category")),
        last_completed_day=_opt_int(raw.get("lastCompletedDay")),
    )


def encode_routines(routines: Iterable[RoutineRecord]) -> bytes:
    return _dump_array([routine_to_dict(r) for r in routines])


def decode_routines(data: bytes | str) -> list[RoutineRecord]:
    out: list[RoutineRecord] = []
    seen: set[str] = set()
    for i, raw in enumerate(_load_array(data, "routines")):
        rec = routine_from_dict(raw) if isinstance(raw, dict) else None
        if rec is None or rec.id in seen:
            logger.warning("Skipping unreadable routine record #%d", i)
            continue
        seen.add(rec.id)
        out.append(rec)
    return out


# ---- to-dos ----

def todo_to_dict(t: TodoRecord) -> dict[str, Any]:
    return {
        "id": t.id,
        "title": t.title,
        "isDone": t.is_done,
        "createdAt": t.created_at,
        "deletedAt": t.deleted_at,
        "archivedAt": t.archived_at,
    }


def todo_from_dict(raw: dict[str, Any], *, default_created_at: float) -> TodoRecord | None:
    tid = raw.get("id")
    title = _clean_title(raw.get("title"))
    if not tid or not title:
        return None
    created_at = _opt_float(raw.get("createdAt"))
    return TodoRecord(
        id=str(tid),
        title=title,
        is_done=bool(raw.get("isDone", False)),
        created_at=default_created_at if created_at is None else created_at,
        deleted_at=_opt_float(raw.get("deletedAt")),
        archived_at=_opt_float(raw.get("archivedAt")),
    )


def encode_todos(todos: Iterable[TodoRecord]) -> bytes:
    return _dump_array([todo_to_dict(t) for t in todos])


def decode_todos(data: bytes | str, *, now_ts: float | None = None) -> list[TodoRecord]:
    if now_ts is None:
        now_ts = time.time()

    out: list[TodoRecord] = []
    seen: set[str] = set()
    for i, raw in enumerate(_load_array(data, "todos")):
        rec = todo_from_dict(raw, default_created_at=now_ts) if isinstance(raw, dict) else None
        if rec is None or rec.id in seen:
            logger.warning("Skipping unreadable to-do record #%d", i)
            continue
        seen.add(rec.id)
        out.append(rec)
    return out


# ---- brain dump ----

def encode_text(text: str) -> bytes:
    return text.encode("utf-8")


def decode_text(data: bytes | str) -> str:
    if isinstance(data, str):
        return data
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise CodecError(f"brain dump: not valid UTF-8 ({e})") from e
