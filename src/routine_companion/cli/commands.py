# src/routine_companion/cli/commands.py

from __future__ import annotations

import contextlib
import inspect
import logging
from collections.abc import Callable
from typing import cast

from ..core.state import AppState
from ..store.app_store import AppStore
from ..store.promotion import promote_todo_to_routine, send_brain_dump_to_todos
from ..store.store_models import CATEGORY_ORDER, RoutineCategory, RoutineRecord, TodoRecord

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /todo, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- helpers ----

def _pick(items: list, raw: str | None):
    """1-based index from user input -> item, or None."""
    if raw is None:
        return None
    try:
        n = int(raw)
    except ValueError:
        return None
    if 1 <= n <= len(items):
        return items[n - 1]
    return None


def _to_destination(src: int, target: int) -> int:
    """Final 0-based position -> insert-before offset used by the store's move operations."""
    return target + 1 if target > src else target


def _parse_category(raw: str | None) -> RoutineCategory | None:
    if not raw:
        return None
    for cat in CATEGORY_ORDER:
        if cat.value.lower() == raw.strip().lower():
            return cat
    return None


def _routine_listing(store: AppStore) -> list[RoutineRecord]:
    out: list[RoutineRecord] = []
    for cat in CATEGORY_ORDER:
        out.extend(store.routines_for(cat))
    return out


def _fmt_todos(title: str, todos: list[TodoRecord], empty: str) -> str:
    if not todos:
        return empty
    lines = [title]
    for i, t in enumerate(todos, start=1):
        mark = "x" if t.is_done else " "
        lines.append(f"  {i}. [{mark}] {t.title}")
    return "\n".join(lines)


def _fmt_routines(store: AppStore) -> str:
    today = store.today_key()
    lines: list[str] = []
    n = 0
    for cat in CATEGORY_ORDER:
        items = store.routines_for(cat)
        if not items:
            continue
        lines.append(f"{cat.value}:")
        for r in items:
            n += 1
            mark = "x" if r.is_done_on(today) else " "
            lines.append(f"  {n}. [{mark}] {r.title}")
    return "\n".join(lines) if lines else "No routines yet. Use /routine add <category> <title>."


# ---- handlers ----

def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    store = state.store
    db_path = getattr(state.settings, "store_db_path", "(in-memory)")
    return (
        "Status:\n"
        f"  Routines: {len(store.routines)}\n"
        f"  To-dos: active={len(store.active_todos)} archived={len(store.archived_todos)}"
        f" trash={len(store.trash_todos)}\n"
        f"  Save pending: {'yes' if store.save_pending else 'no'}\n"
        f"  Store: {db_path}"
    )


def cmd_routines(state: AppState, args: list[str]) -> str:
    return _fmt_routines(state.store)


def cmd_today(state: AppState, args: list[str]) -> str:
    store = state.store
    lines: list[str] = []
    for cat in CATEGORY_ORDER:
        pending = store.pending_routines_for(cat)
        if pending:
            lines.append(f"{cat.value} routines:")
            lines.extend(f"  - {r.title}" for r in pending)
    todos = store.pending_todos
    if todos:
        lines.append("To-Do:")
        lines.extend(f"  - {t.title}" for t in todos)
    return "\n".join(lines) if lines else "Nothing left for today."


def cmd_routine(state: AppState, args: list[str]) -> str:
    """
    /routine add <category> <title>
    /routine done|undo|del <n>
    /routine edit <n> <category> <title>
    /routine move <category> <from> <to>
    """
    usage = (
        "Usage:\n"
        "  /routine add <morning|anytime|evening> <title>\n"
        "  /routine done <n> | /routine undo <n> | /routine del <n>\n"
        "  /routine edit <n> <category> <title>\n"
        "  /routine move <category> <from> <to>"
    )
    if not args:
        return usage

    store = state.store
    sub = args[0].lower()

    if sub == "add":
        cat = _parse_category(args[1] if len(args) > 1 else None)
        title = " ".join(args[2:])
        if cat is None or not title.strip():
            return usage
        if not store.add_routine_if_not_exists(title, cat):
            return f"Routine already exists: {title.strip()}"
        return f"Added {cat.value} routine: {title.strip()}"

    if sub == "move":
        cat = _parse_category(args[1] if len(args) > 1 else None)
        if cat is None or len(args) < 4:
            return usage
        bucket = store.routines_for(cat)
        try:
            src, dst = int(args[2]) - 1, int(args[3]) - 1
        except ValueError:
            return usage
        if not (0 <= src < len(bucket) and 0 <= dst < len(bucket)):
            return f"No such position in {cat.value}."
        store.move_routines(cat, [src], _to_destination(src, dst))
        return _fmt_routines(store)

    item = _pick(_routine_listing(store), args[1] if len(args) > 1 else None)
    if item is None:
        return "No such routine. Use /routines to see numbers."

    if sub in ("done", "undo"):
        store.toggle_routine_done_today(item.id, sub == "done")
        return f"{'Done' if sub == 'done' else 'Not done'} today: {item.title}"

    if sub == "del":
        store.delete_routine(item.id)
        return f"Deleted routine: {item.title}"

    if sub == "edit":
        cat = _parse_category(args[2] if len(args) > 2 else None)
        title = " ".join(args[3:])
        if cat is None or not title.strip():
            return usage
        store.update_routine(item.id, title, cat)
        return f"Updated routine: {title.strip()} ({cat.value})"

    return usage


def cmd_todo(state: AppState, args: list[str]) -> str:
    """
    /todo                  -> list active to-dos
    /todo add <title>
    /todo done|undo|del <n>
    /todo edit <n> <title>
    /todo move <from> <to>
    """
    store = state.store
    if not args:
        return _fmt_todos("To-Do:", store.active_todos, "No to-dos. Use /todo add <title>.")

    usage = (
        "Usage:\n"
        "  /todo add <title>\n"
        "  /todo done <n> | /todo undo <n> | /todo del <n>\n"
        "  /todo edit <n> <title>\n"
        "  /todo move <from> <to>"
    )
    sub = args[0].lower()

    if sub == "add":
        rec = store.add_todo(" ".join(args[1:]))
        return f"Added to-do: {rec.title}" if rec else usage

    active = store.active_todos

    if sub == "move":
        if len(args) < 3:
            return usage
        try:
            src, dst = int(args[1]) - 1, int(args[2]) - 1
        except ValueError:
            return usage
        if not (0 <= src < len(active) and 0 <= dst < len(active)):
            return "No such position."
        store.move_active_todos([src], _to_destination(src, dst))
        return _fmt_todos("To-Do:", store.active_todos, "No to-dos.")

    item = _pick(active, args[1] if len(args) > 1 else None)
    if item is None:
        return "No such to-do. Use /todo to see numbers."

    if sub in ("done", "undo"):
        store.toggle_todo_done(item.id, sub == "done")
        return f"{'Done' if sub == 'done' else 'Not done'}: {item.title}"

    if sub == "del":
        store.soft_delete_todo(item.id)
        return f"Moved to trash: {item.title}"

    if sub == "edit":
        title = " ".join(args[2:])
        if not title.strip():
            return usage
        store.update_todo_title(item.id, title)
        return f"Renamed to-do: {title.strip()}"

    return usage


def cmd_trash(state: AppState, args: list[str]) -> str:
    """
    /trash                 -> list trash
    /trash restore <n>
    /trash forget <n>      -> delete forever
    /trash empty           -> delete every trashed to-do
    /trash purge           -> drop items past the retention window
    """
    store = state.store
    trash = store.trash_todos
    if not args:
        return _fmt_todos("Trash:", trash, "Trash is empty.")

    sub = args[0].lower()
    if sub == "empty":
        return f"Deleted {store.delete_all_trash()} item(s) forever."
    if sub == "purge":
        return f"Purged {store.purge_expired_trash()} expired item(s)."

    item = _pick(trash, args[1] if len(args) > 1 else None)
    if item is None:
        return "No such trash item. Use /trash to see numbers."
    if sub == "restore":
        store.restore_from_trash(item.id)
        return f"Restored: {item.title}"
    if sub == "forget":
        store.delete_from_trash_forever(item.id)
        return f"Deleted forever: {item.title}"
    return "Usage: /trash [restore <n> | forget <n> | empty | purge]"


def cmd_archive(state: AppState, args: list[str]) -> str:
    store = state.store
    if args and args[0].lower() == "list":
        return _fmt_todos("Archived:", store.archived_todos, "Archive is empty.")
    return f"Archived {store.archive_completed_todos()} completed to-do(s)."


def cmd_dump(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /dump                -> show brain dump text
    /dump <text>         -> append a line
    /dump send           -> promote lines into to-dos, then clear
    /dump clear
    """
    store = state.store
    if not args:
        text = store.brain_dump_text.strip()
        return f"Brain dump:\n{text}" if text else "Brain dump is empty."

    sub = args[0].lower()
    if sub == "clear" and len(args) == 1:
        store.set_brain_dump_text("")
        return "Brain dump cleared."

    if sub == "send" and len(args) == 1:
        if emit:
            with contextlib.suppress(Exception):
                emit("[DUMP] Sending lines to To-Do...")
        report = send_brain_dump_to_todos(store)
        return (
            f"Added {report.added} item(s). "
            f"Duplicates removed: {report.internal_duplicates_removed}. "
            f"Already existing: {report.already_existing_skipped}."
        )

    return append_to_brain_dump(state, " ".join(args))


def append_to_brain_dump(state: AppState, line: str) -> str:
    """Append one line verbatim. No subcommand parsing: "clear" is just a note."""
    line = line.strip()
    if not line:
        return "Nothing to note."
    store = state.store
    current = store.brain_dump_text
    sep = "" if not current or current.endswith("\n") else "\n"
    store.set_brain_dump_text(f"{current}{sep}{line}")
    return "Noted."


def cmd_promote(state: AppState, args: list[str]) -> str:
    """/promote <n> <category> -> move active to-do n into routines."""
    store = state.store
    item = _pick(store.active_todos, args[0] if args else None)
    cat = _parse_category(args[1] if len(args) > 1 else None)
    if item is None or cat is None:
        return "Usage: /promote <n> <morning|anytime|evening>"
    if not promote_todo_to_routine(store, item.id, cat):
        return f"Routine already exists: {item.title}"
    return f"Moved to {cat.value} routines: {item.title}"


def cmd_save(state: AppState, args: list[str]) -> str:
    state.store.save_now()
    logger.debug("Manual save requested")
    return "Saved."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show store totals and save state.")
registry.register("routines", cmd_routines, help_text="List routines by category.", aliases=["r"])
registry.register("today", cmd_today, help_text="What is left for today.")
registry.register(
    "routine", cmd_routine, help_text="Manage routines: add | done | undo | edit | del | move."
)
registry.register(
    "todo", cmd_todo, help_text="Manage to-dos: add | done | undo | edit | del | move.", aliases=["t"]
)
registry.register("trash", cmd_trash, help_text="Trash: restore | forget | empty | purge.")
registry.register("archive", cmd_archive, help_text="Archive completed to-dos (/archive list to view).")
registry.register("dump", cmd_dump, help_text="Brain dump: /dump <text> | /dump send | /dump clear.")
registry.register("promote", cmd_promote, help_text="Move a to-do into routines: /promote <n> <category>.")
registry.register("save", cmd_save, help_text="Write everything to disk now.")
