# src/routine_companion/connectors/console_connector.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import sys
import threading
from datetime import datetime

from ..cli.commands import append_to_brain_dump
from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)

_EOF = None


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _rewrite_prev_line(line: str) -> None:
    """
    Replace the last terminal line with `line`.
    Best-effort: if not a TTY, just print a new line.
    """
    try:
        if sys.stdout.isatty():
            sys.stdout.write("\033[1A\033[2K\r")
            sys.stdout.write(line + "\n")
            sys.stdout.flush()
        else:
            print(line)
    except OSError:
        print(line)


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def _start_input_reader(
    loop: asyncio.AbstractEventLoop,
    lines: asyncio.Queue[str | None],
    ready: threading.Event,
) -> threading.Thread:
    """
    Blocking input() in a daemon thread.

    Waits for `ready` before each prompt so replies are printed before the next '>>>'.
    Lines are handed to the loop thread; the store is never touched from here.
    """

    def _put(item: str | None) -> None:
        # The loop may already be closed during shutdown.
        with contextlib.suppress(RuntimeError):
            loop.call_soon_threadsafe(lines.put_nowait, item)

    def _reader() -> None:
        while True:
            ready.wait()
            ready.clear()
            try:
                line = input(">>> ")
            except (EOFError, KeyboardInterrupt):
                _put(_EOF)
                return
            _put(line)

    t = threading.Thread(target=_reader, name="console-input", daemon=True)
    t.start()
    return t


async def run_console_loop(state: AppState) -> None:
    """
    Read commands until /exit or EOF.

    The event loop stays free while the user types, so debounced saves keep firing.
    """
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Type /help for commands. Plain text goes to the brain dump. Use /exit to quit.\n")

    loop = asyncio.get_running_loop()
    lines: asyncio.Queue[str | None] = asyncio.Queue()
    ready = threading.Event()
    _start_input_reader(loop, lines, ready)

    def emit(text: str) -> None:
        # Immediate user-visible feedback for multi-step commands.
        print(f"[{_ts_local()}] {text}", flush=True)

    while True:
        ready.set()
        raw = await lines.get()
        if raw is _EOF:
            logger.info("Console EOF received, exiting.")
            break

        user_input = raw.strip()
        _rewrite_prev_line(f"[{_ts_local()}] >>> {user_input}")

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            if user_input.startswith("/"):
                cmd_response = command_registry.handle(state, user_input, emit=emit)
            else:
                # Bare text goes into the brain dump as-is, like typing into the notes pad.
                cmd_response = append_to_brain_dump(state, user_input)
        except Exception:
            logger.exception("Command handler crashed.")
            cmd_response = "Internal error while handling a command."

        if cmd_response is not None:
            print(f"[{_ts_local()}] {cmd_response}")

    logger.info("Console connector finished.")
