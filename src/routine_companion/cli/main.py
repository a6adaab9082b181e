# src/routine_companion/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState on the running event loop, then runs the
console connector (optional). The store is always closed on the way out so a
pending debounced save is flushed instead of dropped.
"""

from __future__ import annotations

import asyncio
import logging
import signal

from ..cli.bootstrap import create_initial_state, shutdown_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def _run(settings) -> None:
    loop = asyncio.get_running_loop()

    # IMPORTANT: reuse same settings object
    state = create_initial_state(settings=settings, loop=loop)

    # Use an Event so main can wait without a busy while-loop.
    stop_main = asyncio.Event()

    def _handle_signal(signum: int) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _handle_signal, sig)
        except (NotImplementedError, RuntimeError):
            # Some platforms (Windows) do not support loop signal handlers.
            pass

    try:
        if settings.console_enabled:
            console = asyncio.create_task(run_console_loop(state))
            stopper = asyncio.create_task(stop_main.wait())
            await asyncio.wait({console, stopper}, return_when=asyncio.FIRST_COMPLETED)
            stopper.cancel()
            if not console.done():
                # The input reader is a daemon thread; it dies with the process.
                console.cancel()
        else:
            logger.info("Console disabled. Store is idle. Press Ctrl+C to stop.")
            await stop_main.wait()
    finally:
        shutdown_state(state)


def main() -> None:
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    # choose log dir (prefer settings.data_dir if it exists)
    log_dir = getattr(settings, "data_dir", ".local/routine")
    setup_logging(log_dir=log_dir, console_level=console_level)

    logger.info("Starting %s...", getattr(settings, "app_name", "routine"))

    try:
        asyncio.run(_run(settings))
    except KeyboardInterrupt:
        pass
    logger.info("Bye.")


if __name__ == "__main__":
    main()
