# store/save_scheduler.py

from __future__ import annotations

"""
Debounced save scheduler.

Every schedule() call cancels the armed timer and arms a new one, so a burst
of mutations produces a single write once the burst has been quiet for
delay_seconds. flush_now() forces the pending write immediately (shutdown).

The flush callback serialises whatever the store holds at flush time, never a
snapshot captured at schedule time, so the latest state always wins.
"""

import asyncio
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class SaveScheduler:
    """
    Cancel-and-reschedule timer on an asyncio event loop.

    Runs on the loop thread only; schedule() is not thread-safe.
    Without any loop (plain synchronous use) a scheduled save simply stays
    pending until flush_now() is called.
    """

    def __init__(
        self,
        flush: Callable[[], None],
        *,
        delay_seconds: float = 0.4,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._flush = flush
        self._delay = max(0.0, float(delay_seconds))
        self._loop = loop
        self._handle: asyncio.TimerHandle | None = None
        self._pending = False

    @property
    def delay_seconds(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        return self._pending

    def _resolve_loop(self) -> asyncio.AbstractEventLoop | None:
        if self._loop is not None and not self._loop.is_closed():
            return self._loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return None

    def schedule(self) -> None:
        self._cancel_timer()
        self._pending = True

        loop = self._resolve_loop()
        if loop is None:
            logger.debug("No event loop; save stays pending until flush_now()")
            return

        self._handle = loop.call_later(self._delay, self._on_timer)

    def flush_now(self, *, force: bool = False) -> bool:
        """
        Run the pending save right away.

        force=True writes even when nothing is pending.
        Returns True if a save was attempted.
        """
        self._cancel_timer()
        if not self._pending and not force:
            return False
        self._run_flush()
        return True

    def cancel(self) -> None:
        """Drop the armed timer and the pending flag without writing."""
        self._cancel_timer()
        self._pending = False

    def _cancel_timer(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _on_timer(self) -> None:
        self._handle = None
        if self._pending:
            self._run_flush()

    def _run_flush(self) -> None:
        self._pending = False
        try:
            self._flush()
        except Exception:
            # Keep it pending so the next flush_now() (e.g. on shutdown) retries.
            self._pending = True
            logger.exception("Scheduled save failed; will retry on next flush")
