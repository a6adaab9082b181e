# src/routine_companion/logging_setup.py

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable
from pathlib import Path

APP_LOGGER_PREFIX = "routine_companion."
LOG_FILE_NAME = "routine.log"

# Per-save chatter: debounced writes fire while the user is typing.
QUIET_ON_CONSOLE = (
    "routine_companion.store.kv_store",
    "routine_companion.store.save_scheduler",
)


class _ConsoleNoiseFilter(logging.Filter):
    """Console gets app logs; quiet modules and everything else only at their threshold."""

    def __init__(
        self,
        quiet_prefixes: Iterable[str] = QUIET_ON_CONSOLE,
        *,
        quiet_level: int = logging.WARNING,
        foreign_level: int = logging.ERROR,
    ) -> None:
        super().__init__()
        self._quiet = tuple(quiet_prefixes)
        self._quiet_level = quiet_level
        self._foreign_level = foreign_level

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if not name.startswith(APP_LOGGER_PREFIX):
            # Third-party loggers and captured 'py.warnings'.
            return record.levelno >= self._foreign_level
        if self._quiet and name.startswith(self._quiet):
            return record.levelno >= self._quiet_level
        return True


def setup_logging(
    *,
    log_dir: str | Path = ".local/routine",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Filtered stderr handler plus a full log file under `log_dir`.

    Replaces existing root handlers, so calling it twice does not duplicate output.
    Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    logging.captureWarnings(True)
    return log_file
