# src/cancel_spotter/logging_setup.py

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable
from pathlib import Path

APP_LOGGER = "cancel_spotter"

# Rescans can run once per page mutation; their per-scan lines belong in the file only.
RESCAN_LOGGERS = ("cancel_spotter.detector.runtime", "cancel_spotter.detector.matching")

# Libraries whose INFO/DEBUG output is request-level detail.
LIBRARY_LOGGERS = ("httpx", "httpcore", "openai", "bs4")


class _ConsoleNoiseFilter(logging.Filter):
    """Console shows app logs, rescan logs only at WARNING+, everything else only at ERROR+."""

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name in RESCAN_LOGGERS:
            return record.levelno >= logging.WARNING
        if name == APP_LOGGER or name.startswith(APP_LOGGER + "."):
            return True
        # py.warnings (bs4's MarkupResemblesLocatorWarning) and third-party loggers.
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/cancel-spotter",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    log_file_name: str = "cancel-spotter.log",
    library_loggers: Iterable[str] = LIBRARY_LOGGERS,
) -> Path:
    """
    Route all logs to a filtered stderr console and an unfiltered file under log_dir.

    Replaces existing root handlers, so repeated calls don't duplicate output.
    Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / log_file_name

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

    fh = logging.FileHandler(str(log_file), encoding="utf-8")
    fh.setLevel(file_level)
    fh.setFormatter(fmt)
    root.addHandler(fh)

    for name in library_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.captureWarnings(True)
    return log_file
