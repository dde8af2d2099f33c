# tests/test_logging_setup.py

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path

import pytest

from cancel_spotter.logging_setup import LIBRARY_LOGGERS, _ConsoleNoiseFilter, setup_logging


def _record(name: str, level: int) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


@contextmanager
def _isolated_root_logger():
    # Saved inside the test so pytest's own per-phase capture handlers come back untouched.
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    lib_levels = {n: logging.getLogger(n).level for n in LIBRARY_LOGGERS}
    try:
        yield
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
            h.close()
        for h in handlers:
            root.addHandler(h)
        root.setLevel(level)
        for n, lvl in lib_levels.items():
            logging.getLogger(n).setLevel(lvl)
        logging.captureWarnings(False)


@pytest.mark.parametrize(
    "name, level, shown",
    [
        ("cancel_spotter.cli.main", logging.INFO, True),
        ("cancel_spotter", logging.DEBUG, True),
        ("cancel_spotter.detector.runtime", logging.INFO, False),
        ("cancel_spotter.detector.runtime", logging.WARNING, True),
        ("cancel_spotter.detector.matching", logging.DEBUG, False),
        ("cancel_spotterx", logging.INFO, False),
        ("httpx", logging.WARNING, False),
        ("openai", logging.ERROR, True),
        ("py.warnings", logging.WARNING, False),
    ],
)
def test_console_filter(name: str, level: int, shown: bool) -> None:
    assert _ConsoleNoiseFilter().filter(_record(name, level)) is shown


def test_setup_logging_writes_everything_to_file(tmp_path: Path) -> None:
    with _isolated_root_logger():
        log_file = setup_logging(log_dir=tmp_path / "logs", console_level=logging.WARNING)
        setup_logging(log_dir=tmp_path / "logs", console_level=logging.WARNING)

        assert log_file == tmp_path / "logs" / "cancel-spotter.log"
        assert len(logging.getLogger().handlers) == 2
        assert logging.getLogger("openai").level == logging.WARNING

        logging.getLogger("cancel_spotter.detector.runtime").debug("rescan detail")
        for h in logging.getLogger().handlers:
            h.flush()

        assert "rescan detail" in log_file.read_text(encoding="utf-8")
