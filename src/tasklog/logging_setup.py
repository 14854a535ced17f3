# src/tasklog/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

_PACKAGE = __name__.partition(".")[0]
LOG_FILE_NAME = f"{_PACKAGE}.log"


class _ConsoleNoiseFilter(logging.Filter):
    """
    Stderr shows our own records at the handler level; everything else
    (third-party loggers, captured 'py.warnings') only from ERROR up.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == _PACKAGE or record.name.startswith(_PACKAGE + "."):
            return True
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path,
    console_level: int = logging.WARNING,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Route logs to stderr (filtered) and to `<log_dir>/tasklog.log` (everything
    from `file_level`). Stdout is left to command replies.

    Replaces any handlers already on the root logger; returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(min(console_level, file_level))
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())

    to_file = logging.FileHandler(str(log_file), encoding="utf-8")
    to_file.setLevel(file_level)
    to_file.setFormatter(fmt)

    root.addHandler(console)
    root.addHandler(to_file)

    # warnings.warn(...) arrives as 'py.warnings' records.
    logging.captureWarnings(True)
    return log_file
