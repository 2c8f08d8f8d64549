# src/drillboard/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "drillboard.log"
LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Chatty in DEBUG even for the file log (request bodies, connection pool).
_QUIET_LIBRARIES = ("httpx", "httpcore", "openai")


class _AppOnlyFilter(logging.Filter):
    """Console shows drillboard records; anything else (incl. py.warnings) only at ERROR+."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == "drillboard" or record.name.startswith("drillboard."):
            return True
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/drillboard",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Route logs to stderr (filtered, so board output on stdout stays clean) and
    to `<log_dir>/drillboard.log` (everything at `file_level`).

    Replaces any handlers already on the root logger, so calling it twice does
    not duplicate output. Returns the log file path.
    """
    log_file = Path(log_dir) / LOG_FILE_NAME
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_AppOnlyFilter())

    file = logging.FileHandler(str(log_file), encoding="utf-8")
    file.setLevel(file_level)
    file.setFormatter(fmt)

    root.addHandler(console)
    root.addHandler(file)

    logging.captureWarnings(True)
    for name in _QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)

    return log_file
