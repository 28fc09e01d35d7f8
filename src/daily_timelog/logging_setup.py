from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "daily_timelog.log"


class _ConsoleNoiseFilter(logging.Filter):
    """Keep the interactive console readable.

    Our own records pass at the handler level; captured Python warnings and
    third-party records only pass at ERROR and above.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name.startswith("daily_timelog."):
            return True
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path | None = None,
    console_level: int = logging.WARNING,
    file_level: int = logging.DEBUG,
) -> None:
    """Console handler on stderr, plus a full log file when ``log_dir`` is set.

    Call once, before the first log record.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    for handler in list(root.handlers):
        root.removeHandler(handler)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(str(log_dir / LOG_FILE_NAME), encoding="utf-8")
        file_handler.setLevel(file_level)
        file_handler.setFormatter(fmt)
        root.addHandler(file_handler)

    logging.captureWarnings(True)
