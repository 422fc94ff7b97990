"""Logging configuration for the command line runner."""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class _ConsoleNoiseFilter(logging.Filter):
    """Keep buildgraph logs, only let third-party records through on ERROR."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name.startswith("buildgraph"):
            return True
        return record.levelno >= logging.ERROR


def setup_logging(
    verbosity: int = 0,
    log_file: Optional[Union[str, Path]] = None,
) -> None:
    """Configure the root logger.

    Args:
        verbosity: 0 shows warnings, 1 task progress, 2 and more everything
        log_file: Also write DEBUG level logs to this file

    Call this once, before the first task runs.
    """
    if verbosity <= 0:
        console_level = logging.WARNING
    elif verbosity == 1:
        console_level = logging.INFO
    else:
        console_level = logging.DEBUG

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S")

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_file), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(fmt)
        root.addHandler(fh)

    logging.captureWarnings(True)
