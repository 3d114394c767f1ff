"""Logging setup for the wafbump CLI and embedded runs.

Console output stays bare (just the message) so it reads well next to the
summary; ``-v`` shows the waf commands being run and ``-vv`` also shows their
output and each resolution step. A log file, when requested, always records
everything with timestamps.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path


def _level(verbosity: int, quiet: bool) -> int:
    if quiet or verbosity <= 0:
        return logging.WARNING
    if verbosity == 1:
        return logging.INFO
    return logging.DEBUG


def setup_logging(verbosity: int, quiet: bool, log_file: Path | None) -> None:
    level = _level(verbosity, quiet)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.DEBUG if log_file else level)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(console)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(message)s"))
        root.addHandler(file_handler)


__all__ = ["setup_logging"]
