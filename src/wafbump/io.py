"""File I/O helpers for rewriting waf dependency files in place.

Reads keep the file's BOM and newline style, writes go through a temp file in
the same directory and an atomic rename, and every rewritten file gets a backup
first. A portalocker advisory lock keeps two wafbump runs off the same project.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

import portalocker

from .errors import LockAcquireTimeoutError

BOM = b"\xef\xbb\xbf"


def read_text_preserve(path: Path) -> tuple[str, str, bool]:
    """Return decoded text, dominant newline style, and BOM presence."""

    raw = path.read_bytes()
    has_bom = raw.startswith(BOM)
    text = raw.decode("utf-8-sig", errors="replace")
    if "\r\n" in text:
        newline = "\r\n"
    elif "\r" in text:
        newline = "\r"
    else:
        newline = "\n"
    return text, newline, has_bom


def write_text_preserve(path: Path, content: str, bom: bool) -> None:
    payload = content.encode("utf-8")
    if bom:
        payload = BOM + payload
    write_atomic_bytes(path, payload)


def write_atomic_bytes(path: Path, data: bytes) -> None:
    """Replace `path` with `data` via a sibling temp file and ``os.replace``."""

    tmp_fd, tmp_path = tempfile.mkstemp(prefix=f".{path.name}.wafbump-", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(tmp_fd, "wb") as stream:
            stream.write(data)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def _prune_old_backups(path: Path, suffix: str, keep_last: int) -> None:
    if keep_last <= 0:
        return

    backups = sorted(
        path.parent.glob(f"{path.name}{suffix}.*"),
        key=lambda item: item.stat().st_mtime,
        reverse=True,
    )
    for stale in backups[keep_last:]:
        try:
            stale.unlink()
        except OSError:
            logging.warning("Unable to prune old backup: %s", stale)


def _timestamped_backup_path(path: Path, suffix: str) -> Path:
    stamp = datetime.now().strftime("%Y%m%d-%H%M%S-%f")
    base_name = f"{path.name}{suffix}.{stamp}"
    backup = path.with_name(base_name)

    counter = 1
    while backup.exists():
        backup = path.with_name(f"{base_name}-{counter:02d}")
        counter += 1
    return backup


def backup_file(path: Path, suffix: str, timestamped: bool, keep_last: int) -> Path:
    """Copy `path` next to itself and return the copy's path."""

    if not path.exists():
        raise FileNotFoundError(f"Cannot back up missing file: {path}")

    backup = _timestamped_backup_path(path, suffix) if timestamped else path.with_name(f"{path.name}{suffix}")
    shutil.copy2(path, backup)
    if timestamped:
        _prune_old_backups(path, suffix, keep_last)
    logging.info("Backed up %s to %s", path.name, backup)
    return backup


@contextmanager
def advisory_lock(lock_path: Path, timeout_sec: int) -> Iterator[None]:
    """Hold an exclusive portalocker lock on `lock_path` for the block."""

    lock_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        lock = portalocker.Lock(str(lock_path), mode="a+", timeout=timeout_sec)
        lock.acquire()
    except portalocker.exceptions.LockException as exc:
        raise LockAcquireTimeoutError(str(lock_path), timeout_sec) from exc

    try:
        yield
    finally:
        lock.release()


__all__ = [
    "advisory_lock",
    "backup_file",
    "read_text_preserve",
    "write_atomic_bytes",
    "write_text_preserve",
]
