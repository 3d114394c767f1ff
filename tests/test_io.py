# tests/test_io.py
"""Encoding, newline, backup and lock behavior of file writes."""

from __future__ import annotations

from pathlib import Path

import pytest

from wafbump._types import Options
from wafbump.core import update
from wafbump.errors import LockAcquireTimeoutError
from wafbump.io import advisory_lock, backup_file, read_text_preserve, write_text_preserve


def test_preserve_bom_and_crlf_on_update(waf_project: Path, stub_collaborators) -> None:
    manifest = waf_project / "resolve.json"
    text = manifest.read_text(encoding="utf-8")
    manifest.write_bytes(b"\xef\xbb\xbf" + text.replace("\n", "\r\n").encode("utf-8"))

    result = update(Options(path=waf_project))
    assert result.changed

    data = manifest.read_bytes()
    assert data.startswith(b"\xef\xbb\xbf")
    assert b'"major": 14,\r\n' in data
    assert b"\n" not in data.replace(b"\r\n", b"")


def test_read_write_roundtrip_preserves_format(tmp_path: Path) -> None:
    path = tmp_path / "resolve.json"
    path.write_bytes(b"\xef\xbb\xbf[\r\n]\r\n")

    text, newline, bom = read_text_preserve(path)
    assert newline == "\r\n" and bom is True

    write_text_preserve(path, text, bom)
    assert path.read_bytes() == b"\xef\xbb\xbf[\r\n]\r\n"
    assert [p.name for p in tmp_path.iterdir()] == ["resolve.json"]


def test_timestamped_backup_pruning_keeps_recent_files(tmp_path: Path) -> None:
    target = tmp_path / "resolve.json"
    target.write_text("[]\n", encoding="utf-8")

    for _ in range(6):
        backup_file(target, ".bak", timestamped=True, keep_last=3)

    assert len(list(tmp_path.glob("resolve.json.bak.*"))) == 3


def test_plain_backup(tmp_path: Path) -> None:
    target = tmp_path / "lock_version_resolve.json"
    target.write_text("{}\n", encoding="utf-8")
    backup = backup_file(target, ".orig", timestamped=False, keep_last=0)
    assert backup.name == "lock_version_resolve.json.orig"
    assert backup.read_text(encoding="utf-8") == "{}\n"


def test_backup_of_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        backup_file(tmp_path / "nope.json", ".bak", timestamped=False, keep_last=0)


def test_second_lock_holder_times_out(tmp_path: Path) -> None:
    lock_path = tmp_path / ".wafbump.lock"
    with advisory_lock(lock_path, timeout_sec=1):
        with pytest.raises(LockAcquireTimeoutError):
            with advisory_lock(lock_path, timeout_sec=0):
                pass
