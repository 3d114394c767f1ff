"""Programmatic entry points for CI wrappers and agent tooling.

Converts loose dictionaries into `Options` and returns JSON-safe payloads, so
callers can drive wafbump without spawning the CLI and parsing its output.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from ._types import JsonResult, Options
from .config import merge_options
from .core import update
from .report import result_to_json


def options_from_mapping(payload: Mapping[str, Any], *, default_path: Path | None = None) -> Options:
    """Create Options from an arbitrary mapping, falling back to defaults."""

    base = Options(path=default_path or Path("."))
    return merge_options(base, dict(payload))


def run_update_payload(payload: Mapping[str, Any], *, default_path: Path | None = None) -> JsonResult:
    options = options_from_mapping(payload, default_path=default_path)
    return result_to_json(update(options))


__all__ = ["options_from_mapping", "run_update_payload"]
