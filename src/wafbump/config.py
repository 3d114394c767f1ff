# src/wafbump/config.py
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from ._types import Options, UpdateStrategy
from .errors import UnknownUpdateStrategyError

try:
    import tomllib as toml
except ImportError:
    try:
        import tomli as toml  # type: ignore[no-redef]
    except ImportError:
        toml = None  # type: ignore[assignment]


def _load_toml(path: Path) -> dict[str, Any]:
    if not toml:
        return {}
    try:
        with open(path, "rb") as f:
            data = toml.load(f)
            return data if isinstance(data, dict) else {}
    except (OSError, toml.TOMLDecodeError) as e:
        logging.warning("Failed to parse %s: %s", path.name, e)
        return {}


def load_project_config(start_dir: Path) -> dict[str, Any]:
    cfg: dict[str, Any] = {}

    # wafbump.toml
    wt = start_dir / "wafbump.toml"
    if wt.exists():
        cfg.update(_load_toml(wt))

    # pyproject [tool.wafbump]
    pyproj = start_dir / "pyproject.toml"
    if pyproj.exists():
        data = _load_toml(pyproj)
        tool = data.get("tool") or {}
        section = tool.get("wafbump") or {}
        if isinstance(section, dict):
            cfg.update(section)

    # JSON fallback
    wj = start_dir / "wafbump.json"
    if wj.exists():
        try:
            cfg.update(json.loads(wj.read_text(encoding="utf-8")))
        except (OSError, ValueError) as e:
            logging.warning("Failed to parse wafbump.json: %s", e)

    return cfg


def _to_path(v: Any) -> Path | None:
    if v in (None, ""):
        return None
    return Path(str(v))


def _to_tuple(v: Any) -> tuple[str, ...]:
    if v is None:
        return ()
    if isinstance(v, list | tuple):
        return tuple(str(x).strip() for x in v if str(x).strip())
    if isinstance(v, str):
        return tuple(p for p in (s.strip() for s in v.split(",")) if p)
    return ()


def _to_strategy(v: Any, default: UpdateStrategy) -> UpdateStrategy:
    if v is None:
        return default
    try:
        return UpdateStrategy(getattr(v, "value", v))
    except ValueError:
        raise UnknownUpdateStrategyError(v) from None


def _to_optional_int(v: Any, default: int | None) -> int | None:
    if v is None:
        return default
    return int(v)


def merge_options(base: Options, overrides: dict[str, Any]) -> Options:
    return Options(
        path=_to_path(overrides.get("path")) or base.path,
        strategy=_to_strategy(overrides.get("strategy"), base.strategy),
        only=_to_tuple(overrides.get("only")) or base.only,
        exclude=_to_tuple(overrides.get("exclude")) or base.exclude,
        check=overrides.get("check", base.check),
        dry_run=overrides.get("dry_run", base.dry_run),
        show_diff=overrides.get("show_diff", base.show_diff),
        json_report=_to_path(overrides.get("json_report")) or base.json_report,
        backup_suffix=str(overrides.get("backup_suffix", base.backup_suffix)),
        timestamped_backups=overrides.get("timestamped_backups", base.timestamped_backups),
        backup_keep_last=int(overrides.get("backup_keep_last", base.backup_keep_last)),
        lock_timeout_sec=int(overrides.get("lock_timeout_sec", base.lock_timeout_sec)),
        resolver_timeout_sec=_to_optional_int(overrides.get("resolver_timeout_sec"), base.resolver_timeout_sec),
        python=overrides.get("python") or base.python,
        log_file=_to_path(overrides.get("log_file")) or base.log_file,
        verbosity=int(overrides.get("verbosity", base.verbosity)),
        quiet=overrides.get("quiet", base.quiet),
    )
