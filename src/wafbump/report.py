"""Diffs, summaries and JSON payloads describing an update run."""

from __future__ import annotations

import difflib
import json
from pathlib import Path

from ._types import Change, Dependency, FileChange, GitSource, JsonChange, JsonFileResult, JsonResult, Result
from .ecosystem import ecosystem_for

DEFAULT_REPORT_NAME = "wafbump-report.json"


def make_diff(files: list[FileChange]) -> str:
    """Build a unified diff for files that actually changed."""

    chunks: list[str] = []
    for file_change in files:
        if file_change.original_text == file_change.new_text:
            continue
        diff = difflib.unified_diff(
            file_change.original_text.splitlines(keepends=True),
            file_change.new_text.splitlines(keepends=True),
            fromfile=f"a/{file_change.file.name}",
            tofile=f"b/{file_change.file.name}",
        )
        chunks.append("".join(diff))
    return "\n".join(chunk for chunk in chunks if chunk)


def _describe(change: Change) -> str:
    line = f"{change.dependency}: {change.previous_version or '?'} -> {change.new_version or '?'}"
    if change.old_requirement != change.new_requirement:
        line += f" (requirement {change.old_requirement} -> {change.new_requirement})"
    return f"{line} [{change.file.name}]"


def summarize_changes(changes: list[Change]) -> str:
    if not changes:
        return "No changes."
    return "\n".join(_describe(change) for change in changes)


def source_url(dependency: Dependency) -> str | None:
    """Browsable project URL for git sources on a known host, else the raw source URL."""

    source = dependency.source_details
    if source is None:
        return None
    if isinstance(source, GitSource):
        finder = ecosystem_for(dependency.package_manager).metadata_finder(dependency)
        return finder.source_url or source.url
    return source.url


def summarize_dependencies(dependencies: list[Dependency]) -> str:
    """One line per parsed dependency: name, locked version and requirements."""

    if not dependencies:
        return "No dependencies."
    rows = []
    for dependency in dependencies:
        requirements = ", ".join(r.requirement or "*" for r in dependency.requirements) or "-"
        url = source_url(dependency)
        where = f" <{url}>" if url else ""
        rows.append(f"{dependency.name} {dependency.version or '(unlocked)'} [{requirements}]{where}")
    return "\n".join(rows)


def to_json_report(files: list[FileChange]) -> JsonResult:
    file_rows: list[JsonFileResult] = []
    change_rows: list[JsonChange] = []

    for file_change in files:
        file_rows.append(
            {
                "file": str(file_change.file),
                "role": file_change.role,
                "changed": file_change.original_text != file_change.new_text,
                "change_count": len(file_change.changes),
            }
        )
        for change in file_change.changes:
            change_rows.append(
                {
                    "file": str(change.file),
                    "dependency": change.dependency,
                    "previous_version": change.previous_version,
                    "new_version": change.new_version,
                    "old_requirement": change.old_requirement,
                    "new_requirement": change.new_requirement,
                }
            )

    return {
        "changed": any(row["changed"] for row in file_rows),
        "files": file_rows,
        "changes": change_rows,
        "backup_paths": [],
        "diff": None,
    }


def result_to_json(result: Result) -> JsonResult:
    report = to_json_report(result.files)
    report["changed"] = result.changed
    report["backup_paths"] = [str(path) for path in result.backup_paths]
    report["diff"] = result.diff
    return report


def write_json_report(report: JsonResult, path: str) -> Path:
    """Write the report to `path` (a file, or a directory to put it in)."""

    target = Path(path)
    if target.is_dir():
        target = target / DEFAULT_REPORT_NAME
    elif str(target).strip() in {"", "."}:
        target = Path(DEFAULT_REPORT_NAME)

    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8") as stream:
        json.dump(report, stream, indent=2)
    return target


__all__ = [
    "make_diff",
    "result_to_json",
    "summarize_changes",
    "summarize_dependencies",
    "to_json_report",
    "write_json_report",
]
