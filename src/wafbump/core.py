"""Wafbump orchestration engine.

Fetches a waf project's dependency files, asks the update checker what each
selected dependency can move to, feeds every successful update into the next
one, and finally applies the result with backups and atomic writes under an
advisory lock.
"""

from __future__ import annotations

import fnmatch
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from . import env as env_mod
from . import report as report_mod
from ._types import (
    LOCKFILE_FILENAME,
    MANIFEST_FILENAME,
    Change,
    Dependency,
    DependencyFile,
    FileChange,
    FileRole,
    Options,
    Result,
)
from .ecosystem import ecosystem_for
from .errors import MissingDependencyFileError, NoFilesChangedError, WriteRollbackError
from .io import advisory_lock, backup_file, read_text_preserve, write_text_preserve

UPDATABLE_FILES = (MANIFEST_FILENAME, LOCKFILE_FILENAME)
PACKAGE_MANAGER = "waf"


def _match(name: str, patterns: tuple[str, ...]) -> bool:
    return any(fnmatch.fnmatch(name, pattern) for pattern in patterns)


def _should_skip_dependency(name: str, only: tuple[str, ...], exclude: tuple[str, ...]) -> bool:
    if only and not _match(name, only):
        return True
    if exclude and _match(name, exclude):
        return True
    return False


def _project_root(path: Path) -> Path:
    root = path.resolve()
    if root.is_file():
        root = root.parent
    if not root.is_dir():
        raise MissingDependencyFileError(str(root))
    return root


def _role(file_name: str) -> FileRole:
    return "lockfile" if file_name == LOCKFILE_FILENAME else "manifest"


@dataclass
class _Plan:
    files: list[DependencyFile]
    changes: dict[str, list[Change]] = field(default_factory=dict)

    def apply(self, updated_files: list[DependencyFile]) -> None:
        by_name = {f.name: f for f in updated_files}
        self.files = [by_name.get(f.name, f) for f in self.files]


def _changes_for(dependency: Dependency, file_name: str, root: Path) -> Change:
    old_requirement = next(
        (r.requirement for r in dependency.previous_requirements or () if r.file == file_name), None
    )
    new_requirement = next((r.requirement for r in dependency.requirements if r.file == file_name), None)
    return Change(
        dependency=dependency.name,
        previous_version=dependency.previous_version,
        new_version=dependency.version,
        old_requirement=old_requirement,
        new_requirement=new_requirement,
        file=root / file_name,
    )


def list_dependencies(path: Path) -> list[Dependency]:
    """Parse the project's dependency files without resolving anything."""

    ecosystem = ecosystem_for(PACKAGE_MANAGER)
    files = ecosystem.file_fetcher(_project_root(path)).fetch_files()
    return ecosystem.file_parser(files).parse()


def plan_updates(root: Path, files: list[DependencyFile], options: Options) -> _Plan:
    """Compute updated file contents for every selected, outdated dependency."""

    ecosystem = ecosystem_for(PACKAGE_MANAGER)
    resolver = WafResolveRunner(python=options.python, timeout_sec=options.resolver_timeout_sec)
    git_metadata = LsRemoteGitMetadata()
    plan = _Plan(files=list(files))

    names = [dependency.name for dependency in ecosystem.file_parser(files).parse()]
    for name in names:
        if _should_skip_dependency(name, tuple(options.only), tuple(options.exclude)):
            logging.debug("Skipping %s (filtered)", name)
            continue

        # re-parse so each check sees the updates made before it
        current = {d.name: d for d in ecosystem.file_parser(plan.files).parse()}.get(name)
        if current is None:
            continue

        checker = ecosystem.update_checker(
            dependency=current,
            dependency_files=plan.files,
            resolver=resolver,
            git_metadata=git_metadata,
            requirements_update_strategy=options.strategy,
        )
        updated = checker.updated_dependency()
        if updated is None:
            logging.info("%s is up to date", name)
            continue

        try:
            updated_files = ecosystem.file_updater(plan.files, [updated], resolver).updated_dependency_files()
        except NoFilesChangedError:
            logging.info("%s: no files changed", name)
            continue

        logging.info("%s: %s -> %s", name, updated.previous_version, updated.version)
        plan.apply(updated_files)
        for file in updated_files:
            plan.changes.setdefault(file.name, []).append(_changes_for(updated, file.name, root))

    return plan


def _restore_backups(written_pairs: list[tuple[Path, Path]]) -> None:
    """Best-effort restore previously written files from backups."""

    for target, backup in written_pairs:
        try:
            shutil.copy2(backup, target)
        except OSError:
            logging.error("Unable to restore %s from %s", target, backup)


def update(options: Options) -> Result:
    """Bump the waf dependencies of one project."""

    root = _project_root(options.path)
    lock_path = root / ".wafbump.lock"

    with advisory_lock(lock_path, options.lock_timeout_sec):
        original = ecosystem_for(PACKAGE_MANAGER).file_fetcher(root).fetch_files()
        plan = plan_updates(root, original, options)

        new_text_by_name = {f.name: f.content for f in plan.files}
        file_results = [
            FileChange(
                file=root / f.name,
                role=_role(f.name),
                changes=plan.changes.get(f.name, []),
                original_text=f.content,
                new_text=new_text_by_name[f.name],
            )
            for f in original
            if f.name in UPDATABLE_FILES
        ]

        changed = any(result.original_text != result.new_text for result in file_results)

        if options.check:
            diff = report_mod.make_diff(file_results) if changed and (options.show_diff or options.dry_run) else None
            return Result(changed=changed, files=file_results, diff=diff)

        if options.dry_run:
            diff = report_mod.make_diff(file_results) if changed and options.show_diff else None
            return Result(changed=changed, files=file_results, diff=diff)

        backup_paths: list[Path] = []
        written_pairs: list[tuple[Path, Path]] = []
        for file_result in file_results:
            if file_result.original_text == file_result.new_text:
                continue

            _text, _newline, bom = read_text_preserve(file_result.file)
            backup = backup_file(
                file_result.file,
                options.backup_suffix,
                options.timestamped_backups,
                options.backup_keep_last,
            )
            backup_paths.append(backup)

            try:
                write_text_preserve(file_result.file, file_result.new_text, bom=bom)
                written_pairs.append((file_result.file, backup))
            except OSError as exc:
                _restore_backups([*written_pairs, (file_result.file, backup)])
                raise WriteRollbackError(str(exc)) from exc

        diff = report_mod.make_diff(file_results) if changed and options.show_diff else None
        return Result(changed=changed, files=file_results, diff=diff, backup_paths=backup_paths)


# Tests and external callers may monkeypatch these names directly on wafbump.core.
WafResolveRunner = env_mod.WafResolveRunner
LsRemoteGitMetadata = env_mod.LsRemoteGitMetadata


__all__ = ["list_dependencies", "plan_updates", "update"]
