"""Manifest and lock file parsing for waf projects.

Builds `Dependency` records from resolve.json declarations and, when present,
versions pinned in lock_version_resolve.json. Declarations that are not yet
locked are treated as provisional and left out once a lock file exists.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Sequence
from dataclasses import replace
from typing import Any

from ._types import LOCKFILE_FILENAME, MANIFEST_FILENAME, Dependency, DependencyFile, RequirementEntry
from .declarations import declaration_from_mapping, extract_requirement, extract_source, group_tag
from .errors import DependencyFileNotEvaluatableError, DependencyFileNotParseableError, MissingDependencyFileError


class DependencySet:
    """Ordered, name-keyed collection that merges records for the same dependency."""

    def __init__(self, dependencies: Iterable[Dependency] = ()) -> None:
        self._by_name: dict[str, Dependency] = {}
        for dependency in dependencies:
            self.add(dependency)

    def add(self, dependency: Dependency) -> None:
        existing = self._by_name.get(dependency.name)
        if existing is None:
            self._by_name[dependency.name] = dependency
            return

        requirements = list(existing.requirements)
        for entry in dependency.requirements:
            if entry not in requirements:
                requirements.append(entry)
        self._by_name[dependency.name] = replace(
            existing,
            version=existing.version or dependency.version,
            requirements=tuple(requirements),
        )

    def __iadd__(self, other: DependencySet) -> DependencySet:
        for dependency in other.dependencies:
            self.add(dependency)
        return self

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __len__(self) -> int:
        return len(self._by_name)

    @property
    def dependencies(self) -> list[Dependency]:
        return list(self._by_name.values())


def load_json(file: DependencyFile) -> Any:
    try:
        return json.loads(file.content)
    except json.JSONDecodeError as exc:
        raise DependencyFileNotParseableError(file.name, str(exc)) from exc


def parse_lockfile(file: DependencyFile) -> dict[str, str]:
    """Map dependency name to the version or revision waf locked it to."""

    data = load_json(file)
    if not isinstance(data, dict):
        raise DependencyFileNotParseableError(file.name, "expected a JSON object")

    versions: dict[str, str] = {}
    for name, details in data.items():
        if details is None:
            continue
        if not isinstance(details, dict) or not details.get("resolver_info"):
            raise DependencyFileNotEvaluatableError("No version was provided in the resolve.json or lockfile")
        versions[name] = str(details["resolver_info"])
    return versions


def parse_manifest(file: DependencyFile, lock_versions: dict[str, str] | None = None) -> DependencySet:
    data = load_json(file)
    if not isinstance(data, list):
        raise DependencyFileNotParseableError(file.name, "expected a JSON array of declarations")

    dependency_set = DependencySet()
    for raw in data:
        declaration = declaration_from_mapping(raw)
        if lock_versions is not None and declaration.name not in lock_versions:
            logging.debug("Skipping %s: declared but not locked yet", declaration.name)
            continue

        dependency_set.add(
            Dependency(
                name=declaration.name,
                version=lock_versions.get(declaration.name) if lock_versions is not None else None,
                requirements=(
                    RequirementEntry(
                        requirement=extract_requirement(declaration),
                        file=file.name,
                        groups=(group_tag(declaration),),
                        source=extract_source(declaration),
                    ),
                ),
            )
        )
    return dependency_set


class FileParser:
    """Parse the fetched dependency files of one waf project."""

    def __init__(self, dependency_files: Sequence[DependencyFile]) -> None:
        self.dependency_files = list(dependency_files)
        if self.manifest is None:
            raise MissingDependencyFileError(MANIFEST_FILENAME)

    @property
    def manifest(self) -> DependencyFile | None:
        return next((f for f in self.dependency_files if f.name == MANIFEST_FILENAME), None)

    @property
    def lockfile(self) -> DependencyFile | None:
        return next((f for f in self.dependency_files if f.name == LOCKFILE_FILENAME), None)

    def parse(self) -> list[Dependency]:
        lockfile = self.lockfile
        lock_versions = parse_lockfile(lockfile) if lockfile else None

        dependency_set = DependencySet()
        dependency_set += parse_manifest(self.manifest, lock_versions)  # type: ignore[arg-type]
        if lock_versions is not None:
            for name, version in lock_versions.items():
                dependency_set.add(Dependency(name=name, version=version))
        return dependency_set.dependencies


__all__ = ["DependencySet", "FileParser", "load_json", "parse_lockfile", "parse_manifest"]
