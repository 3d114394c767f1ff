"""Produce updated dependency file contents for a set of updated dependencies."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace

from ._types import LOCKFILE_FILENAME, MANIFEST_FILENAME, Dependency, DependencyFile
from .env import ExternalResolver
from .errors import MissingDependencyFileError, NoFilesChangedError
from .lockfile_updater import LockfileUpdater
from .manifest_updater import ManifestUpdater


class FileUpdater:
    def __init__(
        self,
        dependency_files: Sequence[DependencyFile],
        dependencies: Sequence[Dependency],
        resolver: ExternalResolver,
    ) -> None:
        self.dependency_files = list(dependency_files)
        self.dependencies = list(dependencies)
        self.resolver = resolver
        if not any(f.name == MANIFEST_FILENAME for f in self.dependency_files):
            raise MissingDependencyFileError(MANIFEST_FILENAME)

    @property
    def manifest(self) -> DependencyFile:
        return next(f for f in self.dependency_files if f.name == MANIFEST_FILENAME)

    @property
    def lockfile(self) -> DependencyFile | None:
        return next((f for f in self.dependency_files if f.name == LOCKFILE_FILENAME), None)

    def updated_dependency_files(self) -> list[DependencyFile]:
        updated: list[DependencyFile] = []

        manifest_content = ManifestUpdater(self.dependencies, self.manifest).updated_manifest_content()
        if manifest_content != self.manifest.content:
            updated.append(replace(self.manifest, content=manifest_content))

        lockfile = self.lockfile
        if lockfile is not None:
            lock_content = LockfileUpdater(self.dependencies, self.dependency_files, self.resolver).updated_lockfile_content()
            if lock_content != lockfile.content:
                updated.append(replace(lockfile, content=lock_content))
            else:
                logging.debug("%s unchanged after resolution", LOCKFILE_FILENAME)

        if not updated:
            raise NoFilesChangedError()
        return updated

    def updated_file_contents(self) -> dict[str, str]:
        return {f.name: f.content for f in self.updated_dependency_files()}


__all__ = ["FileUpdater"]
