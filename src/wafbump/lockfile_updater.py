"""Regenerate lock_version_resolve.json through ``waf resolve``.

The updated manifest is written into an isolated work directory together with
the waf control files; the lock file waf produces there becomes the new lock
file content.
"""

from __future__ import annotations

import json
import logging
import tempfile
from collections.abc import Sequence
from pathlib import Path

from ._types import MANIFEST_FILENAME, Dependency, DependencyFile
from .env import ExternalResolver
from .errors import DependencyFileNotResolvableError, ExternalResolverFailedError
from .manifest_updater import ManifestUpdater
from .version import Version
from .version_resolver import read_lockfile, write_dependency_files


def _same_version(left: str | None, right: str | None) -> bool:
    if left is None or right is None:
        return left == right
    if Version.is_valid(left) and Version.is_valid(right):
        return Version(left) == Version(right)
    return left == right


class LockfileUpdater:
    def __init__(
        self,
        dependencies: Sequence[Dependency],
        dependency_files: Sequence[DependencyFile],
        resolver: ExternalResolver,
    ) -> None:
        self.dependencies = list(dependencies)
        self.dependency_files = list(dependency_files)
        self.resolver = resolver

    @property
    def dependency(self) -> Dependency:
        return self.dependencies[0]

    def updated_lockfile_content(self) -> str:
        try:
            with tempfile.TemporaryDirectory(prefix="wafbump-lock-") as tmp:
                workdir = Path(tmp)
                write_dependency_files(workdir, self._prepared_manifests(), self.dependency_files)
                self.resolver.run(workdir)
                updated = self.post_process_lockfile(read_lockfile(workdir))
        except ExternalResolverFailedError as error:
            raise DependencyFileNotResolvableError(error.stdout or str(error)) from error

        if not self._desired_lockfile_content(updated):
            raise DependencyFileNotResolvableError(f"Failed to update {self.dependency.name}!")
        return updated

    def post_process_lockfile(self, content: str) -> str:
        return content

    def _prepared_manifests(self) -> list[DependencyFile]:
        manifests = [f for f in self.dependency_files if f.name == MANIFEST_FILENAME]
        return [
            DependencyFile(
                name=f.name,
                content=ManifestUpdater(self.dependencies, f).updated_manifest_content(),
                directory=f.directory,
            )
            for f in manifests
        ]

    def _desired_lockfile_content(self, content: str) -> bool:
        try:
            data = json.loads(content)
        except json.JSONDecodeError:
            logging.warning("waf produced an unreadable lock file")
            return False

        entry = data.get(self.dependency.name) if isinstance(data, dict) else None
        if not isinstance(entry, dict) or not entry.get("resolver_info"):
            return False

        locked = str(entry["resolver_info"])
        if self.dependency.previous_version is None:
            return True
        return not _same_version(locked, self.dependency.previous_version) or _same_version(
            locked, self.dependency.version
        )


__all__ = ["LockfileUpdater"]
