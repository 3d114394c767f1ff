"""Decide whether a waf dependency is outdated and what it can move to.

Git dependencies are checked against their remote refs: unpinned ones follow
the branch head, version-like pins follow the newest version tag, and any
other pin stays where it is. Http archives cannot be updated yet.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import replace

from ._types import Dependency, DependencyFile, GitSource, RequirementEntry, Source, UpdateStrategy
from .env import ExternalResolver, GitMetadataProvider, TagInfo
from .errors import DependencyFileNotResolvableError
from .file_preparer import FilePreparer
from .requirements_updater import RequirementsUpdater
from .version import Version
from .version_resolver import ResolutionContext, ResolvedVersion, VersionResolver, is_git_revision

VERSIONS_CONFLICT = "versions conflict"


class UpdateChecker:
    def __init__(
        self,
        dependency: Dependency,
        dependency_files: Sequence[DependencyFile],
        resolver: ExternalResolver,
        git_metadata: GitMetadataProvider,
        requirements_update_strategy: UpdateStrategy | str | None = None,
    ) -> None:
        self.dependency = dependency
        self.dependency_files = list(dependency_files)
        self.resolver = resolver
        self.git_metadata = git_metadata
        self._strategy = requirements_update_strategy
        self.contexts: dict[tuple[bool, str | None], ResolutionContext] = {}

    @property
    def requirements_update_strategy(self) -> UpdateStrategy | str:
        return self._strategy or UpdateStrategy.BUMP_VERSIONS

    def latest_version(self) -> ResolvedVersion | None:
        if not self._git_dependency():
            return None

        latest = self._latest_git_version()
        if latest is None or is_git_revision(str(latest)) or "semver" not in self._groups():
            return latest

        # semver pins only carry as many components as the locked version shows
        matched = re.findall(r"\d+", str(latest))
        count = len(re.findall(r"\d+", self.dependency.version or "")) or len(matched)
        return Version(".".join(matched[:count]))

    def latest_resolvable_version(self) -> ResolvedVersion | None:
        if not self._git_dependency():
            return None

        if not self.git_metadata.is_pinned(self.dependency):
            return self._latest_resolvable_commit_with_unchanged_git_source()

        if self.git_metadata.pinned_ref_looks_like_version(self.dependency):
            resolved = self._resolution_with_latest_tag()
            if resolved is not None:
                return resolved

        return self._current_version()

    def latest_resolvable_version_with_no_unlock(self) -> ResolvedVersion | None:
        if not self._git_dependency():
            return None
        return self._resolve(unlock_requirement=False)

    def updated_requirements(self) -> list[RequirementEntry]:
        target = self.latest_resolvable_version()
        return RequirementsUpdater(
            requirements=self.dependency.requirements,
            updated_source=self.updated_source(),
            update_strategy=self.requirements_update_strategy,
            target_version=str(target) if target is not None else None,
        ).updated_requirements()

    def updated_source(self) -> Source | None:
        source = self.dependency.source_details
        if not self._git_dependency() or not isinstance(source, GitSource):
            return source

        if not self.git_metadata.pinned_ref_looks_like_version(self.dependency):
            return source

        tag = self._latest_tag()
        if tag is None or self._resolution_with_latest_tag() is None:
            return source
        return replace(source, ref=tag.tag)

    def updated_dependency(self) -> Dependency | None:
        """Return the dependency as it looks after the update, or None when already current."""

        latest = self.latest_resolvable_version()
        if latest is None:
            return None

        requirements = tuple(self.updated_requirements())
        version_unchanged = self._same_as_current(latest)
        requirement_strings_unchanged = [r.requirement for r in requirements] == [
            r.requirement for r in self.dependency.requirements
        ]
        if version_unchanged and requirement_strings_unchanged:
            return None

        return Dependency(
            name=self.dependency.name,
            version=str(latest),
            requirements=requirements,
            previous_version=self.dependency.version,
            previous_requirements=self.dependency.requirements,
            package_manager=self.dependency.package_manager,
        )

    def _git_dependency(self) -> bool:
        return isinstance(self.dependency.source_details, GitSource)

    def _groups(self) -> set[str]:
        return {group for req in self.dependency.requirements for group in req.groups}

    def _current_version(self) -> ResolvedVersion | None:
        version = self.dependency.version
        if version is not None and not is_git_revision(version) and Version.is_valid(version):
            return Version(version)
        return version

    def _same_as_current(self, latest: ResolvedVersion) -> bool:
        current = self._current_version()
        if current is None:
            return False
        if isinstance(latest, Version) and isinstance(current, Version):
            return latest == current
        return str(latest) == str(current)

    def _latest_tag(self) -> TagInfo | None:
        return self.git_metadata.local_tag_for_latest_version(self.dependency)

    def _latest_git_version(self) -> ResolvedVersion | None:
        if not self.git_metadata.is_pinned(self.dependency):
            return self.git_metadata.head_commit_for_branch(self.dependency)

        if self.git_metadata.pinned_ref_looks_like_version(self.dependency):
            tag = self._latest_tag()
            return tag.version if tag else self._current_version()

        # a pin that doesn't look like a version leaves nothing to do
        return self._current_version()

    def _latest_resolvable_commit_with_unchanged_git_source(self) -> ResolvedVersion | None:
        try:
            return self._resolve(unlock_requirement=False)
        except DependencyFileNotResolvableError as error:
            if VERSIONS_CONFLICT in str(error):
                return None
            raise

    def _resolution_with_latest_tag(self) -> ResolvedVersion | None:
        """Resolve with the newest tag pinned; None when waf reports a conflict."""

        tag = self._latest_tag()
        if tag is None:
            return None
        try:
            resolved = self._resolve(unlock_requirement=True, replacement_git_pin=tag.tag)
        except DependencyFileNotResolvableError as error:
            if VERSIONS_CONFLICT in str(error):
                logging.info("Latest tag %s of %s conflicts with other requirements", tag.tag, self.dependency.name)
                return None
            raise
        return resolved if resolved is not None else tag.version

    def _resolve(self, unlock_requirement: bool, replacement_git_pin: str | None = None) -> ResolvedVersion | None:
        key = (unlock_requirement, replacement_git_pin)
        context = self.contexts.get(key)
        if context is None:
            prepared = FilePreparer(
                dependency_files=self.dependency_files,
                dependency=self.dependency,
                unlock_requirement=unlock_requirement,
                replacement_git_pin=replacement_git_pin,
                latest_allowable_version=None if replacement_git_pin else self.latest_version(),
            ).prepared_dependency_files()
            context = ResolutionContext(
                dependency=self.dependency,
                original_files=self.dependency_files,
                prepared_files=prepared,
                resolver=self.resolver,
            )
            self.contexts[key] = context
        return VersionResolver(context).latest_resolvable_version()


__all__ = ["UpdateChecker"]
