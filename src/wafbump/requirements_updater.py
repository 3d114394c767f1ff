"""Rewrite requirement strings for a new target version.

Each requirement keeps its original shape: a bare major stays a bare major,
a three-part tag stays three parts, and ``*`` wildcards survive. The result
is always index-aligned with the input so file patches can be correlated
positionally.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import replace

from ._types import RequirementEntry, Source, UpdateStrategy
from .errors import NotImplementedFeatureError, UnknownUpdateStrategyError
from .requirement import Requirement
from .version import Version

VERSION_RE = re.compile(r"[0-9]+(?:\.[A-Za-z0-9\-*]+)*")
_HYPHEN_SUFFIX_RE = re.compile(r"\d-")

ALLOWED_UPDATE_STRATEGIES = (
    UpdateStrategy.LOCKFILE_ONLY,
    UpdateStrategy.BUMP_VERSIONS,
    UpdateStrategy.BUMP_VERSIONS_IF_NECESSARY,
)


def _coerce_strategy(strategy: UpdateStrategy | str) -> UpdateStrategy:
    try:
        return UpdateStrategy(strategy)
    except ValueError as exc:
        raise UnknownUpdateStrategyError(strategy) from exc


def truncate_to_shape(old_version: str, target: str) -> str:
    """Render `target` with as many components as `old_version` had."""

    if _HYPHEN_SUFFIX_RE.search(old_version):
        return target

    old_parts = old_version.split(".")
    new_parts = target.split(".")[: len(old_parts)]
    return ".".join("*" if old_parts[i] == "*" else part for i, part in enumerate(new_parts))


class RequirementsUpdater:
    def __init__(
        self,
        requirements: Sequence[RequirementEntry],
        updated_source: Source | None,
        update_strategy: UpdateStrategy | str,
        target_version: Version | str | None,
    ) -> None:
        self.requirements = list(requirements)
        self.updated_source = updated_source
        self.update_strategy = _coerce_strategy(update_strategy)

        self.target_version: Version | None = None
        if target_version is not None and Version.is_valid(target_version):
            self.target_version = Version(target_version)

    def updated_requirements(self) -> list[RequirementEntry]:
        if self.update_strategy is UpdateStrategy.LOCKFILE_ONLY:
            return self.requirements

        updated: list[RequirementEntry] = []
        for entry in self.requirements:
            entry = replace(entry, source=self.updated_source)
            if self.target_version is None or entry.requirement is None:
                updated.append(entry)
                continue

            if self.update_strategy is UpdateStrategy.BUMP_VERSIONS_IF_NECESSARY:
                updated.append(self._update_version_requirement_if_needed(entry))
            else:
                updated.append(self._update_version_requirement(entry))
        return updated

    def _update_version_requirement_if_needed(self, entry: RequirementEntry) -> RequirementEntry:
        raise NotImplementedFeatureError("bump-versions-if-necessary update strategy")

    def _update_version_requirement(self, entry: RequirementEntry) -> RequirementEntry:
        string_req = entry.requirement or ""

        exact = self._exact_req(string_req)
        non_range = self._non_range_req(string_req)
        if exact is not None:
            new_requirement = self._update_version_string(exact)
        elif self._update_version_string(non_range) != non_range:
            new_requirement = self._update_version_string(non_range)
        else:
            new_requirement = self._update_range_requirements(string_req)

        if new_requirement != string_req:
            logging.debug("Requirement for %s: %s -> %s", entry.file, string_req, new_requirement)
        return replace(entry, requirement=new_requirement)

    @staticmethod
    def _exact_req(string_req: str) -> str | None:
        # Non-standard tags like "release-1.11.0" are not requirements at all.
        if not Requirement.is_valid(string_req):
            return None
        return string_req if Requirement.parse(string_req).exact else None

    @staticmethod
    def _non_range_req(string_req: str) -> str:
        return "*" if "*" in string_req else string_req

    def _update_version_string(self, req_string: str) -> str:
        target = str(self.target_version)
        return VERSION_RE.sub(lambda m: truncate_to_shape(m.group(0), target), req_string, count=1)

    def _update_range_requirements(self, string_req: str) -> str:
        return self._update_version_string(string_req)


__all__ = ["ALLOWED_UPDATE_STRATEGIES", "VERSION_RE", "RequirementsUpdater", "truncate_to_shape"]
