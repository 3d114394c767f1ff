"""Surgical resolve.json rewrites.

Only the version-bearing token of the matched declaration is replaced. The
replacement is scoped to the character span recorded by the locator, so an
identical literal elsewhere in the file (or in the same declaration) is never
touched.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Sequence

from ._types import Dependency, DependencyFile, RequirementEntry
from .errors import DependencyFileNotEvaluatableError, ExpectedContentChangeError, NotImplementedFeatureError
from .locate import DeclarationMatch, locate, replace_field_value

_DIGITS_RE = re.compile(r"\d+")


def _first_number(requirement: str) -> str:
    found = _DIGITS_RE.search(requirement)
    if not found:
        raise DependencyFileNotEvaluatableError(f"No numeric version in requirement {requirement!r}")
    return found.group(0)


def patch_semver(content: str, match: DeclarationMatch, old_requirement: str, new_requirement: str) -> str:
    """Replace the digits of the ``major`` value that changed between requirements."""

    if "major" not in match.fields:
        raise DependencyFileNotEvaluatableError(f"Declaration {match.get('name')!r} has no major field")

    raw = match.fields["major"].raw(content)
    new_raw = raw.replace(_first_number(old_requirement), _first_number(new_requirement), 1)
    return replace_field_value(content, match, "major", new_raw)


def patch_checkout(content: str, match: DeclarationMatch, old_requirement: str, new_requirement: str) -> str:
    """Replace the old requirement inside the ``checkout`` value."""

    if "checkout" not in match.fields:
        raise DependencyFileNotEvaluatableError(f"Declaration {match.get('name')!r} has no checkout field")

    value = str(match.get("checkout"))
    new_value = value.replace(old_requirement, new_requirement)
    if new_value == value:
        return content
    return replace_field_value(content, match, "checkout", json.dumps(new_value, ensure_ascii=False))


def patch_http(content: str, match: DeclarationMatch, old_requirement: str, new_requirement: str) -> str:
    raise NotImplementedFeatureError("rewriting http declarations")


def patch_declaration(content: str, match: DeclarationMatch, old_requirement: str, new_requirement: str) -> str:
    if match.resolver == "http":
        return patch_http(content, match, old_requirement, new_requirement)
    if match.resolver == "git":
        if match.method == "semver":
            return patch_semver(content, match, old_requirement, new_requirement)
        return patch_checkout(content, match, old_requirement, new_requirement)
    return content


def _changed_pairs(dependency: Dependency, file_name: str) -> list[tuple[RequirementEntry, RequirementEntry]]:
    previous = dependency.previous_requirements
    if previous is None:
        return []

    pairs: list[tuple[RequirementEntry, RequirementEntry]] = []
    for new_req, old_req in zip(dependency.requirements, previous):
        if new_req.file != old_req.file:
            raise ValueError(f"Requirements of {dependency.name} are not index-aligned")
        if new_req.file != file_name or new_req.requirement == old_req.requirement:
            continue
        pairs.append((new_req, old_req))
    return pairs


class ManifestUpdater:
    def __init__(self, dependencies: Sequence[Dependency], manifest: DependencyFile) -> None:
        self.dependencies = list(dependencies)
        self.manifest = manifest

    def updated_manifest_content(self) -> str:
        content = self.manifest.content
        for dependency in self.dependencies:
            pairs = _changed_pairs(dependency, self.manifest.name)
            if not pairs:
                continue

            updated = content
            for new_req, old_req in pairs:
                updated = self._update_manifest_req(
                    updated, dependency, old_req.requirement or "", new_req.requirement or ""
                )

            if updated == content:
                raise ExpectedContentChangeError(self.manifest.name, dependency.name)
            content = updated
        return content

    def _update_manifest_req(self, content: str, dependency: Dependency, old_req: str, new_req: str) -> str:
        match = locate(content, dependency.name, self.manifest.name)
        if match is None:
            logging.warning("No declaration for %s in %s (kept)", dependency.name, self.manifest.name)
            return content

        logging.debug("Patching %s in %s: %s -> %s", dependency.name, self.manifest.name, old_req, new_req)
        return patch_declaration(content, match, old_req, new_req)


__all__ = [
    "ManifestUpdater",
    "patch_checkout",
    "patch_declaration",
    "patch_http",
    "patch_semver",
]
