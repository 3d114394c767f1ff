"""Speculative dependency files for probing ``waf resolve``.

The prepared manifest is a copy of resolve.json with the target dependency's
declaration widened (unlock mode) or left as-is (no-unlock mode). Edits go
through the same span-scoped patching as real updates, so the rest of the file
is untouched. A minimal wscript is synthesized so waf can run standalone.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import replace

from ._types import LOCKFILE_FILENAME, MANIFEST_FILENAME, WSCRIPT_FILENAME, Dependency, DependencyFile
from .env import tag_version
from .locate import declarations, locate, replace_field_value
from .version import Version

WSCRIPT_APPNAME = "wafbump-resolver"


def synthesize_wscript(manifest: DependencyFile | None) -> DependencyFile:
    """Build a wscript that enables every optional dependency for resolution."""

    lines = [f'APPNAME = "{WSCRIPT_APPNAME}"', 'VERSION = "0.0.0"']
    optional = []
    if manifest is not None:
        optional = [m.get("name") for m in declarations(manifest.content, manifest.name) if m.get("optional")]

    if optional:
        lines += ["", "", "def resolve(ctx):"]
        lines += [f"    ctx.enable_dependency({json.dumps(name)})" for name in optional]

    return DependencyFile(name=WSCRIPT_FILENAME, content="\n".join(lines) + "\n")


class FilePreparer:
    def __init__(
        self,
        dependency_files: Sequence[DependencyFile],
        dependency: Dependency,
        unlock_requirement: bool = True,
        replacement_git_pin: str | None = None,
        latest_allowable_version: Version | str | None = None,
    ) -> None:
        self.dependency_files = list(dependency_files)
        self.dependency = dependency
        self.unlock_requirement = unlock_requirement
        self.replacement_git_pin = replacement_git_pin
        self.latest_allowable_version = latest_allowable_version

    def prepared_dependency_files(self) -> list[DependencyFile]:
        files = [replace(f, content=self._manifest_content_for_update_check(f)) for f in self._manifest_files()]
        lockfile = next((f for f in self.dependency_files if f.name == LOCKFILE_FILENAME), None)
        if lockfile is not None:
            files.append(lockfile)
        return files

    def _manifest_files(self) -> list[DependencyFile]:
        manifests = [f for f in self.dependency_files if f.name == MANIFEST_FILENAME]
        if not manifests:
            raise ValueError("No resolve.json!")
        return manifests

    def _manifest_content_for_update_check(self, file: DependencyFile) -> str:
        content = file.content
        if file.support_file:
            return content

        match = locate(content, self.dependency.name, file.name)
        if match is None:
            return content

        if self.replacement_git_pin is not None:
            if match.method == "semver" and "major" in match.fields:
                pinned = tag_version(self.replacement_git_pin)
                if pinned is not None and pinned.numeric_segments:
                    return replace_field_value(content, match, "major", str(pinned.numeric_segments[0]))
                return content
            if "checkout" in match.fields:
                return replace_field_value(content, match, "checkout", json.dumps(self.replacement_git_pin))
            return content

        if not self.unlock_requirement or self.latest_allowable_version is None:
            return content

        # waf's semver method only constrains the major, so widening means raising it.
        if match.method == "semver" and "major" in match.fields:
            if not Version.is_valid(self.latest_allowable_version):
                return content
            latest = Version(self.latest_allowable_version)
            if latest.numeric_segments and latest.numeric_segments[0] > int(match.get("major")):
                return replace_field_value(content, match, "major", str(latest.numeric_segments[0]))
        return content


__all__ = ["WSCRIPT_APPNAME", "FilePreparer", "synthesize_wscript"]
