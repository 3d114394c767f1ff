"""Ask ``waf resolve`` which version of a dependency it would lock.

One resolution attempt prepares speculative files in an exclusive temporary
directory, runs the external resolver there, and reads the dependency's entry
from the lock file it produced. The directory is removed on every exit path.
"""

from __future__ import annotations

import json
import logging
import re
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Union

from ._types import LOCKFILE_FILENAME, MANIFEST_FILENAME, WAF_FILENAME, Dependency, DependencyFile
from .env import ExternalResolver
from .errors import (
    DependencyFileNotEvaluatableError,
    DependencyFileNotResolvableError,
    ExternalResolverFailedError,
    MissingDependencyFileError,
)
from .file_preparer import synthesize_wscript
from .version import Version

ResolvedVersion = Union[Version, str]

GIT_REVISION_RE = re.compile(r"\A[0-9a-f]{6,}\Z", re.IGNORECASE)


def is_git_revision(value: object) -> bool:
    return isinstance(value, str) and GIT_REVISION_RE.match(value) is not None


class ResolutionState(str, Enum):
    PREPARE_SPECULATIVE_FILES = "prepare-speculative-files"
    INVOKE_EXTERNAL_RESOLVER = "invoke-external-resolver"
    PARSE_RESULT = "parse-result"
    RETRY_ONCE = "retry-once"
    FAIL = "fail"


@dataclass
class ResolutionContext:
    """Everything one update attempt needs, built once and passed through each stage."""

    dependency: Dependency
    original_files: list[DependencyFile]
    prepared_files: list[DependencyFile]
    resolver: ExternalResolver
    resolver_output: str | None = None
    lockfile_content: str | None = None
    resolved_version: ResolvedVersion | None = None
    completed: bool = False
    states: list[ResolutionState] = field(default_factory=list)

    def enter(self, state: ResolutionState) -> None:
        logging.debug("%s: %s", self.dependency.name, state.value)
        self.states.append(state)


def write_dependency_files(
    workdir: Path,
    manifests: Sequence[DependencyFile],
    original_files: Sequence[DependencyFile],
) -> None:
    """Write manifests plus the waf control files into `workdir`."""

    for file in manifests:
        target = workdir / file.name.lstrip("/")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(file.content, encoding="utf-8")

    waf_file = next((f for f in original_files if f.name == WAF_FILENAME), None)
    if waf_file is None:
        raise MissingDependencyFileError(WAF_FILENAME)
    (workdir / WAF_FILENAME).write_text(waf_file.content, encoding="utf-8")

    original_manifest = next((f for f in original_files if f.name == MANIFEST_FILENAME), None)
    wscript = synthesize_wscript(original_manifest)
    (workdir / wscript.name).write_text(wscript.content, encoding="utf-8")


def read_lockfile(workdir: Path) -> str:
    path = workdir / LOCKFILE_FILENAME
    if not path.exists():
        raise DependencyFileNotResolvableError(f"waf resolve did not produce {LOCKFILE_FILENAME}")
    return path.read_text(encoding="utf-8")


class VersionResolver:
    MAX_ATTEMPTS = 2

    def __init__(self, context: ResolutionContext) -> None:
        self.context = context

    def latest_resolvable_version(self) -> ResolvedVersion | None:
        if self.context.completed:
            return self.context.resolved_version

        attempts = 0
        while True:
            attempts += 1
            try:
                with tempfile.TemporaryDirectory(prefix="wafbump-") as tmp:
                    workdir = Path(tmp)
                    self.prepare_speculative_files(workdir)
                    self.invoke_external_resolver(workdir)
                    resolved = self.parse_result(workdir)
                self.context.resolved_version = resolved
                self.context.completed = True
                return resolved
            except ExternalResolverFailedError as error:
                if attempts < self.MAX_ATTEMPTS and self.should_retry(error):
                    self.context.enter(ResolutionState.RETRY_ONCE)
                    continue
                self.context.enter(ResolutionState.FAIL)
                raise DependencyFileNotResolvableError(error.stdout or str(error)) from error

    def should_retry(self, error: ExternalResolverFailedError) -> bool:
        # No resolver diagnostic is known to be fixable by relaxing the manifest.
        return False

    def prepare_speculative_files(self, workdir: Path) -> None:
        self.context.enter(ResolutionState.PREPARE_SPECULATIVE_FILES)
        manifests = [f for f in self.context.prepared_files if f.name == MANIFEST_FILENAME]
        write_dependency_files(workdir, manifests, self.context.original_files)

    def invoke_external_resolver(self, workdir: Path) -> None:
        self.context.enter(ResolutionState.INVOKE_EXTERNAL_RESOLVER)
        self.context.resolver_output = self.context.resolver.run(workdir)

    def parse_result(self, workdir: Path) -> ResolvedVersion | None:
        self.context.enter(ResolutionState.PARSE_RESULT)
        content = read_lockfile(workdir)
        self.context.lockfile_content = content

        try:
            data = json.loads(content)
        except json.JSONDecodeError as exc:
            raise DependencyFileNotResolvableError(f"waf wrote an unreadable {LOCKFILE_FILENAME}: {exc}") from exc

        entry = data.get(self.context.dependency.name) if isinstance(data, dict) else None
        if entry is None:
            return None
        if not isinstance(entry, dict) or not entry.get("resolver_info"):
            raise DependencyFileNotEvaluatableError(
                f"No resolver_info for {self.context.dependency.name} in {LOCKFILE_FILENAME}"
            )

        resolved = str(entry["resolver_info"])
        if is_git_revision(resolved):
            return resolved
        if Version.is_valid(resolved):
            return Version(resolved)
        return resolved


__all__ = [
    "GIT_REVISION_RE",
    "ResolutionContext",
    "ResolutionState",
    "ResolvedVersion",
    "VersionResolver",
    "is_git_revision",
    "read_lockfile",
    "write_dependency_files",
]
