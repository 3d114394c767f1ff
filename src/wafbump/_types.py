"""Core wafbump type contracts shared by the engine, CLI, API, and MCP layers.

Holds the dependency model exchanged between parser, rewriter, and patcher,
plus runtime options, change tracking, and exit-code behavior. Import these
models when calling wafbump from Python or wrapping it in other tooling.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from pathlib import Path
from typing import TYPE_CHECKING, Literal, TypedDict, Union

if TYPE_CHECKING:
    from .version import Version

MANIFEST_FILENAME = "resolve.json"
LOCKFILE_FILENAME = "lock_version_resolve.json"
WSCRIPT_FILENAME = "wscript"
WAF_FILENAME = "waf"

Group = Literal["semver", "checkout", "http"]
FileRole = Literal["manifest", "lockfile"]


class ExitCode(IntEnum):
    """Stable process exit codes for CLI and MCP callers."""

    OK = 0
    GENERIC_ERROR = 1
    MISSING_FILE = 2
    PARSE_ERROR = 3
    NOT_EVALUATABLE = 4
    NOT_RESOLVABLE = 5
    RESOLVER_FAILED = 6
    UNSUPPORTED = 7
    CONTENT_UNCHANGED = 8
    LOCK_TIMEOUT = 9
    WRITE_FAILED_ROLLED_BACK = 10
    CHANGES_WOULD_BE_MADE = 11


class UpdateStrategy(str, Enum):
    """How requirement strings in the manifest may be rewritten."""

    LOCKFILE_ONLY = "lockfile-only"
    BUMP_VERSIONS = "bump-versions"
    BUMP_VERSIONS_IF_NECESSARY = "bump-versions-if-necessary"


@dataclass(frozen=True)
class GitSource:
    url: str
    ref: str
    branch: str = "main"
    type: Literal["git"] = "git"


@dataclass(frozen=True)
class HttpSource:
    url: str
    type: Literal["http"] = "http"


Source = Union[GitSource, HttpSource]


@dataclass(frozen=True)
class RequirementEntry:
    """One declaration's requirement, tagged with the file it came from."""

    requirement: str | None
    file: str
    groups: tuple[str, ...] = ()
    source: Source | None = None


@dataclass(frozen=True)
class Dependency:
    """Name-keyed view of a dependency across manifest and lock file."""

    name: str
    version: str | None = None
    requirements: tuple[RequirementEntry, ...] = ()
    previous_version: str | None = None
    previous_requirements: tuple[RequirementEntry, ...] | None = None
    package_manager: str = "waf"

    @property
    def source_details(self) -> Source | None:
        sources = [req.source for req in self.requirements if req.source is not None]
        return sources[0] if sources else None

    @property
    def source_type(self) -> str | None:
        source = self.source_details
        return source.type if source else None

    @property
    def resolved_version(self) -> Version | None:
        """The locked version as a `Version`, or None for revisions and unlocked entries."""

        from .version import Version  # errors imports this module

        if self.version is None or not Version.is_valid(self.version):
            return None
        return Version(self.version)


@dataclass(frozen=True)
class DependencyFile:
    """A dependency file as fetched from the project, held in memory."""

    name: str
    content: str
    directory: str = "/"
    support_file: bool = False


@dataclass(frozen=True)
class Options:
    """Runtime options for a single wafbump operation."""

    path: Path
    strategy: UpdateStrategy = UpdateStrategy.BUMP_VERSIONS
    only: Sequence[str] = ()
    exclude: Sequence[str] = ()
    check: bool = False
    dry_run: bool = False
    show_diff: bool = False
    json_report: Path | None = None
    backup_suffix: str = ".bak"
    timestamped_backups: bool = True
    backup_keep_last: int = 5
    lock_timeout_sec: int = 15
    resolver_timeout_sec: int | None = None
    python: str | None = None
    log_file: Path | None = None
    verbosity: int = 0
    quiet: bool = False


@dataclass(frozen=True)
class Change:
    """A single dependency bump within one file."""

    dependency: str
    previous_version: str | None
    new_version: str | None
    old_requirement: str | None
    new_requirement: str | None
    file: Path


@dataclass
class FileChange:
    """All changes for one dependency file."""

    file: Path
    role: FileRole = "manifest"
    changes: list[Change] = field(default_factory=list)
    original_text: str = ""
    new_text: str = ""


@dataclass
class Result:
    """Structured outcome of an update call."""

    changed: bool
    files: list[FileChange]
    diff: str | None = None
    backup_paths: list[Path] = field(default_factory=list)


class JsonChange(TypedDict):
    file: str
    dependency: str
    previous_version: str | None
    new_version: str | None
    old_requirement: str | None
    new_requirement: str | None


class JsonFileResult(TypedDict):
    file: str
    role: FileRole
    changed: bool
    change_count: int


class JsonResult(TypedDict):
    changed: bool
    files: list[JsonFileResult]
    changes: list[JsonChange]
    backup_paths: list[str]
    diff: str | None


__all__ = [
    "LOCKFILE_FILENAME",
    "MANIFEST_FILENAME",
    "WAF_FILENAME",
    "WSCRIPT_FILENAME",
    "Change",
    "Dependency",
    "DependencyFile",
    "ExitCode",
    "FileChange",
    "FileRole",
    "GitSource",
    "Group",
    "HttpSource",
    "JsonChange",
    "JsonFileResult",
    "JsonResult",
    "Options",
    "RequirementEntry",
    "Result",
    "Source",
    "UpdateStrategy",
]
