"""Subprocess-backed collaborators for wafbump runtime decisions.

This module runs ``waf resolve`` to regenerate lock files and inspects remote
git refs (via ``git ls-remote``) to find the newest version tag or branch head
of a dependency. Both are behind small protocols so tests and other hosts can
supply their own implementations.
"""

from __future__ import annotations

import logging
import re
import shlex
import subprocess
import sys
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Protocol

from ._types import Dependency, GitSource
from .errors import DependencyFileNotResolvableError, ExternalResolverFailedError
from .version import Version

RESOLVED_DIRNAME = "resolved_dependencies"

_COMMIT_RE = re.compile(r"\A[0-9a-f]{40}\Z")
_TAG_VERSION_RE = re.compile(r"(\d+(?:\.[A-Za-z0-9\-]+)*)\Z")


class ExternalResolver(Protocol):
    def run(self, workdir: Path) -> str: ...


@dataclass(frozen=True)
class TagInfo:
    tag: str
    version: Version
    commit_sha: str | None = None


class GitMetadataProvider(Protocol):
    def is_pinned(self, dependency: Dependency) -> bool: ...

    def pinned_ref_looks_like_version(self, dependency: Dependency) -> bool: ...

    def head_commit_for_branch(self, dependency: Dependency) -> str | None: ...

    def local_tag_for_latest_version(self, dependency: Dependency) -> TagInfo | None: ...


class WafResolveRunner:
    """Run ``waf resolve`` inside a prepared work directory."""

    def __init__(self, python: str | None = None, timeout_sec: int | None = None) -> None:
        self.python = python or sys.executable
        self.timeout_sec = timeout_sec

    def command(self, workdir: Path) -> list[str]:
        return [
            self.python,
            "waf",
            "resolve",
            "--lock_versions",
            f"--resolve_path={workdir / RESOLVED_DIRNAME}",
        ]

    def run(self, workdir: Path) -> str:
        cmd = self.command(workdir)
        printable = " ".join(shlex.quote(c) for c in cmd)
        logging.info("Running: %s", printable)
        try:
            proc = subprocess.run(
                cmd,
                cwd=str(workdir),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=self.timeout_sec,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            output = _as_text(exc.output)
            raise ExternalResolverFailedError(
                printable, -1, f"{output}timed out after {self.timeout_sec}s"
            ) from exc
        except OSError as exc:
            raise ExternalResolverFailedError(printable, -1, str(exc)) from exc
        logging.debug("waf output:\n%s", proc.stdout)
        if proc.returncode != 0:
            raise ExternalResolverFailedError(printable, proc.returncode, proc.stdout or "")
        return proc.stdout or ""


def _as_text(output: str | bytes | None) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        output = output.decode("utf-8", errors="replace")
    return output if output.endswith("\n") or not output else output + "\n"


def tag_version(tag: str) -> Version | None:
    """Return the version a tag name carries, e.g. ``v1.2.0`` or ``release-1.11.0``."""

    found = _TAG_VERSION_RE.search(tag)
    if not found or not Version.is_valid(found.group(1)):
        return None
    return Version(found.group(1))


@lru_cache(maxsize=64)
def ls_remote(url: str) -> tuple[tuple[str, str], ...]:
    """Return ``(sha, ref)`` pairs advertised by a remote repository."""

    try:
        proc = subprocess.run(
            ["git", "ls-remote", "--heads", "--tags", url],
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as exc:
        raise DependencyFileNotResolvableError(f"Unable to run git ls-remote for {url}: {exc}") from exc
    if proc.returncode != 0:
        raise DependencyFileNotResolvableError(f"git ls-remote failed for {url}: {proc.stderr.strip()}")

    refs: list[tuple[str, str]] = []
    for line in proc.stdout.splitlines():
        sha, _, ref = line.partition("\t")
        if sha and ref:
            refs.append((sha.strip(), ref.strip()))
    return tuple(refs)


class LsRemoteGitMetadata:
    """Git metadata derived from ``git ls-remote`` of the dependency's source."""

    def _source(self, dependency: Dependency) -> GitSource | None:
        source = dependency.source_details
        return source if isinstance(source, GitSource) else None

    def _refs(self, dependency: Dependency) -> tuple[tuple[str, str], ...]:
        source = self._source(dependency)
        return ls_remote(source.url) if source else ()

    def _branches(self, dependency: Dependency) -> dict[str, str]:
        prefix = "refs/heads/"
        return {ref[len(prefix) :]: sha for sha, ref in self._refs(dependency) if ref.startswith(prefix)}

    def _tags(self, dependency: Dependency) -> dict[str, str]:
        prefix = "refs/tags/"
        tags: dict[str, str] = {}
        for sha, ref in self._refs(dependency):
            if not ref.startswith(prefix):
                continue
            name = ref[len(prefix) :]
            # peeled entries point at the tagged commit rather than the tag object
            if name.endswith("^{}"):
                tags[name[:-3]] = sha
            else:
                tags.setdefault(name, sha)
        return tags

    def is_pinned(self, dependency: Dependency) -> bool:
        source = self._source(dependency)
        if source is None or not source.ref:
            return False
        if _COMMIT_RE.match(source.ref) or "semver" in _groups(dependency):
            return True
        return source.ref not in self._branches(dependency)

    def pinned_ref_looks_like_version(self, dependency: Dependency) -> bool:
        source = self._source(dependency)
        if source is None or not source.ref or _COMMIT_RE.match(source.ref):
            return False
        return tag_version(source.ref) is not None

    def head_commit_for_branch(self, dependency: Dependency) -> str | None:
        source = self._source(dependency)
        if source is None:
            return None
        return self._branches(dependency).get(source.branch)

    def local_tag_for_latest_version(self, dependency: Dependency) -> TagInfo | None:
        current = dependency.resolved_version
        allow_prerelease = bool(current and current.is_prerelease)

        candidates: list[TagInfo] = []
        for tag, sha in self._tags(dependency).items():
            version = tag_version(tag)
            if version is None or (version.is_prerelease and not allow_prerelease):
                continue
            candidates.append(TagInfo(tag=tag, version=version, commit_sha=sha))

        if not candidates:
            return None
        return max(candidates, key=lambda info: info.version)


def _groups(dependency: Dependency) -> set[str]:
    return {group for req in dependency.requirements for group in req.groups}


__all__ = [
    "RESOLVED_DIRNAME",
    "ExternalResolver",
    "GitMetadataProvider",
    "LsRemoteGitMetadata",
    "TagInfo",
    "WafResolveRunner",
    "ls_remote",
    "tag_version",
]
