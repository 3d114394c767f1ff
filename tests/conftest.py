"""Pytest session setup for wafbump.

Puts the local `src/` package on the path and provides stub collaborators for
the two subprocess seams: `waf resolve` and remote git refs.
"""

from __future__ import annotations

import json
import logging
import shutil
import sys
import textwrap
from pathlib import Path

import pytest


def _scrub_pycache(root: Path) -> None:
    for cache_dir in root.rglob("__pycache__"):
        shutil.rmtree(cache_dir, ignore_errors=True)


PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

_scrub_pycache(PROJECT_ROOT / "src")

from wafbump._types import Dependency  # noqa: E402
from wafbump.env import TagInfo, tag_version  # noqa: E402
from wafbump.errors import ExternalResolverFailedError  # noqa: E402

TUNNEL_MANIFEST = textwrap.dedent(
    """\
    [
        {
            "name": "tunnel",
            "resolver": "git",
            "method": "semver",
            "major": 13,
            "source": "github.com/steinwurf/tunnel.git"
        }
    ]
    """
)

TUNNEL_LOCK = textwrap.dedent(
    """\
    {
        "tunnel": {
            "commit_id": "1c7f0c2d3e4a5b6c7d8e9f00112233445566778899",
            "resolver_info": "13.0.0"
        }
    }
    """
)


class StubResolver:
    """Writes a lock file with fixed versions instead of running waf."""

    def __init__(self, versions: dict[str, str] | None = None, fail_with: str | None = None) -> None:
        self.versions = versions or {}
        self.fail_with = fail_with
        self.manifests: list[str] = []
        self.workdirs: list[Path] = []

    def run(self, workdir: Path) -> str:
        self.workdirs.append(workdir)
        self.manifests.append((workdir / "resolve.json").read_text(encoding="utf-8"))
        if self.fail_with is not None:
            raise ExternalResolverFailedError("python waf resolve", 1, self.fail_with)

        lock = {name: {"resolver_info": version} for name, version in self.versions.items()}
        (workdir / "lock_version_resolve.json").write_text(json.dumps(lock, indent=4) + "\n", encoding="utf-8")
        return "'resolve' finished successfully"


class StubGitMetadata:
    """Answers git questions from a fixed tag list and branch head."""

    def __init__(self, tags: list[str] | None = None, head: str | None = None, pinned: bool = True) -> None:
        self.tags = tags or []
        self.head = head
        self.pinned = pinned

    def is_pinned(self, dependency: Dependency) -> bool:
        return self.pinned

    def pinned_ref_looks_like_version(self, dependency: Dependency) -> bool:
        source = dependency.source_details
        return bool(self.pinned and source is not None and tag_version(getattr(source, "ref", "")) is not None)

    def head_commit_for_branch(self, dependency: Dependency) -> str | None:
        return self.head

    def local_tag_for_latest_version(self, dependency: Dependency) -> TagInfo | None:
        infos = [
            TagInfo(tag=t, version=v)
            for t in self.tags
            if (v := tag_version(t)) is not None and not v.is_prerelease
        ]
        return max(infos, key=lambda info: info.version) if infos else None


def write(p: Path, content: str) -> Path:
    """Helper to write dedented content to a file."""
    text = textwrap.dedent(content).lstrip("\n")
    p.write_text(text, encoding="utf-8", newline="\n")
    return p


@pytest.fixture
def waf_project(tmp_path: Path) -> Path:
    """A project directory holding the tunnel manifest, its lock file, and a waf script."""

    (tmp_path / "resolve.json").write_text(TUNNEL_MANIFEST, encoding="utf-8", newline="\n")
    (tmp_path / "lock_version_resolve.json").write_text(TUNNEL_LOCK, encoding="utf-8", newline="\n")
    (tmp_path / "waf").write_text('#!/usr/bin/env python\nVERSION="2.0.24"\n', encoding="utf-8")
    (tmp_path / "wscript").write_text('APPNAME = "demo"\nVERSION = "1.0.0"\n', encoding="utf-8")
    return tmp_path


@pytest.fixture
def stub_collaborators(monkeypatch):
    """Replace the subprocess-backed collaborators used by `wafbump.core`."""

    from wafbump import core as core_mod

    resolver = StubResolver({"tunnel": "14.1.1"})
    git_metadata = StubGitMetadata(tags=["13.0.0", "13.2.0", "14.0.0", "14.1.1"])
    monkeypatch.setattr(core_mod, "WafResolveRunner", lambda *args, **kwargs: resolver)
    monkeypatch.setattr(core_mod, "LsRemoteGitMetadata", lambda *args, **kwargs: git_metadata)
    return resolver, git_metadata


@pytest.fixture(autouse=True)
def _restore_root_logging():
    """`setup_logging` replaces root handlers; put them back after CLI tests."""

    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
