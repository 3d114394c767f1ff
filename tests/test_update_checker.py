# tests/test_update_checker.py
"""Latest and latest-resolvable versions, and the files an update produces."""

from __future__ import annotations

import json

import pytest
from conftest import TUNNEL_LOCK, TUNNEL_MANIFEST, StubGitMetadata, StubResolver

from wafbump._types import DependencyFile, GitSource, RequirementEntry, UpdateStrategy
from wafbump.errors import DependencyFileNotResolvableError, NoFilesChangedError
from wafbump.file_updater import FileUpdater
from wafbump.parse import FileParser
from wafbump.update_checker import UpdateChecker
from wafbump.version import Version

FILES = [
    DependencyFile(name="resolve.json", content=TUNNEL_MANIFEST),
    DependencyFile(name="lock_version_resolve.json", content=TUNNEL_LOCK),
    DependencyFile(name="waf", content='VERSION="2.0.24"\n'),
]
TAGS = ["12.0.0", "13.0.0", "13.2.0", "14.0.0", "14.1.1", "15.0.0-rc1"]


def _dependency(files=FILES, name="tunnel"):
    return next(d for d in FileParser(files).parse() if d.name == name)


def _checker(resolver=None, git=None, strategy=None, files=FILES, name="tunnel") -> UpdateChecker:
    return UpdateChecker(
        dependency=_dependency(files, name),
        dependency_files=files,
        resolver=resolver or StubResolver({"tunnel": "14.1.1"}),
        git_metadata=git or StubGitMetadata(tags=TAGS),
        requirements_update_strategy=strategy,
    )


def test_latest_version_is_newest_release_tag() -> None:
    assert _checker().latest_version() == Version("14.1.1")


def test_latest_version_keeps_component_count_of_semver_pin() -> None:
    lock = DependencyFile(name="lock_version_resolve.json", content=json.dumps({"tunnel": {"resolver_info": "13"}}))
    files = [FILES[0], lock, FILES[2]]
    assert str(_checker(files=files).latest_version()) == "14"


def test_tunnel_moves_to_next_major() -> None:
    resolver = StubResolver({"tunnel": "14.1.1"})
    checker = _checker(resolver=resolver)

    assert checker.latest_resolvable_version() == Version("14.1.1")
    assert json.loads(resolver.manifests[0])[0]["major"] == 14

    (requirement,) = checker.updated_requirements()
    assert requirement == RequirementEntry(
        requirement="14",
        file="resolve.json",
        groups=("semver",),
        source=GitSource(url="https://github.com/steinwurf/tunnel.git", ref="14.1.1", branch="main"),
    )

    updated = checker.updated_dependency()
    assert updated.version == "14.1.1"
    assert updated.previous_version == "13.0.0"

    contents = FileUpdater(FILES, [updated], resolver).updated_file_contents()
    assert contents["resolve.json"] == TUNNEL_MANIFEST.replace('"major": 13', '"major": 14')
    assert json.loads(contents["lock_version_resolve.json"])["tunnel"]["resolver_info"] == "14.1.1"


def test_resolution_is_not_repeated_for_the_same_pin() -> None:
    resolver = StubResolver({"tunnel": "14.1.1"})
    checker = _checker(resolver=resolver)
    checker.latest_resolvable_version()
    checker.updated_requirements()
    checker.updated_source()
    assert len(resolver.manifests) == 1


def test_conflicting_latest_tag_keeps_current_version() -> None:
    resolver = StubResolver(fail_with="Resolve failed: versions conflict between tunnel and kodo")
    checker = _checker(resolver=resolver)

    assert checker.latest_resolvable_version() == Version("13.0.0")
    assert checker.updated_source().ref == "13.0.0"
    assert checker.updated_dependency() is None


def test_other_resolver_failures_propagate() -> None:
    checker = _checker(resolver=StubResolver(fail_with="fatal: repository not found"))
    with pytest.raises(DependencyFileNotResolvableError, match="repository not found"):
        checker.latest_resolvable_version()


def test_up_to_date_dependency() -> None:
    checker = _checker(resolver=StubResolver({"tunnel": "13.0.0"}), git=StubGitMetadata(tags=["13.0.0"]))
    assert checker.updated_dependency() is None


def test_unpinned_dependency_follows_branch_head() -> None:
    manifest = json.dumps(
        [{"name": "tunnel", "resolver": "git", "method": "checkout", "checkout": "master", "source": "github.com/steinwurf/tunnel.git"}]
    )
    lock = json.dumps({"tunnel": {"resolver_info": "0a1b2c3d4e"}})
    files = [
        DependencyFile(name="resolve.json", content=manifest),
        DependencyFile(name="lock_version_resolve.json", content=lock),
        FILES[2],
    ]
    resolver = StubResolver({"tunnel": "9f8e7d6c5b"})
    checker = _checker(resolver=resolver, git=StubGitMetadata(head="9f8e7d6c5b", pinned=False), files=files)

    assert checker.latest_version() == "9f8e7d6c5b"
    assert checker.latest_resolvable_version() == "9f8e7d6c5b"
    assert resolver.manifests[0] == manifest

    updated = checker.updated_dependency()
    assert updated.version == "9f8e7d6c5b"
    assert [r.requirement for r in updated.requirements] == ["master"]

    contents = FileUpdater(files, [updated], resolver).updated_file_contents()
    assert list(contents) == ["lock_version_resolve.json"]


def test_non_version_pin_stays_put() -> None:
    git = StubGitMetadata(tags=TAGS)
    git.pinned_ref_looks_like_version = lambda dependency: False
    checker = _checker(git=git)
    assert checker.latest_version() == Version("13.0.0")
    assert checker.latest_resolvable_version() == Version("13.0.0")


def test_http_dependencies_are_not_checked() -> None:
    manifest = json.dumps([{"name": "boost", "resolver": "http", "source": "https://example.com/boost.tar.gz"}])
    lock = json.dumps({"boost": {"resolver_info": "1.84.0"}})
    files = [
        DependencyFile(name="resolve.json", content=manifest),
        DependencyFile(name="lock_version_resolve.json", content=lock),
    ]
    checker = _checker(files=files, name="boost")
    assert checker.latest_version() is None
    assert checker.latest_resolvable_version() is None
    assert checker.latest_resolvable_version_with_no_unlock() is None
    assert checker.updated_dependency() is None


def test_no_unlock_resolution_uses_manifest_as_is() -> None:
    resolver = StubResolver({"tunnel": "13.2.0"})
    assert _checker(resolver=resolver).latest_resolvable_version_with_no_unlock() == Version("13.2.0")


def test_lockfile_only_strategy_leaves_manifest_untouched() -> None:
    resolver = StubResolver({"tunnel": "14.1.1"})
    checker = _checker(resolver=resolver, strategy=UpdateStrategy.LOCKFILE_ONLY)

    updated = checker.updated_dependency()
    assert updated.requirements == _dependency().requirements

    contents = FileUpdater(FILES, [updated], resolver).updated_file_contents()
    assert list(contents) == ["lock_version_resolve.json"]


def test_file_updater_reports_nothing_changed() -> None:
    dependency = _dependency()
    with pytest.raises(NoFilesChangedError):
        FileUpdater([FILES[0]], [dependency], StubResolver()).updated_dependency_files()


def test_lock_file_that_does_not_move_is_an_error() -> None:
    resolver = StubResolver({"tunnel": "13.0.0"})
    updated = _checker(resolver=StubResolver({"tunnel": "14.1.1"})).updated_dependency()
    with pytest.raises(DependencyFileNotResolvableError, match="Failed to update tunnel"):
        FileUpdater(FILES, [updated], resolver).updated_dependency_files()
