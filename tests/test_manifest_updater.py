# tests/test_manifest_updater.py
"""Span-scoped patching of resolve.json text."""

from __future__ import annotations

import json
import textwrap

import pytest
from conftest import TUNNEL_MANIFEST

from wafbump._types import Dependency, DependencyFile, GitSource, HttpSource, RequirementEntry
from wafbump.errors import DependencyFileNotParseableError, ExpectedContentChangeError, NotImplementedFeatureError
from wafbump.locate import declarations, locate, replace_field_value
from wafbump.manifest_updater import ManifestUpdater

MIXED_MANIFEST = textwrap.dedent(
    """\
    [
      {"name": "endian", "resolver": "git", "method": "semver", "major": 13,
       "source": "github.com/steinwurf/endian.git"},
      {
        "source": "github.com/steinwurf/tunnel.git",
        "major" :  13 ,
        "method": "semver",
        "resolver": "git",
        "name": "tunnel",
        "internal": true
      },
      {"name": "gtest", "resolver": "git", "method": "checkout",
       "checkout": "release-1.11.0", "source": "github.com/google/googletest.git"},
      {"name": "boost", "resolver": "http", "source": "https://example.com/boost-13.tar.gz"}
    ]
    """
)


def _bumped(name: str, old: str | None, new: str | None, group: str, file: str = "resolve.json") -> Dependency:
    source = HttpSource(url="x") if group == "http" else GitSource(url="https://x", ref=old or "")
    return Dependency(
        name=name,
        version="new",
        requirements=(RequirementEntry(requirement=new, file=file, groups=(group,), source=source),),
        previous_version="old",
        previous_requirements=(RequirementEntry(requirement=old, file=file, groups=(group,), source=source),),
    )


def test_locate_records_field_spans_in_any_order() -> None:
    match = locate(MIXED_MANIFEST, "tunnel")
    assert match is not None
    assert match.method == "semver"
    assert match.resolver == "git"
    assert match.fields["major"].raw(MIXED_MANIFEST) == "13"
    assert match.get("internal") is True
    assert locate(MIXED_MANIFEST, "missing") is None
    assert [m.get("name") for m in declarations(MIXED_MANIFEST)] == ["endian", "tunnel", "gtest", "boost"]


def test_replace_field_value_only_touches_the_span() -> None:
    match = locate(MIXED_MANIFEST, "tunnel")
    patched = replace_field_value(MIXED_MANIFEST, match, "major", "14")
    assert '"major" :  14 ,' in patched
    assert patched.count("13") == MIXED_MANIFEST.count("13") - 1


def test_semver_patch_is_byte_identical_elsewhere() -> None:
    manifest = DependencyFile(name="resolve.json", content=TUNNEL_MANIFEST)
    updated = ManifestUpdater([_bumped("tunnel", "13", "14", "semver")], manifest).updated_manifest_content()
    assert updated == TUNNEL_MANIFEST.replace('"major": 13', '"major": 14')
    assert json.loads(updated)[0]["major"] == 14


def test_same_literal_in_other_declarations_is_left_alone() -> None:
    manifest = DependencyFile(name="resolve.json", content=MIXED_MANIFEST)
    updated = ManifestUpdater([_bumped("tunnel", "13", "14", "semver")], manifest).updated_manifest_content()

    data = {d["name"]: d for d in json.loads(updated)}
    assert data["tunnel"]["major"] == 14
    assert data["endian"]["major"] == 13
    assert data["boost"]["source"].endswith("boost-13.tar.gz")
    assert '"major" :  14 ,' in updated


def test_same_literal_inside_the_declaration_is_left_alone() -> None:
    content = textwrap.dedent(
        """\
        [
            {
                "name": "tunnel",
                "source": "github.com/x/tunnel-13.git",
                "resolver": "git",
                "method": "semver",
                "major": 13
            }
        ]
        """
    )
    manifest = DependencyFile(name="resolve.json", content=content)
    updated = ManifestUpdater([_bumped("tunnel", "13", "14", "semver")], manifest).updated_manifest_content()

    assert updated == content.replace('"major": 13', '"major": 14')
    assert json.loads(updated)[0]["source"] == "github.com/x/tunnel-13.git"


def test_checkout_patch() -> None:
    manifest = DependencyFile(name="resolve.json", content=MIXED_MANIFEST)
    dependency = _bumped("gtest", "release-1.11.0", "release-1.12.1", "checkout")
    updated = ManifestUpdater([dependency], manifest).updated_manifest_content()
    assert '"checkout": "release-1.12.1"' in updated
    assert updated.replace("release-1.12.1", "release-1.11.0") == MIXED_MANIFEST


def test_http_patch_is_not_implemented() -> None:
    manifest = DependencyFile(name="resolve.json", content=MIXED_MANIFEST)
    with pytest.raises(NotImplementedFeatureError):
        ManifestUpdater([_bumped("boost", "1", "2", "http")], manifest).updated_manifest_content()


def test_unchanged_requirements_leave_the_file_alone() -> None:
    manifest = DependencyFile(name="resolve.json", content=TUNNEL_MANIFEST)
    assert ManifestUpdater([_bumped("tunnel", "13", "13", "semver")], manifest).updated_manifest_content() == TUNNEL_MANIFEST


def test_patch_that_changes_nothing_fails_loudly() -> None:
    manifest = DependencyFile(name="resolve.json", content=MIXED_MANIFEST)
    dependency = _bumped("gtest", "v2.0.0", "v3.0.0", "checkout")
    with pytest.raises(ExpectedContentChangeError):
        ManifestUpdater([dependency], manifest).updated_manifest_content()


def test_broken_manifest_text() -> None:
    with pytest.raises(DependencyFileNotParseableError):
        locate('[{"name": "tunnel", "major" 13}]', "tunnel")
