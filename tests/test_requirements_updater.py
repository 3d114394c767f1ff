# tests/test_requirements_updater.py
"""Requirement string rewriting for a new target version."""

from __future__ import annotations

import pytest

from wafbump._types import GitSource, HttpSource, RequirementEntry, UpdateStrategy
from wafbump.errors import NotImplementedFeatureError, UnknownUpdateStrategyError
from wafbump.requirements_updater import RequirementsUpdater, truncate_to_shape

OLD_SOURCE = GitSource(url="https://github.com/steinwurf/tunnel.git", ref="13.0.0")
NEW_SOURCE = GitSource(url="https://github.com/steinwurf/tunnel.git", ref="14.1.1")


def _entry(requirement: str | None, group: str = "semver") -> RequirementEntry:
    return RequirementEntry(requirement=requirement, file="resolve.json", groups=(group,), source=OLD_SOURCE)


def _update(requirements, target="14.1.1", strategy=UpdateStrategy.BUMP_VERSIONS, source=NEW_SOURCE):
    return RequirementsUpdater(
        requirements=requirements,
        updated_source=source,
        update_strategy=strategy,
        target_version=target,
    ).updated_requirements()


@pytest.mark.parametrize(
    ("old", "expected"),
    [
        ("13", "14"),
        ("13.0.0", "14.1.1"),
        ("13.0", "14.1"),
        ("13.*", "14.*"),
        ("~> 13.0", "~> 14.1"),
        (">= 13.0.0", ">= 14.1.1"),
        ("release-13.0.0", "release-14.1.1"),
    ],
)
def test_component_count_is_preserved(old: str, expected: str) -> None:
    (updated,) = _update([_entry(old)])
    assert updated.requirement == expected


def test_exact_requirement_is_truncated_too() -> None:
    (updated,) = _update([_entry("= 13.0")])
    assert updated.requirement == "= 14.1"


def test_hyphenated_token_takes_full_target() -> None:
    (updated,) = _update([_entry("13.0.0-rc1", group="checkout")])
    assert updated.requirement == "14.1.1"


def test_truncate_to_shape() -> None:
    assert truncate_to_shape("1", "2.3.4") == "2"
    assert truncate_to_shape("1.*", "2.3.4") == "2.*"
    assert truncate_to_shape("1.0.0", "2.3") == "2.3"


def test_new_source_is_applied_even_when_requirement_is_unchanged() -> None:
    (updated,) = _update([_entry("14")])
    assert updated.requirement == "14"
    assert updated.source == NEW_SOURCE


def test_http_entries_keep_null_requirement() -> None:
    entry = RequirementEntry(requirement=None, file="resolve.json", groups=("http",), source=HttpSource(url="x"))
    (updated,) = _update([entry], source=entry.source)
    assert updated.requirement is None


def test_output_is_index_aligned_with_input() -> None:
    entries = [_entry("13"), _entry(None, group="http"), _entry("13.0.0", group="checkout")]
    updated = _update(entries)
    assert [u.requirement for u in updated] == ["14", None, "14.1.1"]
    assert [u.groups for u in updated] == [e.groups for e in entries]


def test_lockfile_only_returns_input_untouched() -> None:
    entries = [_entry(""), _entry("13")]
    assert _update(entries, strategy="lockfile-only") == entries


def test_if_necessary_strategy_fails_fast() -> None:
    with pytest.raises(NotImplementedFeatureError):
        _update([_entry("13")], strategy=UpdateStrategy.BUMP_VERSIONS_IF_NECESSARY)


def test_unknown_strategy() -> None:
    with pytest.raises(UnknownUpdateStrategyError):
        _update([_entry("13")], strategy="widen-ranges")


def test_missing_target_only_swaps_source() -> None:
    (updated,) = _update([_entry("13")], target=None)
    assert updated.requirement == "13"
    assert updated.source == NEW_SOURCE
