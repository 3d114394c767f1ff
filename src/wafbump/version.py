"""Version model for waf dependencies.

Versions follow the RubyGems-style segment ordering used by waf's semver
resolver, extended with SemVer build metadata: everything after ``+`` is kept
for display and only consulted when the primary parts tie.
"""

from __future__ import annotations

import functools
import re
from collections.abc import Sequence
from itertools import dropwhile
from typing import ClassVar, Union

from .errors import MalformedVersionError

Segment = Union[int, str]

VERSION_PATTERN = (
    r"[0-9]+(?:\.[0-9a-zA-Z]+)*"
    r"(?:-[0-9A-Za-z-]+(?:\.[0-9a-zA-Z-]+)*)?"
    r"(?:\+[0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*)?"
)
ANCHORED_VERSION_RE = re.compile(rf"\A\s*({VERSION_PATTERN})\s*\Z")
_SEGMENT_RE = re.compile(r"[0-9]+|[a-z]+", re.IGNORECASE)


def _segments(text: str) -> list[Segment]:
    text = text.strip().replace("-", ".pre.")
    return [int(part) if part.isdigit() else part for part in _SEGMENT_RE.findall(text)]


def _canonical(segments: Sequence[Segment]) -> tuple[Segment, ...]:
    """Drop trailing zeros from the release part and the prerelease part separately."""

    split_at = next((i for i, seg in enumerate(segments) if isinstance(seg, str)), len(segments))
    out: list[Segment] = []
    for part in (segments[:split_at], segments[split_at:]):
        kept = list(dropwhile(lambda seg: seg == 0, reversed(part)))
        out.extend(reversed(kept))
    return tuple(out)


def _compare_segments(lhs: Sequence[Segment], rhs: Sequence[Segment]) -> int:
    if tuple(lhs) == tuple(rhs):
        return 0
    for i in range(max(len(lhs), len(rhs))):
        left = lhs[i] if i < len(lhs) else 0
        right = rhs[i] if i < len(rhs) else 0
        if left == right:
            continue
        if isinstance(left, str) and isinstance(right, int):
            return -1
        if isinstance(left, int) and isinstance(right, str):
            return 1
        return -1 if left < right else 1  # type: ignore[operator]
    return 0


def _build_key(build: str) -> tuple[Segment, ...]:
    return _canonical(_segments("1." + build.lower()))


@functools.total_ordering
class Version:
    """Comparable waf version that round-trips its original text."""

    PATTERN: ClassVar[str] = VERSION_PATTERN

    def __init__(self, version: object) -> None:
        if isinstance(version, Version):
            version = str(version)
        text = str(version)
        if not self.is_valid(text):
            raise MalformedVersionError(version)

        self._original = text
        primary, _, build = text.strip().partition("+")
        self._primary = primary
        self._build = build or None
        self._canonical = _canonical(_segments(primary))

    @classmethod
    def parse(cls, version: object) -> Version:
        return cls(version)

    @classmethod
    def is_valid(cls, version: object) -> bool:
        if version is None:
            return False
        return ANCHORED_VERSION_RE.match(str(version)) is not None

    @property
    def numeric_segments(self) -> tuple[int, ...]:
        release = self._primary.split("-", 1)[0]
        return tuple(int(part) for part in release.split(".") if part.isdigit())

    @property
    def prerelease(self) -> str | None:
        _, sep, pre = self._primary.partition("-")
        return pre if sep else None

    @property
    def build_metadata(self) -> str | None:
        return self._build

    @property
    def segments(self) -> list[Segment]:
        return _segments(self._primary)

    @property
    def is_prerelease(self) -> bool:
        return any(isinstance(seg, str) for seg in self._canonical)

    def release(self) -> Version:
        """Return this version without prerelease or build parts."""

        if not self.is_prerelease:
            return Version(self._primary)
        numbers = []
        for seg in self.segments:
            if isinstance(seg, str):
                break
            numbers.append(str(seg))
        return Version(".".join(numbers) or "0")

    def bump(self) -> Version:
        """Return the upper bound used by ``~>``: drop the last segment and increment."""

        numbers: list[int] = []
        for seg in self.segments:
            if isinstance(seg, str):
                break
            numbers.append(seg)
        if len(numbers) > 1:
            numbers.pop()
        numbers[-1] += 1
        return Version(".".join(str(n) for n in numbers))

    def compare(self, other: Version) -> int:
        primary = _compare_segments(self._canonical, other._canonical)
        if primary:
            return primary

        lhs = (self._build or "").lower().split(".") if self._build else []
        rhs = (other._build or "").lower().split(".") if other._build else []
        limit = min(len(lhs), len(rhs))
        shared = _compare_segments(
            _build_key(".".join(lhs[:limit])) if limit else (1,),
            _build_key(".".join(rhs[:limit])) if limit else (1,),
        )
        if shared:
            return shared
        return (len(lhs) > len(rhs)) - (len(lhs) < len(rhs))

    def _coerce(self, other: object) -> Version | None:
        if isinstance(other, Version):
            return other
        if isinstance(other, str) and self.is_valid(other):
            return Version(other)
        return None

    def __eq__(self, other: object) -> bool:
        coerced = self._coerce(other)
        if coerced is None:
            return NotImplemented
        return self.compare(coerced) == 0

    def __lt__(self, other: object) -> bool:
        coerced = self._coerce(other)
        if coerced is None:
            return NotImplemented
        return self.compare(coerced) < 0

    def __hash__(self) -> int:
        build = self._build.lower().split(".") if self._build else []
        return hash((self._canonical, _build_key(".".join(build)) if build else (), len(build)))

    def __str__(self) -> str:
        return self._original

    def to_string(self) -> str:
        return self._original

    def __repr__(self) -> str:
        return f"Version({self._original!r})"


__all__ = ["ANCHORED_VERSION_RE", "VERSION_PATTERN", "Version"]
