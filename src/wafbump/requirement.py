"""Requirement model for waf dependencies.

resolve.json entries carry a single constraint each: mostly a bare major
version or a git tag. A bare version implies the pessimistic ``~>`` operator.
"""

from __future__ import annotations

import operator
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import ClassVar

from .errors import BadRequirementError
from .version import VERSION_PATTERN, Version


def _tilde(version: Version, requirement: Version) -> bool:
    return version >= requirement and version.release() < requirement.bump()


OPS: dict[str, Callable[[Version, Version], bool]] = {
    "=": operator.eq,
    "!=": operator.ne,
    ">": operator.gt,
    "<": operator.lt,
    ">=": operator.ge,
    "<=": operator.le,
    "~>": _tilde,
}

_QUOTED_OPS = "|".join(re.escape(op) for op in OPS)
PATTERN_RAW = rf"\s*({_QUOTED_OPS})?\s*({VERSION_PATTERN})\s*"
PATTERN = re.compile(rf"\A{PATTERN_RAW}\Z")


@dataclass(frozen=True)
class Requirement:
    """One parsed constraint: an operator and the version it applies to."""

    operator: str
    version: Version

    DEFAULT: ClassVar[Requirement]

    @classmethod
    def parse(cls, raw: object) -> Requirement:
        if isinstance(raw, Version):
            return cls("~>", raw)

        text = "" if raw is None else str(raw).strip()
        if text == "":
            return cls.DEFAULT

        match = PATTERN.match(text)
        if not match:
            raise BadRequirementError(raw)

        op, version = match.group(1), match.group(2)
        if op == ">=" and version == "0":
            return cls.DEFAULT
        return cls(op or "~>", Version(version))

    @classmethod
    def requirements_array(cls, raw: object) -> list[Requirement]:
        # resolve.json only ever holds a single constraint per entry
        return [cls.parse(raw)]

    @classmethod
    def is_valid(cls, raw: object) -> bool:
        text = "" if raw is None else str(raw).strip()
        return text == "" or PATTERN.match(text) is not None

    @property
    def exact(self) -> bool:
        return self.operator == "="

    @property
    def is_default(self) -> bool:
        return self is Requirement.DEFAULT or (self.operator == ">=" and str(self.version) == "0")

    def satisfied_by(self, version: Version | str) -> bool:
        if not isinstance(version, Version):
            version = Version(version)
        return OPS[self.operator](version, self.version)

    def __str__(self) -> str:
        return f"{self.operator} {self.version}"


Requirement.DEFAULT = Requirement(">=", Version("0"))


__all__ = ["OPS", "PATTERN", "Requirement"]
