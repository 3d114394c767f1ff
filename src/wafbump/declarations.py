"""Dependency declaration shapes found in resolve.json.

A declaration is one object in the manifest array. waf knows three shapes:
git with the ``semver`` method (pinned to a major version), git with the
``checkout`` method (pinned to a tag, branch, or commit), and plain http
archives. Each shape is its own type so illegal combinations cannot be built.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from ._types import GitSource, HttpSource, Source
from .errors import DependencyFileNotEvaluatableError


class DeclarationKind(str, Enum):
    GIT_SEMVER = "git_semver"
    GIT_CHECKOUT = "git_checkout"
    HTTP = "http"


@dataclass(frozen=True)
class _BaseDeclaration:
    name: str
    sources: tuple[str, ...] = ()
    internal: bool = False
    optional: bool = False
    recurse: bool = True
    pull_submodules: bool = False

    @property
    def source(self) -> str:
        # Mirrors may be listed, but the first one is all waf ever needs.
        return self.sources[0] if self.sources else ""


@dataclass(frozen=True)
class SemverDeclaration(_BaseDeclaration):
    major: int = 0


@dataclass(frozen=True)
class CheckoutDeclaration(_BaseDeclaration):
    checkout: str = ""


@dataclass(frozen=True)
class HttpDeclaration(_BaseDeclaration):
    filename: str | None = None
    extract: bool = False


Declaration = Union[SemverDeclaration, CheckoutDeclaration, HttpDeclaration]

_MISSING_VERSION = "No version was provided in the resolve.json file"


def _sources_of(raw: Mapping[str, Any]) -> tuple[str, ...]:
    if raw.get("source"):
        return (str(raw["source"]),)
    sources = raw.get("sources") or ()
    if isinstance(sources, str):
        return (sources,)
    return tuple(str(s) for s in sources)


def declaration_from_mapping(raw: object) -> Declaration:
    """Validate one raw resolve.json entry and return its typed declaration."""

    if not isinstance(raw, Mapping):
        raise DependencyFileNotEvaluatableError(f"Unexpected dependency declaration: {raw!r}")

    name = raw.get("name")
    if not isinstance(name, str) or not name:
        raise DependencyFileNotEvaluatableError(f"Dependency declaration without a name: {dict(raw)!r}")

    common: dict[str, Any] = {
        "name": name,
        "sources": _sources_of(raw),
        "internal": bool(raw.get("internal", False)),
        "optional": bool(raw.get("optional", False)),
        "recurse": bool(raw.get("recurse", True)),
        "pull_submodules": bool(raw.get("pull_submodules", False)),
    }

    if raw.get("resolver") == "http":
        return HttpDeclaration(**common, filename=raw.get("filename"), extract=bool(raw.get("extract", False)))

    method = raw.get("method")
    major = raw.get("major")
    checkout = raw.get("checkout")

    if method == "semver" and major is not None:
        try:
            return SemverDeclaration(**common, major=int(major))
        except (TypeError, ValueError) as exc:
            raise DependencyFileNotEvaluatableError(f"Invalid major version for {name}: {major!r}") from exc

    if method == "checkout" and checkout not in (None, ""):
        return CheckoutDeclaration(**common, checkout=str(checkout))

    raise DependencyFileNotEvaluatableError(_MISSING_VERSION)


def classify(declaration: Declaration) -> DeclarationKind:
    if isinstance(declaration, HttpDeclaration):
        return DeclarationKind.HTTP
    if isinstance(declaration, SemverDeclaration):
        return DeclarationKind.GIT_SEMVER
    return DeclarationKind.GIT_CHECKOUT


def extract_requirement(declaration: Declaration) -> str | None:
    """Return the requirement string; http archives carry none by design."""

    if isinstance(declaration, SemverDeclaration):
        return str(declaration.major)
    if isinstance(declaration, CheckoutDeclaration):
        return declaration.checkout
    return None


def extract_source(declaration: Declaration) -> Source:
    if isinstance(declaration, HttpDeclaration):
        return HttpSource(url=declaration.source)

    if isinstance(declaration, SemverDeclaration):
        ref = f"{declaration.major}.0.0"
    else:
        ref = declaration.checkout
    return GitSource(url="https://" + declaration.source, branch="main", ref=ref)


def group_tag(declaration: Declaration) -> str:
    return {
        DeclarationKind.GIT_SEMVER: "semver",
        DeclarationKind.GIT_CHECKOUT: "checkout",
        DeclarationKind.HTTP: "http",
    }[classify(declaration)]


__all__ = [
    "CheckoutDeclaration",
    "Declaration",
    "DeclarationKind",
    "HttpDeclaration",
    "SemverDeclaration",
    "classify",
    "declaration_from_mapping",
    "extract_requirement",
    "extract_source",
    "group_tag",
]
