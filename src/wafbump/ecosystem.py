"""The waf ecosystem entry: which classes handle each stage of an update."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from types import MappingProxyType

from ._types import Dependency
from .fetch import LocalFileSource
from .file_updater import FileUpdater
from .metadata import MetadataFinder
from .parse import FileParser
from .requirement import Requirement
from .update_checker import UpdateChecker
from .version import Version


@dataclass(frozen=True)
class LabelDetails:
    name: str
    colour: str


@dataclass(frozen=True)
class Ecosystem:
    name: str
    file_fetcher: type[LocalFileSource]
    file_parser: type[FileParser]
    update_checker: type[UpdateChecker]
    file_updater: type[FileUpdater]
    metadata_finder: type[MetadataFinder]
    version_class: type[Version]
    requirement_class: type[Requirement]
    label_details: LabelDetails
    production_check: Callable[[Dependency], bool]


def _always_production(_dependency: Dependency) -> bool:
    return True


WAF = Ecosystem(
    name="waf",
    file_fetcher=LocalFileSource,
    file_parser=FileParser,
    update_checker=UpdateChecker,
    file_updater=FileUpdater,
    metadata_finder=MetadataFinder,
    version_class=Version,
    requirement_class=Requirement,
    label_details=LabelDetails(name="waf", colour="4A412A"),
    production_check=_always_production,
)

ECOSYSTEMS = MappingProxyType({WAF.name: WAF})


def ecosystem_for(package_manager: str) -> Ecosystem:
    try:
        return ECOSYSTEMS[package_manager]
    except KeyError:
        raise ValueError(f"Unsupported package manager: {package_manager}") from None


__all__ = ["ECOSYSTEMS", "WAF", "Ecosystem", "LabelDetails", "ecosystem_for"]
