"""Map a dependency's git source to the hosting project it lives on."""

from __future__ import annotations

import re
from dataclasses import dataclass

from ._types import Dependency, GitSource

_HOSTS = {
    "github.com": "github",
    "gitlab.com": "gitlab",
    "bitbucket.org": "bitbucket",
}
_URL_RE = re.compile(
    r"\A(?:https?://|git@|ssh://git@|git://)?(?:www\.)?(?P<host>[^/:]+)[/:](?P<repo>[^/\s]+/[^/\s]+?)(?:\.git)?/?\Z"
)


@dataclass(frozen=True)
class SourceHost:
    provider: str
    repo: str
    hostname: str

    @property
    def url(self) -> str:
        return f"https://{self.hostname}/{self.repo}"


def source_from_url(url: str | None) -> SourceHost | None:
    if not url:
        return None
    found = _URL_RE.match(url.strip())
    if not found:
        return None
    provider = _HOSTS.get(found.group("host").lower())
    if provider is None:
        return None
    return SourceHost(provider=provider, repo=found.group("repo"), hostname=found.group("host").lower())


class MetadataFinder:
    def __init__(self, dependency: Dependency) -> None:
        self.dependency = dependency

    def source(self) -> SourceHost | None:
        source = self.dependency.source_details
        if not isinstance(source, GitSource):
            raise ValueError(f"Unexpected source type: {self.dependency.source_type}")
        return source_from_url(source.url)

    @property
    def source_url(self) -> str | None:
        host = self.source()
        return host.url if host else None


__all__ = ["MetadataFinder", "SourceHost", "source_from_url"]
