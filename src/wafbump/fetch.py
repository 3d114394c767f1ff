"""Load waf dependency files from a project directory."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from ._types import LOCKFILE_FILENAME, MANIFEST_FILENAME, WAF_FILENAME, WSCRIPT_FILENAME, DependencyFile
from .errors import MissingDependencyFileError
from .io import read_text_preserve

WAF_VERSION_RE = re.compile(r'VERSION\s*=\s*"(?P<version>[0-9]+(?:\.[0-9]+)*)"')
REQUIRED_FILES_MESSAGE = f"Repo must contain a {MANIFEST_FILENAME}"


def required_files_in(filenames: list[str]) -> bool:
    return MANIFEST_FILENAME in filenames


def waf_version(content: str | None) -> str:
    """Return the version embedded in a waf script, or ``"default"``."""

    if not content:
        return "default"
    found = WAF_VERSION_RE.search(content)
    return found.group("version") if found else "default"


class LocalFileSource:
    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def fetch(self, path: str) -> bytes:
        target = self.root / path
        if not target.is_file():
            raise MissingDependencyFileError(str(target))
        return target.read_bytes()

    def fetch_if_present(self, path: str) -> DependencyFile | None:
        target = self.root / path
        if not target.is_file():
            return None
        text, _newline, _bom = read_text_preserve(target)
        return DependencyFile(name=path, content=text)

    def fetch_files(self) -> list[DependencyFile]:
        manifest = self.fetch_if_present(MANIFEST_FILENAME)
        if manifest is None:
            raise MissingDependencyFileError(MANIFEST_FILENAME)

        files = [manifest]
        for optional in (LOCKFILE_FILENAME, WSCRIPT_FILENAME, WAF_FILENAME):
            fetched = self.fetch_if_present(optional)
            if fetched is None:
                logging.debug("%s not found in %s", optional, self.root)
                continue
            files.append(fetched)
        return files

    def ecosystem_versions(self) -> dict[str, dict[str, str]]:
        waf = self.fetch_if_present(WAF_FILENAME)
        return {"package_managers": {"waf": waf_version(waf.content if waf else None)}}


__all__ = ["LocalFileSource", "REQUIRED_FILES_MESSAGE", "required_files_in", "waf_version"]
