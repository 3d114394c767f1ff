"""Public wafbump package API.

Import `update` to bump a waf project's dependencies from Python, or
`run_update_payload` to drive it with a plain dictionary (CI wrappers, MCP).
The lower-level pieces (`Version`, `Requirement`, `FileParser`,
`UpdateChecker`, `FileUpdater`) are importable for embedding in other bots.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _dist_version

from .api import options_from_mapping, run_update_payload
from .core import update
from .file_updater import FileUpdater
from .parse import FileParser
from .requirement import Requirement
from .update_checker import UpdateChecker
from .version import Version

__all__ = [
    "FileParser",
    "FileUpdater",
    "Requirement",
    "UpdateChecker",
    "Version",
    "__version__",
    "options_from_mapping",
    "run_update_payload",
    "update",
]

try:
    __version__ = _dist_version("wafbump")
except PackageNotFoundError:
    __version__ = "0.0.0+dev"
