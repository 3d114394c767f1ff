"""Minimal wafbump API usage example.

Run with: `python examples/api_minimal.py path/to/waf/project`
Inputs: a project directory with resolve.json, lock_version_resolve.json and waf.
Outputs: prints changed flag and diff preview; performs no writes.
"""

from __future__ import annotations

import sys
from pathlib import Path

from wafbump._types import Options, UpdateStrategy
from wafbump.core import update


def main() -> None:
    options = Options(
        path=Path(sys.argv[1] if len(sys.argv) > 1 else "."),
        strategy=UpdateStrategy.BUMP_VERSIONS,
        dry_run=True,
        show_diff=True,
    )
    result = update(options)
    print("Changed:", result.changed)
    for file_change in result.files:
        for change in file_change.changes:
            print(f"{change.dependency}: {change.previous_version} -> {change.new_version} [{change.file.name}]")
    if result.diff:
        print(result.diff)


if __name__ == "__main__":
    main()
