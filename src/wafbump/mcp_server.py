"""MCP server exposing wafbump to local AI model clients.

Run as `wafbump mcp` or `wafbump-mcp`. Needs the optional ``mcp`` extra; the
single `wafbump_update` tool takes plain parameters and returns a structured
payload with the stable exit code.
"""

from __future__ import annotations

import importlib
from typing import Any, TypedDict

from ._types import ExitCode, JsonResult
from .api import run_update_payload
from .errors import WafbumpError


class McpToolResult(TypedDict):
    ok: bool
    exit_code: int
    error: str | None
    result: JsonResult | None


def _fastmcp() -> Any:
    try:
        module = importlib.import_module("mcp.server.fastmcp")
    except ImportError as exc:
        raise RuntimeError(
            "MCP support requires the `mcp` package. Install optional extras: `pip install wafbump[mcp]`."
        ) from exc
    return module.FastMCP


def wafbump_update(
    path: str = ".",
    strategy: str = "bump-versions",
    only: str = "",
    exclude: str = "",
    dry_run: bool = True,
    check: bool = False,
    show_diff: bool = True,
) -> McpToolResult:
    payload: dict[str, Any] = {
        "path": path,
        "strategy": strategy,
        "only": only,
        "exclude": exclude,
        "dry_run": dry_run,
        "check": check,
        "show_diff": show_diff,
    }
    try:
        result = run_update_payload(payload)
    except WafbumpError as error:
        return {"ok": False, "exit_code": int(error.exit_code), "error": str(error), "result": None}
    except Exception as error:
        return {"ok": False, "exit_code": int(ExitCode.GENERIC_ERROR), "error": str(error), "result": None}
    return {"ok": True, "exit_code": int(ExitCode.OK), "error": None, "result": result}


def _server() -> Any:
    mcp = _fastmcp()("wafbump")
    mcp.tool(
        name="wafbump_update",
        description="Bump waf dependencies in resolve.json and regenerate lock_version_resolve.json.",
    )(wafbump_update)
    return mcp


def serve_mcp(transport: str = "stdio") -> None:
    _server().run(transport=transport)


def main() -> None:
    serve_mcp("stdio")


__all__ = ["main", "serve_mcp", "wafbump_update"]
