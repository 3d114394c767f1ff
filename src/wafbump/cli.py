"""Command-line entrypoints for wafbump and built-in MCP serving.

Primary usage is `wafbump run ...` to bump a waf project's dependencies and
`wafbump check` in CI to fail when something is outdated. CLI arguments
override optional project config files and can emit either human summaries or
JSON payloads.
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import typer
from click.core import ParameterSource

from . import __version__
from ._logging import setup_logging
from ._types import ExitCode, JsonResult, Options, UpdateStrategy
from .config import load_project_config, merge_options
from .core import list_dependencies, update
from .errors import WafbumpError
from .report import result_to_json, source_url, summarize_dependencies, write_json_report


class TransportEnum(str, Enum):
    STDIO = "stdio"
    SSE = "sse"
    STREAMABLE_HTTP = "streamable-http"


class OutputModeEnum(str, Enum):
    HUMAN = "human"
    JSON = "json"
    BOTH = "both"


_ROOT_HELP_EPILOG = """Help tips:
  wafbump run --help
  wafbump check --help
  wafbump list --help
"""

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Bump waf dependencies in resolve.json and regenerate lock_version_resolve.json.",
    epilog=_ROOT_HELP_EPILOG,
)

_SUBCOMMAND_HELP_FOOTER = """Other wafbump commands:
  wafbump run [OPTIONS]
  wafbump check [OPTIONS]
  wafbump list [--path DIR]
  wafbump version
  wafbump mcp [--transport stdio|sse|streamable-http]
"""

_NON_OPTION_KEYS = {"ctx", "output", "use_config"}


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"wafbump {__version__}")
        raise typer.Exit()


@app.callback()
def app_callback(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        is_eager=True,
        callback=_version_callback,
        help="Show wafbump version and exit.",
    ),
) -> None:
    """Global CLI options for wafbump."""


def _build_options(ctx: typer.Context, use_config: bool, **forced: Any) -> Options:
    options = Options(path=Path("."))
    if use_config:
        start = ctx.params.get("path") or Path(".")
        start = Path(start).resolve()
        options = merge_options(options, load_project_config(start if start.is_dir() else start.parent))

    overrides: dict[str, Any] = {}
    for key, value in ctx.params.items():
        if key in _NON_OPTION_KEYS:
            continue
        source = ctx.get_parameter_source(key)
        # typer may bundle its own click, so compare enum names
        if source is not None and source.name != ParameterSource.DEFAULT.name:
            overrides[key] = value
    overrides.update(forced)

    return merge_options(options, overrides)


def _print_human_summary(payload: JsonResult, options: Options, report_path: Optional[Path]) -> None:
    mode = "apply"
    if options.check:
        mode = "check"
    elif options.dry_run:
        mode = "dry-run"

    files_changed = sum(1 for file_row in payload["files"] if file_row["changed"])
    updated = sorted({change["dependency"] for change in payload["changes"]})

    if payload["changed"]:
        typer.secho(f"wafbump [{mode}] -> updates available", fg=typer.colors.YELLOW)
    else:
        typer.secho(f"wafbump [{mode}] -> all dependencies up to date", fg=typer.colors.GREEN)

    typer.echo(f"files changed: {files_changed} | dependencies updated: {len(updated)}")

    seen: set[str] = set()
    for change in payload["changes"]:
        if change["dependency"] in seen:
            continue
        seen.add(change["dependency"])
        line = f"  - {change['dependency']}: {change['previous_version']} -> {change['new_version']}"
        if change["old_requirement"] != change["new_requirement"] and change["new_requirement"] is not None:
            line += f" (requirement {change['old_requirement']} -> {change['new_requirement']})"
        typer.echo(line)

    if report_path:
        typer.echo(f"json report written: {report_path}")


def _emit_result(payload: JsonResult, result_diff: Optional[str], options: Options, output_mode: OutputModeEnum) -> None:
    report_path: Optional[Path] = None
    if options.json_report:
        report_path = write_json_report(payload, str(options.json_report))

    if output_mode in {OutputModeEnum.HUMAN, OutputModeEnum.BOTH}:
        _print_human_summary(payload=payload, options=options, report_path=report_path)
        if result_diff and (options.show_diff or options.dry_run):
            typer.echo(result_diff)

    if output_mode in {OutputModeEnum.JSON, OutputModeEnum.BOTH}:
        typer.echo(json.dumps(payload, indent=2))


def _execute(options: Options, output: OutputModeEnum) -> None:
    setup_logging(verbosity=options.verbosity, quiet=options.quiet, log_file=options.log_file)

    try:
        result = update(options)
    except WafbumpError as error:
        typer.secho(str(error), fg=typer.colors.RED, err=True)
        raise typer.Exit(int(error.exit_code)) from error
    except Exception as error:
        typer.secho(str(error), fg=typer.colors.RED, err=True)
        raise typer.Exit(int(ExitCode.GENERIC_ERROR)) from error

    payload = result_to_json(result)
    _emit_result(payload=payload, result_diff=result.diff, options=options, output_mode=output)

    if options.check and result.changed:
        raise typer.Exit(int(ExitCode.CHANGES_WOULD_BE_MADE)) from None
    raise typer.Exit(int(ExitCode.OK)) from None


_PATH_OPTION = typer.Option(
    Path("."),
    "--path",
    help="Project directory containing resolve.json.",
    rich_help_panel="Target",
)
_STRATEGY_OPTION = typer.Option(
    UpdateStrategy.BUMP_VERSIONS,
    "--strategy",
    help="How requirements in resolve.json may change.",
    rich_help_panel="Policy",
)
_ONLY_OPTION = typer.Option(None, help="Comma-separated dependency globs to include.", rich_help_panel="Filtering")
_EXCLUDE_OPTION = typer.Option(None, help="Comma-separated dependency globs to exclude.", rich_help_panel="Filtering")
_SHOW_DIFF_OPTION = typer.Option(False, help="Show unified diff for changed files.", rich_help_panel="Output")
_OUTPUT_OPTION = typer.Option(
    OutputModeEnum.HUMAN, "--output", "-o", help="Stdout output mode.", rich_help_panel="Output"
)
_JSON_REPORT_OPTION = typer.Option(
    None, help="Write machine-readable JSON report to file.", rich_help_panel="Output"
)
_PYTHON_OPTION = typer.Option(
    None, help="Interpreter used to run ./waf (defaults to the current one).", rich_help_panel="Execution"
)
_RESOLVER_TIMEOUT_OPTION = typer.Option(
    None, help="Timeout for each `waf resolve` call in seconds.", rich_help_panel="Execution"
)
_LOG_FILE_OPTION = typer.Option(None, help="Optional log file path.", rich_help_panel="Logging")
_VERBOSITY_OPTION = typer.Option(
    0,
    "--verbose",
    "-v",
    count=True,
    help="Increase logging verbosity (-vv for debug).",
    rich_help_panel="Logging",
)
_QUIET_OPTION = typer.Option(False, "--quiet", "-q", help="Reduce logging output.", rich_help_panel="Logging")
_USE_CONFIG_OPTION = typer.Option(
    True, help="Load wafbump.toml / [tool.wafbump] / wafbump.json.", rich_help_panel="Config"
)


@app.command("run", epilog=_SUBCOMMAND_HELP_FOOTER)
def run_command(
    ctx: typer.Context,
    path: Path = _PATH_OPTION,
    strategy: UpdateStrategy = _STRATEGY_OPTION,
    only: Optional[str] = _ONLY_OPTION,
    exclude: Optional[str] = _EXCLUDE_OPTION,
    check: bool = typer.Option(False, help="Exit nonzero when changes would be made.", rich_help_panel="Execution"),
    dry_run: bool = typer.Option(False, help="Preview changes without writing files.", rich_help_panel="Execution"),
    show_diff: bool = _SHOW_DIFF_OPTION,
    output: OutputModeEnum = _OUTPUT_OPTION,
    json_report: Optional[Path] = _JSON_REPORT_OPTION,
    python: Optional[str] = _PYTHON_OPTION,
    resolver_timeout_sec: Optional[int] = _RESOLVER_TIMEOUT_OPTION,
    backup_suffix: str = typer.Option(".bak", help="Backup file suffix.", rich_help_panel="Write Safety"),
    timestamped_backups: bool = typer.Option(
        True, help="Use timestamped backup filenames.", rich_help_panel="Write Safety"
    ),
    backup_keep_last: int = typer.Option(
        5,
        help="Keep only the newest N timestamped backups per file (0 disables pruning).",
        min=0,
        rich_help_panel="Write Safety",
    ),
    lock_timeout_sec: int = typer.Option(15, help="Lock acquisition timeout in seconds.", rich_help_panel="Write Safety"),
    log_file: Optional[Path] = _LOG_FILE_OPTION,
    verbosity: int = _VERBOSITY_OPTION,
    quiet: bool = _QUIET_OPTION,
    use_config: bool = _USE_CONFIG_OPTION,
) -> None:
    """Bump outdated dependencies and rewrite resolve.json and its lock file."""

    _execute(_build_options(ctx, use_config=use_config), output)


@app.command("check", epilog=_SUBCOMMAND_HELP_FOOTER)
def check_command(
    ctx: typer.Context,
    path: Path = _PATH_OPTION,
    strategy: UpdateStrategy = _STRATEGY_OPTION,
    only: Optional[str] = _ONLY_OPTION,
    exclude: Optional[str] = _EXCLUDE_OPTION,
    show_diff: bool = _SHOW_DIFF_OPTION,
    output: OutputModeEnum = _OUTPUT_OPTION,
    json_report: Optional[Path] = _JSON_REPORT_OPTION,
    python: Optional[str] = _PYTHON_OPTION,
    resolver_timeout_sec: Optional[int] = _RESOLVER_TIMEOUT_OPTION,
    log_file: Optional[Path] = _LOG_FILE_OPTION,
    verbosity: int = _VERBOSITY_OPTION,
    quiet: bool = _QUIET_OPTION,
    use_config: bool = _USE_CONFIG_OPTION,
) -> None:
    """Exit with code 11 when any dependency could be bumped; never writes."""

    _execute(_build_options(ctx, use_config=use_config, check=True), output)


@app.command("list", epilog=_SUBCOMMAND_HELP_FOOTER)
def list_command(
    path: Path = _PATH_OPTION,
    output: OutputModeEnum = _OUTPUT_OPTION,
) -> None:
    """Show the dependencies declared in resolve.json and their locked versions."""

    try:
        dependencies = list_dependencies(path)
    except WafbumpError as error:
        typer.secho(str(error), fg=typer.colors.RED, err=True)
        raise typer.Exit(int(error.exit_code)) from error

    if output in {OutputModeEnum.HUMAN, OutputModeEnum.BOTH}:
        typer.echo(summarize_dependencies(dependencies))
    if output in {OutputModeEnum.JSON, OutputModeEnum.BOTH}:
        rows = [
            {
                "name": d.name,
                "version": d.version,
                "requirements": [r.requirement for r in d.requirements],
                "groups": sorted({g for r in d.requirements for g in r.groups}),
                "source": d.source_details.url if d.source_details else None,
                "source_url": source_url(d),
            }
            for d in dependencies
        ]
        typer.echo(json.dumps(rows, indent=2))


@app.command("version", epilog=_SUBCOMMAND_HELP_FOOTER)
def version_command() -> None:
    """Print installed wafbump version."""

    typer.echo(f"wafbump {__version__}")


@app.command("mcp", epilog=_SUBCOMMAND_HELP_FOOTER)
def mcp_server(
    transport: TransportEnum = typer.Option(TransportEnum.STDIO, help="MCP transport to serve"),
) -> None:
    """Start wafbump MCP server for local AI model clients."""

    from .mcp_server import serve_mcp

    serve_mcp(transport=transport.value)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
