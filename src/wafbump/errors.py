"""Custom exceptions carrying stable wafbump exit-code intent.

The engine raises these typed errors so CLI and MCP layers can map failures
without brittle string parsing. Parse and patch errors always propagate to the
caller; import them for explicit error handling in automation.
"""

from __future__ import annotations

from dataclasses import dataclass

from ._types import ExitCode


@dataclass
class WafbumpError(RuntimeError):
    """Base wafbump exception with a stable exit code."""

    message: str
    exit_code: ExitCode = ExitCode.GENERIC_ERROR

    def __str__(self) -> str:
        return self.message


class MalformedVersionError(WafbumpError):
    def __init__(self, version: object) -> None:
        super().__init__(f"Malformed version string {version!r}", ExitCode.PARSE_ERROR)


class BadRequirementError(WafbumpError):
    def __init__(self, requirement: object) -> None:
        super().__init__(f"Illformed requirement [{requirement!r}]", ExitCode.PARSE_ERROR)


class DependencyFileNotParseableError(WafbumpError):
    def __init__(self, file_name: str, detail: str = "") -> None:
        message = f"Unable to parse {file_name}"
        if detail:
            message += f": {detail}"
        super().__init__(message, ExitCode.PARSE_ERROR)
        self.file_name = file_name


class DependencyFileNotEvaluatableError(WafbumpError):
    def __init__(self, detail: str) -> None:
        super().__init__(detail, ExitCode.NOT_EVALUATABLE)


class MissingDependencyFileError(WafbumpError):
    def __init__(self, file_name: str) -> None:
        super().__init__(f"Dependency file not found: {file_name}", ExitCode.MISSING_FILE)
        self.file_name = file_name


class ExternalResolverFailedError(WafbumpError):
    def __init__(self, command: str, returncode: int, stdout: str) -> None:
        super().__init__(
            f"waf resolve exited with status {returncode}: {stdout.strip()}",
            ExitCode.RESOLVER_FAILED,
        )
        self.command = command
        self.returncode = returncode
        self.stdout = stdout


class DependencyFileNotResolvableError(WafbumpError):
    def __init__(self, detail: str) -> None:
        super().__init__(detail, ExitCode.NOT_RESOLVABLE)


class UnknownUpdateStrategyError(WafbumpError):
    def __init__(self, strategy: object) -> None:
        super().__init__(f"Unknown update strategy: {strategy}", ExitCode.UNSUPPORTED)


class NotImplementedFeatureError(WafbumpError, NotImplementedError):
    def __init__(self, feature: str) -> None:
        super().__init__(f"Not implemented for waf: {feature}", ExitCode.UNSUPPORTED)


class ExpectedContentChangeError(WafbumpError):
    def __init__(self, file_name: str, dependency: str) -> None:
        super().__init__(
            f"Expected content of {file_name} to change when updating {dependency}!",
            ExitCode.CONTENT_UNCHANGED,
        )


class NoFilesChangedError(WafbumpError):
    def __init__(self) -> None:
        super().__init__("No files changed!", ExitCode.CONTENT_UNCHANGED)


class LockAcquireTimeoutError(WafbumpError):
    def __init__(self, lock_path: str, timeout_sec: int) -> None:
        super().__init__(
            f"Unable to acquire wafbump lock at {lock_path} within {timeout_sec}s.",
            ExitCode.LOCK_TIMEOUT,
        )


class WriteRollbackError(WafbumpError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Write failed and backups restored: {detail}", ExitCode.WRITE_FAILED_ROLLED_BACK)


__all__ = [
    "BadRequirementError",
    "DependencyFileNotEvaluatableError",
    "DependencyFileNotParseableError",
    "DependencyFileNotResolvableError",
    "ExpectedContentChangeError",
    "ExternalResolverFailedError",
    "LockAcquireTimeoutError",
    "MalformedVersionError",
    "MissingDependencyFileError",
    "NoFilesChangedError",
    "NotImplementedFeatureError",
    "UnknownUpdateStrategyError",
    "WafbumpError",
    "WriteRollbackError",
]
