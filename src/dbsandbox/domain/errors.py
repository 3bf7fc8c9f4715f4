"""Error taxonomy shared by the parser, detector and executors.

Every error carries the process exit code that ``dbbox`` terminates with.
"""

from __future__ import annotations

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_WRONG_DIRECTORY = 2
EXIT_INTERNAL = 3
EXIT_MISSING_TOOL = 127


class DbSandboxError(RuntimeError):
    """Base class for failures that terminate the current invocation."""

    exit_code = EXIT_USAGE


class UsageError(DbSandboxError):
    exit_code = EXIT_USAGE


class ParseError(UsageError):
    """Malformed or conflicting command-line arguments."""


class SandboxStateError(UsageError):
    """The sandbox lacks a file a subcommand depends on (usually: run init first)."""


class ConfigError(UsageError):
    """config.yaml could not be understood."""


class WorkingDirectoryMismatchError(DbSandboxError):
    """The project descriptor is absent or names the wrong variant."""

    exit_code = EXIT_WRONG_DIRECTORY


class InternalArgumentError(DbSandboxError):
    """An internal helper was called with the wrong number of arguments."""

    exit_code = EXIT_INTERNAL


class DelegatedToolError(DbSandboxError):
    """A delegated executable could not be launched at all."""

    exit_code = EXIT_MISSING_TOOL


__all__ = [
    "DbSandboxError",
    "UsageError",
    "ParseError",
    "SandboxStateError",
    "ConfigError",
    "WorkingDirectoryMismatchError",
    "InternalArgumentError",
    "DelegatedToolError",
    "EXIT_OK",
    "EXIT_USAGE",
    "EXIT_WRONG_DIRECTORY",
    "EXIT_INTERNAL",
    "EXIT_MISSING_TOOL",
]
