#!/usr/bin/env python3
"""Entry point for the dbbox CLI."""

from __future__ import annotations

import sys
import time
from pathlib import Path
from typing import Any, Callable, Sequence

import jsonschema

from dbsandbox.app.context import CommandContext
from dbsandbox.app.dispatch import dispatch
from dbsandbox.app.process import ProcessLauncher
from dbsandbox.cli.parser import HelpRequested, VersionRequested, help_text, parse_args, version_text
from dbsandbox.domain.errors import EXIT_OK, EXIT_USAGE, DbSandboxError, ParseError
from dbsandbox.settings import RuntimeSettings, load_settings
from dbsandbox.utils.output import OutputChannel
from dbsandbox.utils.telemetry import record_structured_event


def _record(settings: RuntimeSettings, output: OutputChannel, event: str, **extra: Any) -> None:
    try:
        record_structured_event(settings, event, component="cli", **extra)
    except (OSError, jsonschema.ValidationError) as exc:
        output.debug(f"telemetry not recorded for {event}: {exc}")


def main(
    argv: Sequence[str] | None = None,
    *,
    settings: RuntimeSettings | None = None,
    output: OutputChannel | None = None,
    launcher: ProcessLauncher | None = None,
    cwd: Path | None = None,
    input_fn: Callable[[str], str] | None = None,
) -> int:
    output = output or OutputChannel()
    raw_args = list(sys.argv[1:] if argv is None else argv)
    try:
        active = settings or load_settings()
    except DbSandboxError as exc:
        output.error(str(exc))
        return exc.exit_code

    try:
        invocation = parse_args(raw_args, output, default_sandbox=active.default_sandbox)
    except HelpRequested:
        output.echo(help_text(active.default_sandbox))
        return EXIT_OK
    except VersionRequested:
        output.echo(version_text())
        return EXIT_OK
    except ParseError as exc:
        output.error(str(exc))
        output.echo(help_text(active.default_sandbox), stream="err")
        return exc.exit_code

    overrides: dict[str, Any] = {}
    if launcher is not None:
        overrides["launcher"] = launcher
    if cwd is not None:
        overrides["cwd"] = cwd
    if input_fn is not None:
        overrides["input_fn"] = input_fn

    event = f"command.{invocation.subcommand}"
    event_context = {"sandbox": invocation.sandbox_name, "args": list(invocation.trailing_args)}
    _record(active, output, event, status="start", payload=event_context)
    start = time.perf_counter()
    try:
        context = CommandContext.build(active, invocation, output, **overrides)
        exit_code = dispatch(context)
    except DbSandboxError as exc:
        output.error(str(exc))
        if isinstance(exc, ParseError):
            output.echo(help_text(active.default_sandbox), stream="err")
        exit_code = exc.exit_code
        _record(
            active,
            output,
            event,
            status="error",
            level="error",
            duration_ms=(time.perf_counter() - start) * 1000,
            payload=event_context | {"error": str(exc), "exit_code": exit_code},
        )
        return exit_code
    except OSError as exc:
        output.error(f"{invocation.subcommand} failed: {exc}")
        _record(
            active,
            output,
            event,
            status="error",
            level="error",
            duration_ms=(time.perf_counter() - start) * 1000,
            payload=event_context | {"error": str(exc), "exit_code": EXIT_USAGE},
        )
        return EXIT_USAGE

    _record(
        active,
        output,
        event,
        status="success" if exit_code == 0 else "error",
        level="info" if exit_code == 0 else "warn",
        duration_ms=(time.perf_counter() - start) * 1000,
        payload=event_context | {"exit_code": exit_code},
    )
    return exit_code


def entrypoint() -> int:
    return main()


if __name__ == "__main__":
    sys.exit(main())
