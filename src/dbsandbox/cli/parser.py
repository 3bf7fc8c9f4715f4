"""Token-by-token argument parser producing an :class:`Invocation`.

The grammar is ``dbbox [nice <cmd>] <subcommand> [options] [-- args]``.
Options may appear before or after the subcommand. ``--only`` collects test
selectors and is only accepted once ``test`` or ``integration-test`` has
been seen.
"""

from __future__ import annotations

import shlex
from textwrap import dedent
from typing import List, Sequence

from dbsandbox import __version__
from dbsandbox.domain.errors import ParseError
from dbsandbox.domain.invocation import FILTERABLE, Invocation
from dbsandbox.settings import DEFAULT_SANDBOX
from dbsandbox.utils.output import OutputChannel

DELIMITER = "--"
HELP_FLAGS = frozenset({"-h", "--help"})
VERBOSE_FLAGS = frozenset({"-v", "--verbose"})
NAME_FLAGS = frozenset({"-n", "--name"})
PORT_FLAGS = frozenset({"-p", "--port"})
PGVER_FLAG = "--pgver"
VERSION_FLAG = "--version"
NICE_TOKEN = "nice"
FILTER_MARKER = "--only"

HELP_TEXT = dedent(
    """
    usage: dbbox [nice <cmd>] <subcommand> [options] [-- [subcommand-args]]

    Options:
      -h, --help            show this help and exit
      -n, --name <sandbox>  sandbox to operate on (default: {default_sandbox})
      -p, --port <n>        postgres port (init: instead of an ephemeral port)
      --pgver <version>     use the binaries of another postgres version
      -v, --verbose         echo debug diagnostics and delegated commands
      --version             print the dbbox version and exit
      --only <selector...>  (test, integration-test) run only these tests

    Sandbox:
      init [-- pe|foss]     (re)create the sandbox and start postgres
      init-sync             create sync-1 and sync-2 replicating to each other
      start, stop           control the sandbox postgres with pg_ctl
      clean                 stop postgres and delete the sandbox
      pglog                 page through the sandbox postgres log
      edit                  open the sandbox service config in $EDITOR

    Database:
      new-db                drop and recreate the service database
      pe-db                 create the enterprise auxiliary databases
      psql                  psql against the service database
      pgenv -- <cmd...>     run a command inside the sandbox environment
      ext -- <script...>    run ext/bin/<script> inside the sandbox environment

    Project (run from a puppetdb or pe-puppetdb checkout):
      run                   start the service against the sandbox
      repl                  start a runner repl
      test                  run the unit tests
      integration-test      run the integration tests (puppetdb only)
      benchmark             run the benchmark tool against the sandbox
    """
).strip()


class HelpRequested(Exception):
    """Raised when -h/--help is seen; normal dispatch is abandoned."""


class VersionRequested(Exception):
    """Raised when --version is seen."""


def help_text(default_sandbox: str = DEFAULT_SANDBOX) -> str:
    return HELP_TEXT.format(default_sandbox=default_sandbox)


def version_text() -> str:
    return f"dbbox {__version__}"


def _option_value(tokens: Sequence[str], index: int) -> str:
    option = tokens[index]
    if index + 1 >= len(tokens) or tokens[index + 1] == DELIMITER:
        raise ParseError(f"{option} requires a value")
    return tokens[index + 1]


def _parse_port(raw: str) -> int:
    try:
        port = int(raw)
    except ValueError as exc:
        raise ParseError(f"invalid port: {raw}") from exc
    if not 0 < port < 65536:
        raise ParseError(f"port out of range: {raw}")
    return port


def parse_args(
    argv: Sequence[str],
    output: OutputChannel,
    *,
    default_sandbox: str = DEFAULT_SANDBOX,
) -> Invocation:
    tokens = list(argv)
    if not tokens:
        raise ParseError("no arguments given")

    subcommand: str | None = None
    sandbox_name = default_sandbox
    nice_wrapper: tuple[str, ...] = ()
    port: int | None = None
    pg_version: str | None = None
    verbose = False
    test_filter: List[str] | None = None
    trailing: tuple[str, ...] = ()

    index = 0
    while index < len(tokens):
        token = tokens[index]
        if token == DELIMITER:
            trailing = tuple(tokens[index + 1:])
            break
        if token in HELP_FLAGS:
            raise HelpRequested()
        if token in VERBOSE_FLAGS:
            verbose = True
            output.verbose = True
            output.debug("verbose output enabled")
            index += 1
        elif token in NAME_FLAGS:
            sandbox_name = _option_value(tokens, index)
            index += 2
        elif token in PORT_FLAGS:
            port = _parse_port(_option_value(tokens, index))
            index += 2
        elif token == PGVER_FLAG:
            pg_version = _option_value(tokens, index)
            index += 2
        elif token == VERSION_FLAG:
            raise VersionRequested()
        elif token == NICE_TOKEN:
            nice_wrapper = tuple(shlex.split(_option_value(tokens, index)))
            if not nice_wrapper:
                raise ParseError("nice requires a non-empty command")
            index += 2
        elif token == FILTER_MARKER:
            if subcommand not in FILTERABLE:
                raise ParseError(f"{FILTER_MARKER} is only valid after 'test' or 'integration-test'")
            index += 1
            selected: List[str] = []
            while index < len(tokens) and tokens[index] != DELIMITER:
                selected.append(tokens[index])
                index += 1
            if not selected:
                raise ParseError(f"{FILTER_MARKER} requires at least one test selector")
            test_filter = (test_filter or []) + selected
        elif subcommand is None and not token.startswith("-"):
            subcommand = token
            output.debug(f"subcommand: {subcommand}")
            index += 1
        else:
            raise ParseError(f"unknown argument: {token}")

    if subcommand is None:
        raise ParseError("no subcommand given")

    return Invocation(
        sandbox_name=sandbox_name,
        subcommand=subcommand,
        nice_wrapper=nice_wrapper,
        port=port,
        pg_version=pg_version,
        verbose=verbose,
        test_filter=tuple(test_filter) if test_filter is not None else None,
        trailing_args=trailing,
    )


__all__ = [
    "DELIMITER",
    "FILTER_MARKER",
    "HelpRequested",
    "VersionRequested",
    "help_text",
    "parse_args",
    "version_text",
]
